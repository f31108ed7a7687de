"""Domain error taxonomy.

These exceptions never carry HTTP semantics; the API layer maps them to
status codes.  Failures of a single SMS send are *not* exceptions: they
are reported as :class:`~donoralert.notification.transport.DeliveryOutcome`
values and aggregated into the delivery report.
"""
from __future__ import annotations


class DonorAlertError(Exception):
    """Base class for every error raised by the donor alert core."""


class ValidationError(DonorAlertError):
    """Raised when a request is missing fields or a field is malformed."""


class DuplicateAddressError(DonorAlertError):
    """Raised when registering a phone number that is already registered."""


class NoMatchError(DonorAlertError):
    """Raised when a broadcast filter matches zero donors."""


class StorageError(DonorAlertError):
    """Raised when the donor registry cannot be read or written."""
