"""Registration intake.

Validates a candidate donor and stores it through the
:class:`~donoralert.db.repositories.DonorRepository`.  Phone numbers are
normalised to E.164 before the Indian-mobile format check, so
``"93226 59210"`` and ``"+91 93226-59210"`` both register as
``"+919322659210"``.
"""
from __future__ import annotations

import logging

from donoralert.core.constants import (
    BLOOD_GROUPS,
    INDIAN_MOBILE_PATTERN,
    PHONE_FORMAT_EXAMPLE,
    VALID_BLOOD_GROUPS,
)
from donoralert.core.exceptions import DuplicateAddressError, ValidationError
from donoralert.db.models import Donor
from donoralert.db.repositories import DonorRepository
from donoralert.normalization.phone_normalizer import normalize_phone

logger = logging.getLogger(__name__)


def validate_phone(raw: str) -> str:
    """Return the canonical form of *raw* or raise :class:`ValidationError`."""
    candidate = normalize_phone(raw) or raw.strip()
    if not INDIAN_MOBILE_PATTERN.match(candidate):
        raise ValidationError(
            f"Please enter a valid 10-digit Indian phone number (e.g., {PHONE_FORMAT_EXAMPLE})"
        )
    return candidate


def register_donor(
    repository: DonorRepository,
    *,
    name: str | None,
    area: str | None,
    phone: str | None,
    blood_group: str | None,
) -> Donor:
    fields = {
        "name": (name or "").strip(),
        "area": (area or "").strip(),
        "phone": (phone or "").strip(),
        "blood_group": (blood_group or "").strip(),
    }
    if not all(fields.values()):
        raise ValidationError("All fields are required")

    fields["phone"] = validate_phone(fields["phone"])

    if fields["blood_group"] not in VALID_BLOOD_GROUPS:
        raise ValidationError(f"Blood group must be one of {', '.join(BLOOD_GROUPS)}")

    if repository.exists_by_phone(fields["phone"]):
        raise DuplicateAddressError("Phone number already registered")

    donor = repository.create(**fields)
    logger.info("Registered donor %s in area %s (%s)", donor.phone, donor.area, donor.blood_group)
    return donor
