"""Phone number normalizer.

Converts a recognised phone string to E.164 format
(e.g. ``+919322659210``).  Country-code inference uses *default_region*
when no international prefix is present in the raw string, so a bare
ten-digit Indian mobile number gains its ``+91`` prefix.

Safety rule: raw values are never logged.
"""
from __future__ import annotations

import logging

import phonenumbers

logger = logging.getLogger(__name__)

_DEFAULT_REGION = "IN"


def normalize_phone(raw: str, *, default_region: str = _DEFAULT_REGION) -> str | None:
    """Return *raw* in E.164 format, or ``None`` if it cannot be parsed.

    Parameters
    ----------
    raw:
        Phone string as typed by the registrant.
    default_region:
        ISO-3166-1 alpha-2 country code assumed when *raw* carries no
        international dialling prefix.  Defaults to ``"IN"``.

    Returns
    -------
    str | None
        E.164 string on success, or ``None`` when the input is empty,
        whitespace-only, or not a possible phone number.  Never raises.
    """
    if not raw or not raw.strip():
        return None

    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        # SAFETY: do not log raw value
        logger.debug("phone_normalizer: could not parse input (length=%d)", len(raw))
        return None

    if not phonenumbers.is_possible_number(parsed):
        logger.debug("phone_normalizer: parsed but impossible number")
        return None

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
