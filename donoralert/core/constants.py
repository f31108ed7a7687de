"""Vocabularies and wildcard sentinels shared by registration and dispatch.

Blood groups form a closed vocabulary enforced at registration.  Areas
are an open vocabulary: any non-empty text is accepted.

The two wildcard sentinels mean "no constraint on this dimension" when
they appear in a broadcast or listing filter.
"""
from __future__ import annotations

import re

BLOOD_GROUPS: tuple[str, ...] = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

VALID_BLOOD_GROUPS: frozenset[str] = frozenset(BLOOD_GROUPS)

# Filter sentinels
ALL_AREAS = "All"
ANY_BLOOD_GROUP = "Any"

# Indian mobile numbers: country code followed by exactly ten digits
INDIAN_MOBILE_PATTERN = re.compile(r"^\+91\d{10}$")

PHONE_FORMAT_EXAMPLE = "+919322659210"
