"""Broadcast and listing filter resolution.

Turns an (area, blood group) pair into a :class:`DonorQuery`.  The
wildcard sentinels ``"All"`` (areas) and ``"Any"`` (blood groups) drop
the corresponding constraint.  Every other value is kept verbatim as an
exact-match predicate; unknown values simply match nothing downstream.
"""
from __future__ import annotations

from dataclasses import dataclass

from donoralert.core.constants import ALL_AREAS, ANY_BLOOD_GROUP


@dataclass(frozen=True, slots=True)
class DonorQuery:
    """Exact-match constraints on the donor registry.

    ``None`` means "no constraint on this dimension".
    """

    area: str | None = None
    blood_group: str | None = None

    @property
    def is_unrestricted_area(self) -> bool:
        return self.area is None

    @property
    def is_unrestricted(self) -> bool:
        return self.area is None and self.blood_group is None


def _constraint(value: str | None, wildcard: str) -> str | None:
    if value is None or value == "" or value == wildcard:
        return None
    return value


def resolve_filter(area: str | None, blood_group: str | None) -> DonorQuery:
    """Return the registry query for an area / blood-group filter pair."""
    return DonorQuery(
        area=_constraint(area, ALL_AREAS),
        blood_group=_constraint(blood_group, ANY_BLOOD_GROUP),
    )
