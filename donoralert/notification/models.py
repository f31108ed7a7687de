from __future__ import annotations

from dataclasses import dataclass

from donoralert.core.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class BroadcastRequest:
    """One hospital's request to alert every matching donor.

    ``area`` may be the ``"All"`` wildcard and ``blood_group`` the
    ``"Any"`` wildcard.  ``message`` is optional free text appended to the
    alert body.
    """

    originator: str
    area: str
    blood_group: str
    message: str = ""

    def __post_init__(self) -> None:
        for field_name in ("originator", "area", "blood_group"):
            value = getattr(self, field_name)
            if value is None or not str(value).strip():
                raise ValidationError("Hospital name, area, and blood group are required")
            object.__setattr__(self, field_name, str(value).strip())
        object.__setattr__(self, "message", (self.message or "").strip())
