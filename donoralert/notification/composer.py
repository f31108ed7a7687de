"""Alert body composition.

Every donor in one broadcast receives the identical body; there is no
per-recipient personalisation.  User text is inserted verbatim.
"""
from __future__ import annotations

from string import Template

from donoralert.notification.models import BroadcastRequest

ALERT_TEMPLATE = Template(
    "URGENT: Blood needed at $originator in $area. Blood type: $blood_group. "
    "${message}Please help if you can."
)


def compose_alert_message(request: BroadcastRequest) -> str:
    return ALERT_TEMPLATE.safe_substitute(
        originator=request.originator,
        area=request.area,
        blood_group=request.blood_group,
        message=f"{request.message} " if request.message else "",
    )
