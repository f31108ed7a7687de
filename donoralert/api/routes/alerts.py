"""POST /api/send-alert: authorised hospitals broadcast an urgent SMS alert.

The shared-secret check runs first; an unauthorised request never reaches
the dispatcher.  Partial delivery failure is a normal 200 response whose
body lists the failed numbers.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from donoralert.api.deps import get_alert_dispatcher
from donoralert.core.exceptions import NoMatchError, StorageError, ValidationError
from donoralert.core.security import verify_shared_secret
from donoralert.core.settings import get_settings
from donoralert.notification.dispatcher import AlertDispatcher
from donoralert.notification.models import BroadcastRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["alerts"])


class SendAlertBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hospital_name: str | None = Field(default=None, alias="hospitalName")
    area: str | None = None
    blood_group: str | None = Field(default=None, alias="bloodGroup")
    additional_info: str | None = Field(default=None, alias="additionalInfo")
    password: str | None = None


@router.post("/send-alert", summary="Send an urgent alert to matching donors")
def send_alert(body: SendAlertBody, dispatcher: AlertDispatcher = Depends(get_alert_dispatcher)):
    if not verify_shared_secret(body.password, get_settings().hospital_alert_password):
        raise HTTPException(
            status_code=401,
            detail="Invalid password. You are not authorized to send alerts.",
        )

    try:
        request = BroadcastRequest(
            originator=body.hospital_name or "",
            area=body.area or "",
            blood_group=body.blood_group or "",
            message=body.additional_info or "",
        )
        report = dispatcher.dispatch(request)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NoMatchError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StorageError as exc:
        logger.error("Alert error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    return report.to_response()
