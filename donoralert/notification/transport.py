"""SMS transport gateway.

The dispatcher only depends on the :class:`TransportGateway` protocol:
``send(address, body)`` returns a :class:`DeliveryOutcome` whose
:class:`OutcomeKind` is the single source of truth for pruning.  Provider
error codes never leak past this module.

:class:`TwilioSmsGateway` talks to the Twilio Messages REST resource over
``httpx``.  The ``httpx.Client`` is injected so its lifecycle belongs to
the process entry point (the FastAPI lifespan), not to the gateway.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

# Twilio error codes that mean the destination can never receive SMS:
#   21211  invalid 'To' phone number
#   21614  'To' number is not a valid mobile number
PERMANENT_ERROR_CODES: frozenset[int] = frozenset({21211, 21614})

_DEFAULT_API_BASE = "https://api.twilio.com"


class OutcomeKind(StrEnum):
    DELIVERED = "delivered"
    REJECTED_PERMANENT = "rejected-permanent"
    REJECTED_TRANSIENT = "rejected-transient"
    TRANSPORT_ERROR = "transport-error"


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Result of one send attempt to one address."""

    address: str
    kind: OutcomeKind
    detail: str | None = None
    message_id: str | None = None

    @property
    def delivered(self) -> bool:
        return self.kind is OutcomeKind.DELIVERED

    @property
    def permanent(self) -> bool:
        return self.kind is OutcomeKind.REJECTED_PERMANENT


class TransportGateway(Protocol):
    def send(self, address: str, body: str) -> DeliveryOutcome:
        ...


def classify_error(error_code: int | None) -> OutcomeKind:
    """Map a failed Twilio response onto an :class:`OutcomeKind`."""
    if error_code in PERMANENT_ERROR_CODES:
        return OutcomeKind.REJECTED_PERMANENT
    return OutcomeKind.REJECTED_TRANSIENT


def _error_payload(response: httpx.Response) -> tuple[int | None, str]:
    try:
        data = response.json()
    except ValueError:
        return None, response.text[:200]
    if not isinstance(data, dict):
        return None, response.text[:200]
    code = data.get("code")
    try:
        code = int(code) if code is not None else None
    except (TypeError, ValueError):
        code = None
    return code, str(data.get("message") or response.reason_phrase)


class TwilioSmsGateway:
    """Send SMS through the Twilio REST API.

    Parameters
    ----------
    account_sid, auth_token:
        Twilio credentials, sent as HTTP basic auth.
    from_number:
        Sending phone number registered with Twilio.
    client:
        Shared ``httpx.Client``.  Its ``timeout`` is the per-send timeout.
    base_url:
        API root, overridable for tests and regional endpoints.
    """

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        *,
        client: httpx.Client,
        base_url: str = _DEFAULT_API_BASE,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"

    def send(self, address: str, body: str) -> DeliveryOutcome:
        if not self.configured:
            logger.warning("Twilio credentials not configured; SMS to %s suppressed", address)
            return DeliveryOutcome(
                address=address,
                kind=OutcomeKind.TRANSPORT_ERROR,
                detail="SMS transport is not configured",
            )

        try:
            response = self._client.post(
                self.messages_url,
                data={"From": self.from_number, "To": address, "Body": body},
                auth=(self.account_sid, self.auth_token),
            )
        except httpx.TimeoutException as exc:
            logger.warning("SMS to %s timed out: %s", address, exc)
            return DeliveryOutcome(
                address=address, kind=OutcomeKind.TRANSPORT_ERROR, detail="timed out"
            )
        except httpx.HTTPError as exc:
            logger.warning("SMS to %s failed at transport level: %s", address, exc)
            return DeliveryOutcome(
                address=address, kind=OutcomeKind.TRANSPORT_ERROR, detail=str(exc)
            )

        if response.is_success:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            sid = payload.get("sid") if isinstance(payload, dict) else None
            logger.info("Message sent to %s", address)
            return DeliveryOutcome(address=address, kind=OutcomeKind.DELIVERED, message_id=sid)

        error_code, message = _error_payload(response)
        kind = classify_error(error_code)
        logger.error(
            "Failed to send message to %s: HTTP %d code=%s %s",
            address,
            response.status_code,
            error_code,
            message,
        )
        return DeliveryOutcome(
            address=address,
            kind=kind,
            detail=f"{error_code}: {message}" if error_code is not None else message,
        )
