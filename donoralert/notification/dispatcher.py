"""Alert dispatcher: matching, fan-out and registry self-healing.

One call to :meth:`AlertDispatcher.dispatch`:

1. resolves the broadcast's area / blood-group filter into a query;
2. fetches the matching donors (empty → :class:`NoMatchError`, no sends);
3. composes a single alert body;
4. sends it to every donor concurrently, one task per donor;
5. waits for every task within its send budget, then walks the outcomes
   in match order, deleting donors whose number was rejected as permanently invalid;
6. returns a :class:`DeliveryReport`.

A failed send never aborts the broadcast.  Each task returns a
:class:`DeliveryOutcome` and never raises; outcomes travel back through
futures, so no counter is shared between threads.  Registry reads and
deletions stay on the calling thread because the SQLAlchemy session is
not thread-safe.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor, wait

from donoralert.core.exceptions import NoMatchError
from donoralert.db.repositories import DonorRepository
from donoralert.notification.composer import compose_alert_message
from donoralert.notification.models import BroadcastRequest
from donoralert.notification.report import DeliveryReport, build_report
from donoralert.notification.transport import DeliveryOutcome, OutcomeKind, TransportGateway
from donoralert.registry.filters import DonorQuery, resolve_filter

logger = logging.getLogger(__name__)

_DEFAULT_MAX_WORKERS = 8
_DEFAULT_SEND_TIMEOUT_S = 10.0


def no_match_message(query: DonorQuery) -> str:
    where = "in any area" if query.is_unrestricted_area else f"in the {query.area} area"
    return f"No donors found with the required blood group {where}."


class AlertDispatcher:
    """Broadcast one alert to every matching donor.

    Parameters
    ----------
    repository:
        Donor registry bound to the caller's session.
    gateway:
        SMS transport; injected so the caller owns its lifecycle.
    max_workers:
        Upper bound on concurrent sends.
    send_timeout_s:
        Time allowed for each send.  A send still running when its
        budget is spent is reported as a ``TRANSPORT_ERROR`` and left
        behind; the report does not wait for it.  ``None`` waits forever.
    """

    def __init__(
        self,
        repository: DonorRepository,
        gateway: TransportGateway,
        *,
        max_workers: int = _DEFAULT_MAX_WORKERS,
        send_timeout_s: float | None = _DEFAULT_SEND_TIMEOUT_S,
    ) -> None:
        self.repository = repository
        self.gateway = gateway
        self.max_workers = max(1, max_workers)
        self.send_timeout_s = send_timeout_s

    def dispatch(self, request: BroadcastRequest) -> DeliveryReport:
        query = resolve_filter(request.area, request.blood_group)
        donors = self.repository.find(query)
        if not donors:
            raise NoMatchError(no_match_message(query))

        body = compose_alert_message(request)
        addresses = [donor.phone for donor in donors]
        logger.info(
            "Dispatching alert from %s to %d donor(s) (area=%s, blood_group=%s)",
            request.originator,
            len(addresses),
            request.area,
            request.blood_group,
        )

        outcomes = self._send_all(addresses, body)

        pruned: list[str] = []
        for outcome in outcomes:
            if outcome.permanent:
                logger.info("Removing invalid number from registry: %s", outcome.address)
                self.repository.delete_by_phone(outcome.address)
                pruned.append(outcome.address)

        report = build_report(len(donors), outcomes, pruned)
        logger.info(
            "Alert from %s: %d delivered, %d failed, %d pruned",
            request.originator,
            report.successful,
            report.failed,
            len(pruned),
        )
        return report

    # -- fan-out ------------------------------------------------------------

    def _send_all(self, addresses: list[str], body: str) -> list[DeliveryOutcome]:
        """Send *body* to every address; return one outcome per address, in order."""
        workers = min(self.max_workers, len(addresses))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sms-send")
        try:
            futures: list[Future[DeliveryOutcome]] = [
                executor.submit(self._send_one, address, body) for address in addresses
            ]
            wait(futures, timeout=self._batch_timeout(len(addresses), workers))
        finally:
            # hung sends must not hold the report back
            executor.shutdown(wait=False, cancel_futures=True)

        outcomes: list[DeliveryOutcome] = []
        for address, future in zip(addresses, futures):
            if future.done() and not future.cancelled():
                outcomes.append(future.result())
                continue
            logger.error("Send to %s timed out after %ss", address, self.send_timeout_s)
            outcomes.append(
                DeliveryOutcome(address=address, kind=OutcomeKind.TRANSPORT_ERROR, detail="timed out")
            )
        return outcomes

    def _batch_timeout(self, sends: int, workers: int) -> float | None:
        """Each worker runs its share of sends back to back, each within the send budget."""
        if self.send_timeout_s is None:
            return None
        return self.send_timeout_s * math.ceil(sends / workers)

    def _send_one(self, address: str, body: str) -> DeliveryOutcome:
        try:
            return self.gateway.send(address, body)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to send message to %s: %s", address, exc)
            return DeliveryOutcome(
                address=address,
                kind=OutcomeKind.TRANSPORT_ERROR,
                detail=str(exc) or type(exc).__name__,
            )
