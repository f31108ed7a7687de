from __future__ import annotations

from dataclasses import dataclass, field

from donoralert.notification.transport import DeliveryOutcome


@dataclass(frozen=True, slots=True)
class DeliveryReport:
    """Aggregate result of one broadcast."""

    matched: int
    successful: int
    failed: int
    failed_addresses: list[str] = field(default_factory=list)
    pruned_addresses: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        text = f"Alert sent to {self.successful} donor(s). "
        if self.failed > 0:
            text += f"{self.failed} failed."
        return text

    def to_response(self) -> dict[str, object]:
        """Shape the report as the alert endpoint's JSON body.

        ``failedNumbers`` is present only when at least one send failed.
        """
        body: dict[str, object] = {
            "message": self.summary,
            "successfulSends": self.successful,
            "failedSends": self.failed,
        }
        if self.failed > 0:
            body["failedNumbers"] = list(self.failed_addresses)
        return body


def build_report(
    matched: int,
    outcomes: list[DeliveryOutcome],
    pruned: list[str] | None = None,
) -> DeliveryReport:
    """Fold per-recipient *outcomes* (in match order) into a report."""
    failed_addresses = [o.address for o in outcomes if not o.delivered]
    return DeliveryReport(
        matched=matched,
        successful=len(outcomes) - len(failed_addresses),
        failed=len(failed_addresses),
        failed_addresses=failed_addresses,
        pruned_addresses=list(pruned or []),
    )
