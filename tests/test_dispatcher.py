"""Tests for the alert dispatcher: matching, fan-out, reporting and pruning."""
from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

import pytest

from conftest import FakeGateway, add_donor, phone
from donoralert.core.exceptions import NoMatchError, StorageError
from donoralert.db.repositories import DonorRepository
from donoralert.notification.dispatcher import AlertDispatcher
from donoralert.notification.models import BroadcastRequest
from donoralert.notification.transport import DeliveryOutcome, OutcomeKind
from donoralert.registry.filters import resolve_filter


def _request(area: str = "X", blood_group: str = "P", message: str = "") -> BroadcastRequest:
    return BroadcastRequest(originator="City Hospital", area=area, blood_group=blood_group, message=message)


# ===========================================================================
# Matching
# ===========================================================================


class TestMatching:
    def test_area_and_group_filter(self, db_session, repository, gateway):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        add_donor(db_session, phone=phone(2), area="X", blood_group="Q")
        add_donor(db_session, phone=phone(3), area="X", blood_group="P")

        report = AlertDispatcher(repository, gateway).dispatch(_request("X", "P"))

        assert report.matched == 2
        assert sorted(gateway.addresses) == [phone(1), phone(3)]

    def test_both_wildcards_match_whole_registry(self, db_session, repository, gateway):
        for n, (area, group) in enumerate(
            [("X", "P"), ("X", "Q"), ("Y", "P"), ("Z", "A+"), ("Y", "O-")], start=1
        ):
            add_donor(db_session, phone=phone(n), area=area, blood_group=group)

        report = AlertDispatcher(repository, gateway).dispatch(_request("All", "Any"))

        assert report.matched == 5
        assert report.successful == 5
        assert len(gateway.sent) == 5

    def test_all_areas_with_concrete_group(self, db_session, repository, gateway):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        add_donor(db_session, phone=phone(2), area="Y", blood_group="P")
        add_donor(db_session, phone=phone(3), area="Y", blood_group="Q")

        report = AlertDispatcher(repository, gateway).dispatch(_request("All", "P"))

        assert report.matched == 2
        assert sorted(gateway.addresses) == [phone(1), phone(2)]

    def test_any_group_within_area(self, db_session, repository, gateway):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        add_donor(db_session, phone=phone(2), area="X", blood_group="Q")
        add_donor(db_session, phone=phone(3), area="Y", blood_group="P")

        report = AlertDispatcher(repository, gateway).dispatch(_request("X", "Any"))

        assert report.matched == 2
        assert sorted(gateway.addresses) == [phone(1), phone(2)]


# ===========================================================================
# No match
# ===========================================================================


class TestNoMatch:
    def test_specific_area_is_named(self, db_session, repository, gateway):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")

        with pytest.raises(NoMatchError) as exc_info:
            AlertDispatcher(repository, gateway).dispatch(_request("Y", "Q"))

        assert str(exc_info.value) == "No donors found with the required blood group in the Y area."
        assert "any area" not in str(exc_info.value)
        assert gateway.sent == []

    def test_all_areas_says_any_area(self, repository, gateway):
        with pytest.raises(NoMatchError, match="in any area"):
            AlertDispatcher(repository, gateway).dispatch(_request("All", "AB-"))

        assert gateway.sent == []


# ===========================================================================
# Outcome aggregation and pruning
# ===========================================================================


class TestOutcomes:
    def test_permanent_rejection_prunes_donor(self, db_session, repository):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        add_donor(db_session, phone=phone(2), area="X", blood_group="P")
        gateway = FakeGateway(outcomes={phone(2): OutcomeKind.REJECTED_PERMANENT})

        report = AlertDispatcher(repository, gateway).dispatch(_request())

        assert (report.successful, report.failed) == (1, 1)
        assert report.failed_addresses == [phone(2)]
        assert report.pruned_addresses == [phone(2)]
        assert repository.get_by_phone(phone(2)) is None
        assert repository.get_by_phone(phone(1)) is not None

    @pytest.mark.parametrize("kind", [OutcomeKind.REJECTED_TRANSIENT, OutcomeKind.TRANSPORT_ERROR])
    def test_non_permanent_failures_keep_donor(self, db_session, repository, kind):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        gateway = FakeGateway(outcomes={phone(1): kind})

        report = AlertDispatcher(repository, gateway).dispatch(_request())

        assert (report.successful, report.failed) == (0, 1)
        assert report.failed_addresses == [phone(1)]
        assert report.pruned_addresses == []
        assert repository.get_by_phone(phone(1)) is not None

    def test_gateway_exception_is_contained(self, db_session, repository):
        for n in range(1, 4):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")
        gateway = FakeGateway(errors={phone(2): RuntimeError("socket closed")})

        report = AlertDispatcher(repository, gateway).dispatch(_request())

        assert report.matched == 3
        assert (report.successful, report.failed) == (2, 1)
        assert report.failed_addresses == [phone(2)]
        assert repository.get_by_phone(phone(2)) is not None
        assert len(gateway.sent) == 3

    def test_counts_always_add_up(self, db_session, repository):
        kinds = list(OutcomeKind)
        outcomes = {}
        for n in range(1, 21):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")
            outcomes[phone(n)] = kinds[n % len(kinds)]
        gateway = FakeGateway(outcomes=outcomes)

        report = AlertDispatcher(repository, gateway, max_workers=4).dispatch(_request())

        assert report.successful + report.failed == report.matched == 20
        assert len(report.failed_addresses) == report.failed
        assert len(set(report.failed_addresses)) == report.failed
        assert sorted(gateway.addresses) == sorted(outcomes)
        expected_pruned = {a for a, k in outcomes.items() if k is OutcomeKind.REJECTED_PERMANENT}
        assert set(report.pruned_addresses) == expected_pruned
        remaining = {d.phone for d in repository.find(resolve_filter("All", "Any"))}
        assert remaining == set(outcomes) - expected_pruned

    def test_failed_addresses_follow_match_order(self, db_session, repository):
        for n in range(1, 6):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")
        gateway = FakeGateway(
            outcomes={phone(n): OutcomeKind.REJECTED_TRANSIENT for n in range(1, 6)}
        )
        matched = [d.phone for d in repository.find(resolve_filter("X", "P"))]

        report = AlertDispatcher(repository, gateway).dispatch(_request())

        assert report.failed_addresses == matched

    def test_every_recipient_gets_identical_body(self, db_session, repository, gateway):
        for n in range(1, 4):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")

        AlertDispatcher(repository, gateway).dispatch(_request(message="Ward 4."))

        bodies = {body for _, body in gateway.sent}
        assert bodies == {
            "URGENT: Blood needed at City Hospital in X. Blood type: P. Ward 4. Please help if you can."
        }

    def test_repeat_dispatch_with_same_outcomes_is_stable(self, db_session, repository):
        for n in range(1, 5):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")
        gateway = FakeGateway(
            outcomes={
                phone(1): OutcomeKind.REJECTED_PERMANENT,
                phone(2): OutcomeKind.REJECTED_TRANSIENT,
            }
        )
        dispatcher = AlertDispatcher(repository, gateway)

        first = dispatcher.dispatch(_request())
        second = dispatcher.dispatch(_request())

        assert (first.matched, first.successful, first.failed) == (4, 2, 2)
        # the pruned donor is no longer matched on the second run
        assert (second.matched, second.successful, second.failed) == (3, 2, 1)
        assert second.failed_addresses == [phone(2)]


# ===========================================================================
# Fail fast and concurrency
# ===========================================================================


class TestFailFastAndConcurrency:
    def test_storage_error_on_lookup_aborts_before_sending(self, gateway):
        repository = MagicMock(spec=DonorRepository)
        repository.find.side_effect = StorageError("db down")

        with pytest.raises(StorageError):
            AlertDispatcher(repository, gateway).dispatch(_request())

        assert gateway.sent == []

    def test_sends_run_concurrently_and_all_finish_before_report(self, db_session, repository):
        for n in range(1, 5):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")
        barrier = threading.Barrier(4, timeout=5)
        finished: list[str] = []

        class BarrierGateway:
            def send(self, address: str, body: str) -> DeliveryOutcome:
                barrier.wait()
                time.sleep(0.01)
                finished.append(address)
                return DeliveryOutcome(address=address, kind=OutcomeKind.DELIVERED)

        report = AlertDispatcher(repository, BarrierGateway(), max_workers=4).dispatch(_request())

        assert report.successful == 4
        assert sorted(finished) == [phone(n) for n in range(1, 5)]

    def test_single_worker_still_sends_to_everyone(self, db_session, repository, gateway):
        for n in range(1, 4):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")

        report = AlertDispatcher(repository, gateway, max_workers=1).dispatch(_request())

        assert report.successful == 3


# ===========================================================================
# Send timeout and pruning failures
# ===========================================================================


class TestTimeoutAndPruningFailure:
    def test_hung_send_is_reported_as_transport_error(self, db_session, repository):
        add_donor(db_session, phone=phone(1), area="X", blood_group="P")
        add_donor(db_session, phone=phone(2), area="X", blood_group="P")
        release = threading.Event()

        class HangingGateway:
            def send(self, address: str, body: str) -> DeliveryOutcome:
                if address == phone(2):
                    release.wait(5)
                return DeliveryOutcome(address=address, kind=OutcomeKind.DELIVERED)

        dispatcher = AlertDispatcher(repository, HangingGateway(), max_workers=2, send_timeout_s=0.1)
        try:
            started = time.monotonic()
            report = dispatcher.dispatch(_request())
            elapsed = time.monotonic() - started
        finally:
            release.set()

        assert elapsed < 2
        assert (report.successful, report.failed) == (1, 1)
        assert report.failed_addresses == [phone(2)]
        assert report.pruned_addresses == []
        assert repository.get_by_phone(phone(2)) is not None

    def test_sends_within_budget_all_complete(self, db_session, repository, gateway):
        for n in range(1, 7):
            add_donor(db_session, phone=phone(n), area="X", blood_group="P")

        report = AlertDispatcher(repository, gateway, max_workers=2, send_timeout_s=1.0).dispatch(_request())

        assert report.successful == 6

    def test_storage_error_while_pruning_propagates(self):
        donor = MagicMock(phone=phone(1))
        repository = MagicMock(spec=DonorRepository)
        repository.find.return_value = [donor]
        repository.delete_by_phone.side_effect = StorageError("db down")
        gateway = FakeGateway(outcomes={phone(1): OutcomeKind.REJECTED_PERMANENT})

        with pytest.raises(StorageError):
            AlertDispatcher(repository, gateway).dispatch(_request())

        repository.delete_by_phone.assert_called_once_with(phone(1))
