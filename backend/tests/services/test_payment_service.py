# backend/tests/services/test_payment_service.py
"""
Payment ledger: record, mark paid, delete and summarize.
"""

from datetime import time
from decimal import Decimal
import threading

import pytest

from spacebook.core.config import settings
from spacebook.database import SessionLocal
from spacebook.models import Payment, PaymentStatus
from spacebook.schemas.payment import PaymentCreate
from spacebook.services.payment_service import PaymentService
from spacebook.services.results import OutcomeKind


@pytest.fixture
def service(db):
    return PaymentService(db)


@pytest.fixture
def reservation(seed_reservation):
    """Two hours at 100.00 -> total 200.00."""
    return seed_reservation(time(9, 0), time(11, 0), total=Decimal("200.00"))


def _payment(reservation_id: str, amount: str, method: str = "card", **extra) -> PaymentCreate:
    return PaymentCreate(reservation_id=reservation_id, amount=Decimal(amount), method=method, **extra)


class TestRecordPayment:
    def test_recorded_as_pending(self, service, reservation):
        result = service.record_payment(
            _payment(reservation.id, "60.00", purpose="DEPOSIT", external_ref="ch_1")
        )

        assert result.ok
        payment = result.value
        assert payment.status == PaymentStatus.PENDING.value
        assert payment.amount == Decimal("60.00")
        assert payment.purpose == "DEPOSIT"
        assert payment.paid_at is None

    def test_unknown_reservation(self, service):
        result = service.record_payment(_payment("01HMISSING0000000000000000", "10.00"))
        assert result.kind is OutcomeKind.NOT_FOUND

    def test_allow_policy_accepts_overpayment(self, service, reservation):
        assert service.record_payment(_payment(reservation.id, "250.00")).ok

    def test_reject_policy_counts_pending_and_paid(self, service, reservation, monkeypatch):
        monkeypatch.setattr(settings, "overpayment_policy", "reject")
        first = service.record_payment(_payment(reservation.id, "150.00")).value
        service.mark_paid(first.id)
        assert service.record_payment(_payment(reservation.id, "40.00")).ok

        result = service.record_payment(_payment(reservation.id, "10.01"))

        assert result.kind is OutcomeKind.OVERPAYMENT_REJECTED
        assert result.details["total"] == "200.00"
        assert result.details["counted"] == "190.00"
        assert service.record_payment(_payment(reservation.id, "10.00")).ok


class TestMarkPaid:
    def test_marks_paid_and_stamps_time(self, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "60.00")).value

        result = service.mark_paid(payment.id, external_ref="txn-9")

        assert result.value.status == PaymentStatus.PAID.value
        assert result.value.paid_at is not None
        assert result.value.external_ref == "txn-9"

    def test_missing_external_ref_keeps_stored_one(self, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "60.00", external_ref="pix-1")).value

        result = service.mark_paid(payment.id)

        assert result.value.external_ref == "pix-1"

    def test_remarking_paid_payment_succeeds(self, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "60.00")).value
        service.mark_paid(payment.id)

        again = service.mark_paid(payment.id, external_ref="second")

        assert again.ok
        assert again.value.status == PaymentStatus.PAID.value
        assert again.value.external_ref == "second"

    def test_unknown_payment(self, service):
        assert service.mark_paid("01HMISSING0000000000000000").kind is OutcomeKind.NOT_FOUND

    def test_reject_policy_blocks_paid_beyond_total(self, service, reservation, monkeypatch):
        big = service.record_payment(_payment(reservation.id, "150.00")).value
        extra = service.record_payment(_payment(reservation.id, "100.00")).value
        service.mark_paid(big.id)
        monkeypatch.setattr(settings, "overpayment_policy", "reject")

        result = service.mark_paid(extra.id)

        assert result.kind is OutcomeKind.OVERPAYMENT_REJECTED
        assert service.get_payment(extra.id).value.status == PaymentStatus.PENDING.value


class TestDeletePayment:
    def test_pending_payment_is_deleted(self, db, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "40.00")).value

        result = service.delete_payment(payment.id)

        assert result.kind is OutcomeKind.DELETED
        assert result.ok
        db.expire_all()
        assert db.get(Payment, payment.id) is None

    def test_paid_payment_is_never_deleted(self, db, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "60.00")).value
        service.mark_paid(payment.id)

        result = service.delete_payment(payment.id)

        assert result.kind is OutcomeKind.CANNOT_DELETE_PAID
        db.expire_all()
        stored = db.get(Payment, payment.id)
        assert stored is not None
        assert stored.status == PaymentStatus.PAID.value

    def test_unknown_payment(self, service):
        assert service.delete_payment("01HMISSING0000000000000000").kind is OutcomeKind.NOT_FOUND


class TestSummary:
    def test_paid_and_pending_split(self, service, reservation):
        paid = service.record_payment(_payment(reservation.id, "60.00")).value
        service.mark_paid(paid.id)
        service.record_payment(_payment(reservation.id, "40.00"))

        summary = service.summarize(reservation.id).value

        assert summary.total == Decimal("200.00")
        assert summary.paid == Decimal("60.00")
        assert summary.remaining == Decimal("140.00")

    def test_no_payments(self, service, reservation):
        summary = service.summarize(reservation.id).value
        assert (summary.total, summary.paid, summary.remaining) == (
            Decimal("200.00"),
            Decimal("0.00"),
            Decimal("200.00"),
        )

    def test_remaining_never_negative(self, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "250.00")).value
        service.mark_paid(payment.id)

        summary = service.summarize(reservation.id).value

        assert summary.paid == Decimal("250.00")
        assert summary.remaining == Decimal("0.00")

    def test_summary_reflects_deletes(self, service, reservation):
        payment = service.record_payment(_payment(reservation.id, "40.00")).value
        service.mark_paid(service.record_payment(_payment(reservation.id, "20.00")).value.id)
        service.delete_payment(payment.id)

        assert service.summarize(reservation.id).value.remaining == Decimal("180.00")

    def test_unknown_reservation(self, service):
        assert service.summarize("01HMISSING0000000000000000").kind is OutcomeKind.NOT_FOUND


class TestListing:
    def test_oldest_first(self, service, reservation):
        first = service.record_payment(_payment(reservation.id, "10.00")).value
        second = service.record_payment(_payment(reservation.id, "20.00")).value

        payments = service.list_payments(reservation.id).value

        assert [p.id for p in payments] == [first.id, second.id]

    def test_unknown_reservation(self, service):
        assert service.list_payments("01HMISSING0000000000000000").kind is OutcomeKind.NOT_FOUND


def test_concurrent_records_under_reject_policy_never_exceed_total(reservation, monkeypatch):
    monkeypatch.setattr(settings, "overpayment_policy", "reject")
    workers = 6
    barrier = threading.Barrier(workers)
    kinds = []
    guard = threading.Lock()

    def attempt():
        session = SessionLocal()
        try:
            barrier.wait()
            result = PaymentService(session).record_payment(_payment(reservation.id, "50.00"))
            with guard:
                kinds.append(result.kind)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert kinds.count(OutcomeKind.OK) == 4
    assert kinds.count(OutcomeKind.OVERPAYMENT_REJECTED) == 2


@pytest.mark.parametrize("round_no", range(5))
def test_mark_paid_racing_delete_never_loses_a_paid_payment(db, reservation, round_no):
    payment_id = PaymentService(db).record_payment(_payment(reservation.id, "40.00")).value.id
    barrier = threading.Barrier(2)
    outcomes = {}

    def attempt(name, call):
        session = SessionLocal()
        try:
            barrier.wait()
            outcomes[name] = call(PaymentService(session)).kind
        finally:
            session.close()

    threads = [
        threading.Thread(target=attempt, args=("paid", lambda s: s.mark_paid(payment_id))),
        threading.Thread(target=attempt, args=("deleted", lambda s: s.delete_payment(payment_id))),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    db.expire_all()
    stored = db.get(Payment, payment_id)
    if outcomes["deleted"] is OutcomeKind.DELETED:
        assert outcomes["paid"] is OutcomeKind.NOT_FOUND
        assert stored is None
    else:
        assert outcomes == {"paid": OutcomeKind.OK, "deleted": OutcomeKind.CANNOT_DELETE_PAID}
        assert stored is not None
        assert stored.status == PaymentStatus.PAID.value
