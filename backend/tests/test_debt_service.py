"""Unit tests for DebtService."""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.core.exceptions import StorageError
from app.schemas.models import DebtCreate, DebtUpdate, PaymentCreate
from app.services.debt_service import DebtService


@pytest.fixture
def stored_debt(debt_service, sample_debt):
    debt, _ = debt_service.create_debt("alice", DebtCreate(**sample_debt))
    return debt


class TestPayments:
    def test_partial_payment(self, debt_service, stored_debt):
        updated = debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=40))

        assert updated["paid_amount"] == 40
        assert updated["status"] == "unpaid"
        assert len(updated["payments"]) == 1
        assert updated["payments"][0]["id"]

    def test_full_payment_marks_paid(self, debt_service, stored_debt):
        debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=60))
        updated = debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=40, reason="Rest"))

        assert updated["paid_amount"] == 100
        assert updated["status"] == "paid"

    def test_payment_exceeding_balance_rejected(self, debt_service, stored_debt):
        debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=80))

        with pytest.raises(HTTPException) as exc_info:
            debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=30))

        assert exc_info.value.status_code == 400
        assert "20.00" in exc_info.value.detail

    def test_payment_on_missing_record(self, debt_service):
        with pytest.raises(HTTPException) as exc_info:
            debt_service.add_payment("alice", "missing", PaymentCreate(amount=1))
        assert exc_info.value.status_code == 404

    def test_storage_failure_on_lookup(self, debt_service, stored_debt, monkeypatch):
        def fail(*args, **kwargs):
            raise StorageError("bucket unavailable")

        monkeypatch.setattr(debt_service.repository, "get_record", fail)
        with pytest.raises(HTTPException) as exc_info:
            debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=1))
        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to add payment"


class TestPaidAmount:
    def test_create_ignores_client_paid_amount(self, debt_service, sample_debt):
        debt, _ = debt_service.create_debt(
            "alice", DebtCreate(**{**sample_debt, "paid_amount": 100, "status": "paid", "payments": []})
        )
        assert debt["paid_amount"] == 0
        assert debt["status"] == "unpaid"

    def test_clearing_payments_reopens_record(self, debt_service, stored_debt):
        debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=100))
        updated = debt_service.update_debt("alice", stored_debt["id"], DebtUpdate(payments=[]))
        assert updated["paid_amount"] == 0
        assert updated["status"] == "unpaid"
        assert debt_service.list_debts("alice")[0]["status"] == "unpaid"

    def test_update_cannot_set_paid_amount_directly(self, debt_service, stored_debt):
        updated = debt_service.update_debt("alice", stored_debt["id"], DebtUpdate(paid_amount=100))
        assert updated["paid_amount"] == 0
        assert updated["status"] == "unpaid"


class TestUpdate:
    def test_merge_keeps_unsent_fields(self, debt_service, stored_debt):
        updated = debt_service.update_debt("alice", stored_debt["id"], DebtUpdate(reason="Festival tickets"))
        assert updated["reason"] == "Festival tickets"
        assert updated["person_name"] == "Sam Lee"

    def test_raising_amount_reopens_record(self, debt_service, stored_debt):
        debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=100))
        updated = debt_service.update_debt("alice", stored_debt["id"], DebtUpdate(amount=150))
        assert updated["status"] == "unpaid"
        assert DebtService.remaining_amount(updated) == 50

    def test_update_missing_raises_404(self, debt_service):
        with pytest.raises(HTTPException) as exc_info:
            debt_service.update_debt("alice", "missing", DebtUpdate(reason="Nothing"))
        assert exc_info.value.status_code == 404

    def test_strips_names(self, debt_service, stored_debt):
        updated = debt_service.update_debt(
            "alice", stored_debt["id"], DebtUpdate(person_name="  Sam Lee  ", reason=" Festival ")
        )
        assert updated["person_name"] == "Sam Lee"
        assert updated["reason"] == "Festival"


class TestSummary:
    def test_summary(self, debt_service, stored_debt):
        debt_service.create_debt(
            "alice",
            DebtCreate(type="debt", amount=250, person_name="Bank", reason="Loan"),
        )
        debt_service.add_payment("alice", stored_debt["id"], PaymentCreate(amount=25))

        summary = debt_service.get_summary("alice")

        assert summary == {
            "total_owed_to_user": 100.0,
            "total_owed_by_user": 250.0,
            "outstanding_owed_to_user": 75.0,
            "outstanding_owed_by_user": 250.0,
            "debtor_count": 1,
            "debt_count": 1,
        }
