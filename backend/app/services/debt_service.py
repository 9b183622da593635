"""
Debt Service

Debt and debtor records with partial payments. ``paid_amount`` is always the
sum of recorded payments, and a record is ``paid`` once that sum reaches its
amount.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException

from app.core.exceptions import RecordNotFoundError, StorageError
from app.core.logging import get_logger
from app.core.utils import new_id
from app.repositories.record_repo import RecordRepository
from app.schemas.models import DebtCreate, DebtStatus, DebtType, DebtUpdate, PaymentCreate

logger = get_logger("pocketledger.services.debt")

# Tolerance for float comparisons on currency amounts
AMOUNT_EPSILON = 1e-9


class DebtService:
    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    def list_debts(self, user_id: str) -> list[dict[str, Any]]:
        try:
            return self.repository.list_records(user_id)
        except StorageError as e:
            logger.error(f"Failed to load debts for {user_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to retrieve debts") from e

    def create_debt(self, user_id: str, payload: DebtCreate) -> tuple[dict[str, Any], bool]:
        """Create a debt record, idempotent on id.

        Returns:
            Tuple of (debt, created)
        """
        record = payload.model_dump(mode="json")
        self._apply_status(record)
        try:
            debt, created = self.repository.create_record(user_id, record)
        except StorageError as e:
            logger.error(f"Failed to create debt record for {user_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to create debt record") from e

        if created:
            logger.info(f"Created {debt['type']} record {debt['id']} for {user_id}")
        return debt, created

    def update_debt(self, user_id: str, debt_id: str, payload: DebtUpdate) -> dict[str, Any]:
        """Merge the sent fields into the stored record."""
        changes = payload.model_dump(mode="json", exclude_unset=True)
        try:
            existing = self.repository.get_record(user_id, debt_id)
            if existing is None:
                raise RecordNotFoundError(f"Debt record {debt_id} not found")
            merged = {**existing, **changes}
            self._apply_status(merged)
            changes.update(paid_amount=merged["paid_amount"], status=merged["status"])
            updated = self.repository.update_record(user_id, debt_id, changes)
        except RecordNotFoundError:
            logger.warning(f"Update for unknown debt record {debt_id} ({user_id})")
            raise HTTPException(status_code=404, detail="Debt record not found")
        except StorageError as e:
            logger.error(f"Failed to update debt record {debt_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to update debt record") from e
        logger.info(f"Updated debt record {debt_id} for {user_id}")
        return updated

    def delete_debt(self, user_id: str, debt_id: str) -> None:
        try:
            deleted = self.repository.delete_record(user_id, debt_id)
        except StorageError as e:
            logger.error(f"Failed to delete debt record {debt_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to delete debt record") from e
        if not deleted:
            raise HTTPException(status_code=404, detail="Debt record not found")
        logger.info(f"Deleted debt record {debt_id} for {user_id}")

    def add_payment(self, user_id: str, debt_id: str, payload: PaymentCreate) -> dict[str, Any]:
        """Record a partial payment against a debt.

        Raises:
            HTTPException: 404 if the record is missing, 400 if the payment
                exceeds the remaining balance
        """
        try:
            debt = self.repository.get_record(user_id, debt_id)
        except StorageError as e:
            logger.error(f"Failed to load debt record {debt_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to add payment") from e
        if debt is None:
            raise HTTPException(status_code=404, detail="Debt record not found")

        remaining = self.remaining_amount(debt)
        if payload.amount > remaining + AMOUNT_EPSILON:
            logger.warning(
                f"Payment of {payload.amount} exceeds remaining {remaining} on debt record {debt_id}"
            )
            raise HTTPException(
                status_code=400,
                detail=f"Amount cannot exceed remaining balance of {remaining:.2f}",
            )

        payment = {**payload.model_dump(mode="json"), "id": new_id()}
        debt["payments"] = [*(debt.get("payments") or []), payment]
        self._apply_status(debt)
        changes = {key: debt[key] for key in ("payments", "paid_amount", "status")}

        try:
            updated = self.repository.update_record(user_id, debt_id, changes)
        except RecordNotFoundError:
            raise HTTPException(status_code=404, detail="Debt record not found")
        except StorageError as e:
            logger.error(f"Failed to add payment to debt record {debt_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to add payment") from e

        logger.info(
            f"Recorded payment {payment['id']} of {payment['amount']} on {debt_id}, "
            f"paid {updated['paid_amount']}/{updated['amount']}"
        )
        return updated

    def get_summary(self, user_id: str) -> dict[str, Any]:
        return self._build_summary(self.list_debts(user_id))

    @staticmethod
    def remaining_amount(debt: dict[str, Any]) -> float:
        return max(float(debt.get("amount", 0)) - float(debt.get("paid_amount", 0) or 0), 0.0)

    @staticmethod
    def _apply_status(debt: dict[str, Any]) -> None:
        """Recompute paid_amount from payments and mark fully paid records."""
        payments = debt.get("payments") or []
        debt["paid_amount"] = round(sum(float(p.get("amount", 0)) for p in payments), 2)
        if float(debt["paid_amount"]) + AMOUNT_EPSILON >= float(debt.get("amount", 0)):
            debt["status"] = DebtStatus.PAID.value
        else:
            debt["status"] = DebtStatus.UNPAID.value

    @staticmethod
    def _build_summary(debts: list[dict[str, Any]]) -> dict[str, Any]:
        debtors = [d for d in debts if d.get("type") == DebtType.DEBTOR.value]
        personal = [d for d in debts if d.get("type") == DebtType.DEBT.value]
        return {
            "total_owed_to_user": round(sum(float(d.get("amount", 0)) for d in debtors), 2),
            "total_owed_by_user": round(sum(float(d.get("amount", 0)) for d in personal), 2),
            "outstanding_owed_to_user": round(sum(DebtService.remaining_amount(d) for d in debtors), 2),
            "outstanding_owed_by_user": round(sum(DebtService.remaining_amount(d) for d in personal), 2),
            "debtor_count": len(debtors),
            "debt_count": len(personal),
        }
