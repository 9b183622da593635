"""
Offline Ledger

Client-side operations on transactions, debts and accounts. Every change is
written to the local cache first, queued for the server, and synced right
away when online. Accounts only ever live locally.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.client.local_store import LocalStore
from app.client.sync import ResourceSync, SyncResult
from app.core.exceptions import RecordNotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.utils import new_id
from app.schemas.models import DebtCreate, PaymentCreate, TransactionCreate

logger = get_logger("pocketledger.client.ledger")

ModelT = TypeVar("ModelT", bound=BaseModel)

MIN_ACCOUNT_NAME_LENGTH = 2
AMOUNT_EPSILON = 1e-9


def _validate(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {model.__name__} data",
            {"errors": e.errors(include_url=False)},
        ) from e


class OfflineLedger:
    def __init__(self, http: httpx.Client, store: LocalStore) -> None:
        self.http = http
        self.store = store
        self.transactions_sync = ResourceSync(
            http, store, resource="transactions", cache_key="transactions", queue_key="sync_queue"
        )
        self.debts_sync = ResourceSync(
            http, store, resource="debts", cache_key="debts", queue_key="debts_sync_queue"
        )

    @property
    def online(self) -> bool:
        return self.transactions_sync.online

    def set_online(self, online: bool) -> dict[str, SyncResult]:
        """Propagate a connectivity change. Coming online triggers a sync."""
        return {
            "transactions": self.transactions_sync.on_connectivity_change(online),
            "debts": self.debts_sync.on_connectivity_change(online),
        }

    def sync(self) -> dict[str, SyncResult]:
        return {
            "transactions": self.transactions_sync.process(),
            "debts": self.debts_sync.process(),
        }

    def load(self) -> dict[str, SyncResult]:
        """Initial load: flush pending changes and pull both resources."""
        return {
            "transactions": self.transactions_sync.initial_load(),
            "debts": self.debts_sync.initial_load(),
        }

    def pending_count(self) -> int:
        return len(self.transactions_sync.queue) + len(self.debts_sync.queue)

    def logout(self) -> None:
        """Forget all cached data and pending changes."""
        self.store.clear()

    # =========================================================================
    # Transactions
    # =========================================================================

    def transactions(self) -> list[dict[str, Any]]:
        """Cached transactions, most recent first."""
        return sorted(
            self.transactions_sync.records(),
            key=lambda t: str(t.get("date", "")),
            reverse=True,
        )

    def add_transaction(self, data: dict[str, Any]) -> dict[str, Any]:
        record = _validate(TransactionCreate, {**data, "id": data.get("id") or new_id()})
        transaction = record.model_dump(mode="json")
        self.transactions_sync.upsert_local(transaction, is_new=True)
        logger.info(f"Transaction {transaction['id']} added locally")
        self.transactions_sync.process()
        return transaction

    def update_transaction(self, transaction_id: str, data: dict[str, Any]) -> dict[str, Any]:
        existing = self._require(self.transactions_sync, transaction_id)
        record = _validate(TransactionCreate, {**existing, **data, "id": transaction_id})
        transaction = record.model_dump(mode="json")
        self.transactions_sync.upsert_local(transaction, is_new=False)
        logger.info(f"Transaction {transaction_id} updated locally")
        self.transactions_sync.process()
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        self.transactions_sync.delete_local(transaction_id)
        logger.info(f"Transaction {transaction_id} deleted locally")
        self.transactions_sync.process()

    def totals(self) -> dict[str, float]:
        transactions = self.transactions_sync.records()
        income = sum(float(t.get("amount", 0)) for t in transactions if t.get("type") == "income")
        expenses = sum(float(t.get("amount", 0)) for t in transactions if t.get("type") == "expense")
        return {
            "total_income": round(income, 2),
            "total_expenses": round(expenses, 2),
            "balance": round(income - expenses, 2),
        }

    # =========================================================================
    # Debts
    # =========================================================================

    def debts(self) -> list[dict[str, Any]]:
        return self.debts_sync.records()

    def add_debt(self, data: dict[str, Any]) -> dict[str, Any]:
        record = _validate(DebtCreate, {**data, "id": data.get("id") or new_id()})
        debt = record.model_dump(mode="json")
        self.debts_sync.upsert_local(debt, is_new=True)
        logger.info(f"Debt record {debt['id']} added locally")
        self.debts_sync.process()
        return debt

    def update_debt(self, debt_id: str, data: dict[str, Any]) -> dict[str, Any]:
        existing = self._require(self.debts_sync, debt_id)
        record = _validate(DebtCreate, {**existing, **data, "id": debt_id})
        debt = record.model_dump(mode="json")
        self.debts_sync.upsert_local(debt, is_new=False)
        logger.info(f"Debt record {debt_id} updated locally")
        self.debts_sync.process()
        return debt

    def delete_debt(self, debt_id: str) -> None:
        self.debts_sync.delete_local(debt_id)
        logger.info(f"Debt record {debt_id} deleted locally")
        self.debts_sync.process()

    def record_payment(self, debt_id: str, amount: float, reason: Optional[str] = None) -> dict[str, Any]:
        """Apply a payment locally and queue the updated record.

        Raises:
            ValidationError: If the payment exceeds the remaining balance
        """
        debt = self._require(self.debts_sync, debt_id)
        payment = _validate(PaymentCreate, {"amount": amount, "reason": reason}).model_dump(mode="json")

        remaining = float(debt["amount"]) - float(debt.get("paid_amount") or 0)
        if payment["amount"] > remaining + AMOUNT_EPSILON:
            raise ValidationError(
                f"Amount cannot exceed remaining balance of {max(remaining, 0):.2f}",
                {"remaining": remaining},
            )

        payments = [*(debt.get("payments") or []), {**payment, "id": new_id()}]
        paid_amount = round(sum(float(p["amount"]) for p in payments), 2)
        status = "paid" if paid_amount + AMOUNT_EPSILON >= float(debt["amount"]) else "unpaid"
        return self.update_debt(
            debt_id,
            {"payments": payments, "paid_amount": paid_amount, "status": status},
        )

    def debt_totals(self) -> dict[str, float]:
        debts = self.debts_sync.records()
        return {
            "total_owed_to_user": round(
                sum(float(d.get("amount", 0)) for d in debts if d.get("type") == "debtor"), 2
            ),
            "total_owed_by_user": round(
                sum(float(d.get("amount", 0)) for d in debts if d.get("type") == "debt"), 2
            ),
        }

    # =========================================================================
    # Accounts (local only)
    # =========================================================================

    def accounts(self) -> list[dict[str, str]]:
        return self.store.get("accounts", [])

    def add_account(self, name: str) -> dict[str, str]:
        name = (name or "").strip()
        if len(name) < MIN_ACCOUNT_NAME_LENGTH:
            raise ValidationError(
                f"Account name must be at least {MIN_ACCOUNT_NAME_LENGTH} characters."
            )
        accounts = self.accounts()
        if any(a["name"].lower() == name.lower() for a in accounts):
            raise ValidationError(f"Account '{name}' already exists.")
        account = {"id": new_id(), "name": name}
        self.store.set("accounts", [*accounts, account])
        return account

    def remove_account(self, account_id: str) -> bool:
        accounts = self.accounts()
        remaining = [a for a in accounts if a["id"] != account_id]
        if len(remaining) == len(accounts):
            return False
        self.store.set("accounts", remaining)
        return True

    @staticmethod
    def _require(resource: ResourceSync, record_id: str) -> dict[str, Any]:
        for record in resource.records():
            if record.get("id") == record_id:
                return record
        raise RecordNotFoundError(f"{resource.resource} record {record_id} not found locally")
