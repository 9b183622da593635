from __future__ import annotations

import calendar
from typing import Any

import pandas as pd
from fastapi import HTTPException

from app.core.exceptions import RecordNotFoundError, StorageError
from app.core.logging import get_logger
from app.repositories.record_repo import RecordRepository
from app.schemas.models import TransactionCreate, TransactionUpdate

logger = get_logger("pocketledger.services.transaction")


class TransactionService:
    TOP_CATEGORY_LIMIT = 5

    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    def list_transactions(self, user_id: str) -> list[dict[str, Any]]:
        """List a user's transactions, most recent first."""
        try:
            transactions = self.repository.list_records(user_id)
        except StorageError as e:
            logger.error(f"Failed to load transactions for {user_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to retrieve transactions") from e
        return sorted(transactions, key=lambda t: str(t.get("date", "")), reverse=True)

    def get_transaction(self, user_id: str, transaction_id: str) -> dict[str, Any]:
        transaction = self.repository.get_record(user_id, transaction_id)
        if not transaction:
            raise HTTPException(status_code=404, detail="Transaction not found")
        return transaction

    def create_transaction(
        self,
        user_id: str,
        payload: TransactionCreate,
    ) -> tuple[dict[str, Any], bool]:
        """Create a transaction.

        Re-sending a transaction with an id that is already stored returns the
        payload unchanged with ``created=False``.

        Returns:
            Tuple of (transaction, created)
        """
        record = payload.model_dump(mode="json")
        try:
            transaction, created = self.repository.create_record(user_id, record)
        except StorageError as e:
            logger.error(f"Failed to create transaction for {user_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to create transaction") from e

        if created:
            logger.info(f"Created {transaction['type']} transaction {transaction['id']} for {user_id}")
        else:
            logger.info(f"Transaction {transaction['id']} already exists for {user_id}, skipping")
        return transaction, created

    def update_transaction(
        self,
        user_id: str,
        transaction_id: str,
        payload: TransactionUpdate,
    ) -> dict[str, Any]:
        """Replace the mutable fields of a transaction. The id comes from the path."""
        record = payload.model_dump(mode="json")
        record["id"] = transaction_id
        try:
            updated = self.repository.replace_record(user_id, record)
        except RecordNotFoundError:
            logger.warning(f"Update for unknown transaction {transaction_id} ({user_id})")
            raise HTTPException(status_code=404, detail="Transaction not found")
        except StorageError as e:
            logger.error(f"Failed to update transaction {transaction_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to update transaction") from e
        logger.info(f"Updated transaction {transaction_id} for {user_id}")
        return updated

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        try:
            deleted = self.repository.delete_record(user_id, transaction_id)
        except StorageError as e:
            logger.error(f"Failed to delete transaction {transaction_id}: {e.message}")
            raise HTTPException(status_code=500, detail="Failed to delete transaction") from e
        if not deleted:
            raise HTTPException(status_code=404, detail="Transaction not found")
        logger.info(f"Deleted transaction {transaction_id} for {user_id}")

    def get_summary(self, user_id: str) -> dict[str, Any]:
        return self._build_summary(self.list_transactions(user_id))

    def get_monthly_report(self, user_id: str, month: str, year: int) -> dict[str, Any]:
        """Build a monthly report from the user's transactions.

        Args:
            user_id: Owner's user ID
            month: Month name ("January") or number ("1"-"12")
            year: Four digit year

        Raises:
            HTTPException: 400 if the month or year is invalid
        """
        month_number = self._parse_month(month)
        if year < 1900 or year > 9999:
            raise HTTPException(status_code=400, detail=f"Invalid year: {year}")

        transactions = self.list_transactions(user_id)
        report = self._build_monthly_report(transactions, month_number, year)
        logger.info(
            f"Monthly report for {user_id} {report['month']} {year}: "
            f"{report['transaction_count']} transactions, "
            f"income=${report['total_income']:,.2f}, expenses=${report['total_expenses']:,.2f}"
        )
        return report

    @staticmethod
    def _parse_month(month: str) -> int:
        value = str(month).strip()
        if value.isdigit():
            number = int(value)
            if 1 <= number <= 12:
                return number
        else:
            lowered = value.lower()
            for number in range(1, 13):
                if lowered in (calendar.month_name[number].lower(), calendar.month_abbr[number].lower()):
                    return number
        raise HTTPException(status_code=400, detail=f"Invalid month: {month}")

    @staticmethod
    def _build_summary(transactions: list[dict[str, Any]]) -> dict[str, Any]:
        income = sum(float(t.get("amount", 0)) for t in transactions if t.get("type") == "income")
        expenses = sum(float(t.get("amount", 0)) for t in transactions if t.get("type") == "expense")
        return {
            "total_income": round(income, 2),
            "total_expenses": round(expenses, 2),
            "balance": round(income - expenses, 2),
            "count": len(transactions),
        }

    @classmethod
    def _build_monthly_report(
        cls,
        transactions: list[dict[str, Any]],
        month_number: int,
        year: int,
    ) -> dict[str, Any]:
        month_name = calendar.month_name[month_number]
        df = pd.DataFrame(transactions, columns=["type", "amount", "date", "category", "account_name"])

        if not df.empty:
            df["date"] = pd.to_datetime(df["date"], errors="coerce", utc=True)
            df = df.dropna(subset=["date"])
            df = df[(df["date"].dt.month == month_number) & (df["date"].dt.year == year)].copy()

        if df.empty:
            return {
                "month": month_name,
                "year": year,
                "total_income": 0.0,
                "total_expenses": 0.0,
                "net_savings": 0.0,
                "transaction_count": 0,
                "top_categories": [],
                "account_breakdown": {},
                "report": f"No transactions were recorded for {month_name} {year}.",
                "actionable_insight": "Log your income and expenses regularly to get spending insights.",
            }

        df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
        income = float(df.loc[df["type"] == "income", "amount"].sum())
        expense_df = df[df["type"] == "expense"]
        expenses = float(expense_df["amount"].sum())

        breakdown = (
            expense_df.groupby(expense_df["category"].fillna("Uncategorized"))["amount"]
            .sum()
            .sort_values(ascending=False)
            .head(cls.TOP_CATEGORY_LIMIT)
        )
        top_categories = [
            {"category": str(category), "amount": round(float(amount), 2)}
            for category, amount in breakdown.items()
        ]

        accounts = expense_df["account_name"].fillna("").astype(str).str.strip()
        accounts = accounts.replace({"": "Unassigned"})
        account_breakdown = {
            str(name): round(float(amount), 2)
            for name, amount in expense_df.groupby(accounts)["amount"].sum().items()
        }

        summary = {
            "total_income": round(income, 2),
            "total_expenses": round(expenses, 2),
            "net_savings": round(income - expenses, 2),
        }
        return {
            "month": month_name,
            "year": year,
            **summary,
            "transaction_count": int(len(df)),
            "top_categories": top_categories,
            "account_breakdown": account_breakdown,
            "report": cls._build_narrative(month_name, year, summary, top_categories),
            "actionable_insight": cls._build_insight(summary, top_categories),
        }

    @staticmethod
    def _build_narrative(
        month_name: str,
        year: int,
        summary: dict[str, Any],
        top_categories: list[dict[str, Any]],
    ) -> str:
        narrative = (
            f"In {month_name} {year} your total income was ${summary['total_income']:,.2f}, "
            f"total expenses were ${summary['total_expenses']:,.2f}, "
            f"and net savings were ${summary['net_savings']:,.2f}."
        )
        if top_categories:
            names = ", ".join(c["category"] for c in top_categories[:3])
            narrative += f" Your top spending categories were {names}."
        return narrative

    @staticmethod
    def _build_insight(summary: dict[str, Any], top_categories: list[dict[str, Any]]) -> str:
        income = summary["total_income"]
        expenses = summary["total_expenses"]

        if expenses > income:
            overspend = expenses - income
            if top_categories:
                return (
                    f"You spent ${overspend:,.2f} more than you earned. "
                    f"Start by cutting back on {top_categories[0]['category']}, your largest expense."
                )
            return f"You spent ${overspend:,.2f} more than you earned. Review your expenses for cuts."

        if top_categories and expenses > 0:
            top = top_categories[0]
            share = top["amount"] / expenses * 100
            if share >= 40:
                return (
                    f"{top['category']} makes up {share:.0f}% of your spending. "
                    f"Setting a monthly limit for it would have the biggest impact."
                )

        if income > 0:
            rate = (income - expenses) / income * 100
            return (
                f"You saved {rate:.0f}% of your income. "
                f"Consider moving part of the ${income - expenses:,.2f} surplus into savings."
            )
        return "Record your income as well as expenses to see how much you are saving."
