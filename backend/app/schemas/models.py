from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.utils import normalize_iso_date, utc_now_iso


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class DebtType(str, Enum):
    """Who owes whom."""

    DEBT = "debt"  # the user owes the person
    DEBTOR = "debtor"  # the person owes the user


class DebtStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


def _validate_date(value: Any) -> str:
    try:
        return normalize_iso_date(value)
    except (TypeError, ValueError) as e:
        raise ValueError(str(e)) from e


# =============================================================================
# Transactions
# =============================================================================


class TransactionBase(BaseModel):
    type: TransactionType
    amount: float = Field(..., gt=0, description="Positive amount; direction comes from type.")
    date: str = Field(default_factory=utc_now_iso, description="ISO-8601 timestamp.")
    reason: str = Field(..., min_length=2)
    category: str = Field(..., min_length=1)
    account_name: Optional[str] = None

    @field_validator("reason", "category", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> str:
        return _validate_date(value)


class TransactionCreate(TransactionBase):
    id: Optional[str] = Field(None, description="Client-generated id; generated server-side when absent.")


class TransactionUpdate(TransactionBase):
    """Full replace of a transaction. The date must be sent explicitly."""

    date: str = Field(..., description="ISO-8601 timestamp.")


class Transaction(TransactionBase):
    id: str


class TransactionSummary(BaseModel):
    total_income: float
    total_expenses: float
    balance: float
    count: int


# =============================================================================
# Debts
# =============================================================================


class PaymentCreate(BaseModel):
    amount: float = Field(..., gt=0)
    reason: Optional[str] = None
    date: str = Field(default_factory=utc_now_iso)

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> str:
        return _validate_date(value)


class Payment(PaymentCreate):
    id: str


class DebtBase(BaseModel):
    type: DebtType
    amount: float = Field(..., gt=0)
    person_name: str = Field(..., min_length=2)
    reason: str = Field(..., min_length=2)
    date: str = Field(default_factory=utc_now_iso)
    paid_amount: float = Field(0, ge=0)
    status: DebtStatus = DebtStatus.UNPAID
    payments: list[Payment] = []

    @field_validator("person_name", "reason", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> str:
        return _validate_date(value)


class DebtCreate(DebtBase):
    id: Optional[str] = None


class DebtUpdate(BaseModel):
    """Partial update; only fields that are sent are merged."""

    type: Optional[DebtType] = None
    amount: Optional[float] = Field(None, gt=0)
    person_name: Optional[str] = Field(None, min_length=2)
    reason: Optional[str] = Field(None, min_length=2)
    date: Optional[str] = None
    paid_amount: Optional[float] = Field(None, ge=0)
    status: Optional[DebtStatus] = None
    payments: Optional[list[Payment]] = None

    @field_validator("person_name", "reason", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return _validate_date(value)


class Debt(DebtBase):
    id: str


class DebtSummary(BaseModel):
    total_owed_to_user: float
    total_owed_by_user: float
    outstanding_owed_to_user: float
    outstanding_owed_by_user: float
    debtor_count: int
    debt_count: int


# =============================================================================
# Reports
# =============================================================================


class CategoryTotal(BaseModel):
    category: str
    amount: float


class MonthlyReport(BaseModel):
    month: str
    year: int
    total_income: float
    total_expenses: float
    net_savings: float
    transaction_count: int
    top_categories: list[CategoryTotal]
    account_breakdown: dict[str, float]
    report: str
    actionable_insight: str


# =============================================================================
# Auth
# =============================================================================


class SignupRequest(BaseModel):
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    mobile: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    username: str
    mobile: str
