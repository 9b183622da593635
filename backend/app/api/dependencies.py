"""
Service providers for the API routers.

Lazy initialization keeps the blob store closed until the first request, so
importing the app never touches storage. Tests replace these through
``app.dependency_overrides``.
"""

from app.repositories.record_repo import get_debt_repo, get_transaction_repo
from app.repositories.user_repo import get_user_repo
from app.services.auth_service import AuthService
from app.services.debt_service import DebtService
from app.services.transaction_service import TransactionService

_transaction_service: TransactionService | None = None
_debt_service: DebtService | None = None
_auth_service: AuthService | None = None


def get_transaction_service() -> TransactionService:
    global _transaction_service
    if _transaction_service is None:
        _transaction_service = TransactionService(get_transaction_repo())
    return _transaction_service


def get_debt_service() -> DebtService:
    global _debt_service
    if _debt_service is None:
        _debt_service = DebtService(get_debt_repo())
    return _debt_service


def get_auth_service() -> AuthService:
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(get_user_repo())
    return _auth_service
