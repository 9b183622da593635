from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import get_transaction_service
from app.auth.session import SessionUser, get_current_user
from app.schemas.models import (
    MonthlyReport,
    Transaction,
    TransactionCreate,
    TransactionSummary,
    TransactionUpdate,
)
from app.services.transaction_service import TransactionService

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/transactions", response_model=list[Transaction])
def list_transactions(
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> list[dict]:
    """List all transactions for the current user, most recent first."""
    return service.list_transactions(user.uid)


@router.post("/api/transactions", response_model=Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    response: Response,
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Create a transaction.

    Posting a transaction whose id is already stored returns 200 and leaves
    the stored copy untouched, so a replayed add is harmless.
    """
    transaction, created = service.create_transaction(user.uid, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
    return transaction


@router.get("/api/transactions/summary", response_model=TransactionSummary)
def get_transaction_summary(
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Total income, total expenses and balance for the current user."""
    return service.get_summary(user.uid)


@router.get("/api/transactions/{transaction_id}", response_model=Transaction)
def get_transaction(
    transaction_id: str,
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    return service.get_transaction(user.uid, transaction_id)


@router.put("/api/transactions/{transaction_id}", response_model=Transaction)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    return service.update_transaction(user.uid, transaction_id, payload)


@router.delete("/api/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> Response:
    service.delete_transaction(user.uid, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/api/reports/monthly", response_model=MonthlyReport)
def get_monthly_report(
    month: str = Query(..., description='Month name ("January") or number (1-12).'),
    year: int = Query(..., description="Four digit year."),
    user: SessionUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> dict:
    """Monthly spending report: totals, top categories and one insight."""
    return service.get_monthly_report(user.uid, month, year)
