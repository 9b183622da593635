"""
Debt API Routes

Debt and debtor records, plus partial payments against them.
"""

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_debt_service
from app.auth.session import SessionUser, get_current_user
from app.schemas.models import Debt, DebtCreate, DebtSummary, DebtUpdate, PaymentCreate
from app.services.debt_service import DebtService

router = APIRouter(prefix="/api/debts", tags=["debts"])


@router.get("", response_model=list[Debt])
def list_debts(
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> list[dict]:
    return service.list_debts(user.uid)


@router.post("", response_model=Debt, status_code=status.HTTP_201_CREATED)
def create_debt(
    payload: DebtCreate,
    response: Response,
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> dict:
    """Create a debt record. Re-posting an existing id returns 200."""
    debt, created = service.create_debt(user.uid, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
    return debt


@router.get("/summary", response_model=DebtSummary)
def get_debt_summary(
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> dict:
    """Money owed to and by the current user."""
    return service.get_summary(user.uid)


@router.put("/{debt_id}", response_model=Debt)
def update_debt(
    debt_id: str,
    payload: DebtUpdate,
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> dict:
    return service.update_debt(user.uid, debt_id, payload)


@router.delete("/{debt_id}")
def delete_debt(
    debt_id: str,
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> dict:
    service.delete_debt(user.uid, debt_id)
    return {"message": "Debt record deleted successfully"}


@router.post("/{debt_id}/payments", response_model=Debt, status_code=status.HTTP_201_CREATED)
def add_payment(
    debt_id: str,
    payload: PaymentCreate,
    user: SessionUser = Depends(get_current_user),
    service: DebtService = Depends(get_debt_service),
) -> dict:
    """Record a partial payment and return the updated record."""
    return service.add_payment(user.uid, debt_id, payload)
