from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.schemas.finance import FinanceSummary, Movement, TransactionCreate, TransactionRead
from simpligest.services.finance_service import add_transaction, finance_summary, list_movements

router = APIRouter(prefix="/finance", tags=["Finance"])


@router.get("/summary", response_model=FinanceSummary)
def get_summary(
    tax_rate: Optional[float] = Query(None, ge=0, le=100),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    return finance_summary(db, tax_rate=tax_rate)


@router.get("/movements", response_model=List[Movement])
def get_movements(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    return list_movements(db, limit=limit)


@router.post("/transactions", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_transactions")),
):
    try:
        transaction = add_transaction(db, payload.model_dump())
        db.commit()
    except ValueError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return transaction
