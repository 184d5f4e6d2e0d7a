from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.schemas.sale import QuickSaleRequest, QuickSaleResult, SaleRead
from simpligest.services.sale_service import list_sales, record_quick_sale

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("", response_model=List[SaleRead])
def get_sales(
    limit: Optional[int] = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_sales")),
):
    return list_sales(db, limit=limit)


@router.post("", response_model=QuickSaleResult, status_code=status.HTTP_201_CREATED)
def create_quick_sale(
    payload: QuickSaleRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("create_sales")),
):
    try:
        result = record_quick_sale(
            db,
            payload.product_id,
            payload.quantity,
            unit_price=payload.unit_price,
        )
        db.commit()
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return result
