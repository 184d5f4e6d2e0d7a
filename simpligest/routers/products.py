from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.schemas.product import (
    ProductCreate,
    ProductImportRequest,
    ProductImportResult,
    ProductRead,
    ProductUpdate,
)
from simpligest.services import product_service

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductRead])
def list_products(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_inventory")),
):
    return product_service.list_products(db, search=search)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_inventory")),
):
    try:
        return product_service.get_product(db, product_id)
    except LookupError as exc:
        raise_for_domain_error(exc)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("edit_inventory")),
):
    try:
        product = product_service.create_product(db, payload.model_dump())
        db.commit()
    except ValueError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(product)
    return product


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("edit_inventory")),
):
    try:
        product = product_service.update_product(db, product_id, payload.model_dump(exclude_unset=True))
        db.commit()
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("edit_inventory")),
):
    try:
        product_service.delete_product(db, product_id)
        db.commit()
    except LookupError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise


@router.post("/import", response_model=ProductImportResult)
def import_products(
    payload: ProductImportRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("edit_inventory")),
):
    try:
        if payload.path:
            result = product_service.import_products_workbook(
                db, payload.path, payload.sheet, dry_run=payload.dry_run
            )
        else:
            result = product_service.import_products(db, payload.records, dry_run=payload.dry_run)
        if not payload.dry_run:
            db.commit()
    except FileNotFoundError as exc:
        db.rollback()
        raise_for_domain_error(LookupError(str(exc)))
    except ValueError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return result
