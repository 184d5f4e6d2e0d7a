from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.core.invoice_parser import build_sii_xml
from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.schemas.invoice import InvoiceDraft, InvoiceRead, InvoiceScanRequest
from simpligest.services.invoice_service import (
    get_invoice,
    list_invoices,
    process_invoice,
    scan_invoice,
    serialize_invoice,
)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("/scan", response_model=InvoiceDraft)
def scan(
    payload: InvoiceScanRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_transactions")),
):
    try:
        return scan_invoice(
            db,
            payload.text,
            currency=payload.currency,
            file_name=payload.file_name,
            file_type=payload.file_type,
        )
    except ValueError as exc:
        raise_for_domain_error(exc)


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceDraft,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_transactions")),
):
    try:
        result = process_invoice(db, payload.model_dump())
        db.commit()
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    transaction = result["transaction"]
    return serialize_invoice(result["invoice"], transaction.id if transaction else None)


@router.get("", response_model=List[InvoiceRead])
def get_invoices(
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    return [serialize_invoice(record) for record in list_invoices(db)]


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_single_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    try:
        return serialize_invoice(get_invoice(db, invoice_id))
    except LookupError as exc:
        raise_for_domain_error(exc)


@router.get("/{invoice_id}/sii-xml")
def get_invoice_xml(
    invoice_id: int,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    try:
        record = get_invoice(db, invoice_id)
    except LookupError as exc:
        raise_for_domain_error(exc)
    return Response(content=build_sii_xml(record), media_type="application/xml")
