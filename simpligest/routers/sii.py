from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_permission
from simpligest.schemas.sii import SiiDocumentRequest, SiiDocumentResponse, SiiDocumentStatus
from simpligest.services.settings_service import get_business_settings
from simpligest.services.sii_service import check_electronic_document_status, send_electronic_document

router = APIRouter(prefix="/sii", tags=["SII"])


@router.post("/documents", response_model=SiiDocumentResponse)
def issue_document(
    payload: SiiDocumentRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_transactions")),
):
    business = get_business_settings(db)
    if not business.sii_enabled:
        raise_for_domain_error(ValueError("SII integration is disabled in the business settings"))
    try:
        return send_electronic_document(payload.model_dump(), business)
    except (RuntimeError, ValueError) as exc:
        raise_for_domain_error(exc)


@router.get("/documents/{track_id}/status", response_model=SiiDocumentStatus)
def document_status(
    track_id: str,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    business = get_business_settings(db)
    try:
        return check_electronic_document_status(track_id, business)
    except (RuntimeError, ValueError) as exc:
        raise_for_domain_error(exc)
