from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_auth, require_permission
from simpligest.services.notification_service import run_daily_summary, send_daily_sales_summary
from simpligest.services.settings_service import get_business_settings
from simpligest.services.whatsapp_service import send_whatsapp

router = APIRouter(prefix="/whatsapp", tags=["WhatsApp"])


class WhatsAppSendRequest(BaseModel):
    message: str
    phone: str


@router.post("/send")
def send_message(
    payload: WhatsAppSendRequest,
    db: Session = Depends(get_db),
    _auth=Depends(require_auth),
):
    message = payload.message.strip()
    phone = payload.phone.strip()

    if not message:
        raise HTTPException(status_code=400, detail="message is required")
    if not phone:
        raise HTTPException(status_code=400, detail="phone is required")

    business = get_business_settings(db)
    try:
        provider = send_whatsapp(message, phone, from_number=business.whatsapp_from)
    except (RuntimeError, ValueError) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return {"status": "sent", "phone": phone, "provider": provider}


@router.post("/daily-summary")
def send_summary_now(
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("view_finance")),
):
    try:
        message = send_daily_sales_summary(db)
        db.commit()
    except (RuntimeError, ValueError) as exc:
        # keep the failed delivery in the notification log
        db.commit()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return {"status": "sent", "message": message}


@router.post("/daily-summary/run")
def run_summary_job(_auth=Depends(require_permission("manage_users"))):
    return run_daily_summary()
