from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, raise_for_domain_error, require_auth, require_permission
from simpligest.schemas.settings import BusinessSettingsRead, BusinessSettingsUpdate
from simpligest.services.settings_service import (
    get_business_settings,
    serialize_business_settings,
    update_business_settings,
)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=BusinessSettingsRead)
def read_settings(db: Session = Depends(get_db), _auth=Depends(require_auth)):
    row = get_business_settings(db)
    db.commit()
    return serialize_business_settings(row)


@router.patch("", response_model=BusinessSettingsRead)
def patch_settings(
    payload: BusinessSettingsUpdate,
    db: Session = Depends(get_db),
    _auth=Depends(require_permission("manage_users")),
):
    try:
        row = update_business_settings(db, payload.model_dump(exclude_unset=True))
        db.commit()
    except ValueError as exc:
        db.rollback()
        raise_for_domain_error(exc)
    except SQLAlchemyError:
        db.rollback()
        raise
    return serialize_business_settings(row)
