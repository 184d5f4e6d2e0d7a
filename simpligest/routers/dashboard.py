from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from simpligest.dependencies import get_db, require_auth
from simpligest.services.dashboard_service import dashboard_overview, default_dashboard_layout

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def get_dashboard(db: Session = Depends(get_db), _auth=Depends(require_auth)):
    return dashboard_overview(db)


@router.get("/layout")
def get_default_layout(_auth=Depends(require_auth)):
    return default_dashboard_layout()
