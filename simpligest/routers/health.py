import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpligest.config import get_settings
from simpligest.core.dates import local_date, utc_now
from simpligest.dependencies import get_db

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    settings = get_settings()
    now = utc_now()
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "scheduler_enabled": settings.SCHEDULER_ENABLED,
        "business_date": local_date(now).isoformat(),
        "time": now.isoformat(),
    }
