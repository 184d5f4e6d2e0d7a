import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from simpligest.config import Settings, get_settings
from simpligest.core.logging import setup_logging
from simpligest.core.scheduler import build_scheduler
from simpligest.database import Base, engine, ensure_sqlite_schema, session_scope
from simpligest.models import import_all_models
from simpligest.routers import (
    dashboard_router,
    finance_router,
    health_router,
    insights_router,
    invoices_router,
    members_router,
    products_router,
    reports_router,
    sales_router,
    settings_router,
    sii_router,
    whatsapp_router,
)
from simpligest.services.settings_service import get_business_settings

setup_logging()
settings: Settings = get_settings()
logger = logging.getLogger(__name__)

import_all_models()
Base.metadata.create_all(bind=engine)
ensure_sqlite_schema()

scheduler = build_scheduler(settings)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    with session_scope() as db:
        get_business_settings(db)
    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    try:
        yield
    finally:
        scheduler.stop()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(health_router)
app.include_router(products_router)
app.include_router(sales_router)
app.include_router(finance_router)
app.include_router(insights_router)
app.include_router(dashboard_router)
app.include_router(reports_router)
app.include_router(invoices_router)
app.include_router(sii_router)
app.include_router(settings_router)
app.include_router(members_router)
app.include_router(whatsapp_router)


__all__ = ["app"]
