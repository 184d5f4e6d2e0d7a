from simpligest.routers.dashboard import router as dashboard_router
from simpligest.routers.finance import router as finance_router
from simpligest.routers.health import router as health_router
from simpligest.routers.insights import router as insights_router
from simpligest.routers.invoices import router as invoices_router
from simpligest.routers.members import router as members_router
from simpligest.routers.products import router as products_router
from simpligest.routers.reports import router as reports_router
from simpligest.routers.sales import router as sales_router
from simpligest.routers.settings import router as settings_router
from simpligest.routers.sii import router as sii_router
from simpligest.routers.whatsapp import router as whatsapp_router

__all__ = [
    "dashboard_router",
    "finance_router",
    "health_router",
    "insights_router",
    "invoices_router",
    "members_router",
    "products_router",
    "reports_router",
    "sales_router",
    "settings_router",
    "sii_router",
    "whatsapp_router",
]
