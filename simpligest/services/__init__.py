from simpligest.services.dashboard_service import dashboard_overview
from simpligest.services.finance_service import add_transaction, finance_summary, list_movements
from simpligest.services.insight_service import assistant_summary, build_insights
from simpligest.services.invoice_service import process_invoice, scan_invoice
from simpligest.services.notification_service import run_daily_summary, send_low_stock_alert
from simpligest.services.product_service import import_products, import_products_workbook
from simpligest.services.report_service import build_report, export_report_xlsx
from simpligest.services.sale_service import record_quick_sale

__all__ = [
    "add_transaction",
    "assistant_summary",
    "build_insights",
    "build_report",
    "dashboard_overview",
    "export_report_xlsx",
    "finance_summary",
    "import_products",
    "import_products_workbook",
    "list_movements",
    "process_invoice",
    "record_quick_sale",
    "run_daily_summary",
    "scan_invoice",
    "send_low_stock_alert",
]
