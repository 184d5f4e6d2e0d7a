import logging

from sqlalchemy import func, select

from simpligest.core.constants import (
    DEFAULT_MOVEMENT_CATEGORY,
    DEFAULT_MOVEMENT_DESCRIPTION,
    QUICK_SALE_CATEGORY,
    TRANSACTION_TYPES,
)
from simpligest.core.dates import as_utc, utc_now
from simpligest.models.sale import Sale
from simpligest.models.transaction import Transaction
from simpligest.services.settings_service import get_business_settings

logger = logging.getLogger(__name__)


def add_transaction(db, payload: dict, *, source="manual", invoice_id=None) -> Transaction:
    tx_type = payload.get("type")
    if tx_type not in TRANSACTION_TYPES:
        raise ValueError("type must be one of: {}".format(", ".join(TRANSACTION_TYPES)))
    amount = payload.get("amount")
    if amount is None or amount <= 0:
        raise ValueError("amount must be greater than zero")

    occurred_at = payload.get("date")
    transaction = Transaction(
        type=tx_type,
        amount=float(amount),
        description=(payload.get("description") or "").strip() or DEFAULT_MOVEMENT_DESCRIPTION,
        category=(payload.get("category") or "").strip() or DEFAULT_MOVEMENT_CATEGORY,
        source=source,
        invoice_id=invoice_id,
        occurred_at=as_utc(occurred_at) if occurred_at else utc_now(),
    )
    db.add(transaction)
    db.flush()
    logger.info("Recorded %s transaction %s for %.2f", tx_type, transaction.id, transaction.amount)
    return transaction


def _sum_transactions(db, tx_type) -> float:
    stmt = select(func.coalesce(func.sum(Transaction.amount), 0.0)).where(Transaction.type == tx_type)
    return float(db.execute(stmt).scalar_one())


def cash_balance(db) -> float:
    return _sum_transactions(db, "income") - _sum_transactions(db, "expense")


def finance_summary(db, tax_rate=None) -> dict:
    business = get_business_settings(db)
    if tax_rate is None:
        tax_rate = business.default_tax_rate

    sales_income = float(
        db.execute(select(func.coalesce(func.sum(Sale.total), 0.0))).scalar_one()
    )
    manual_income = _sum_transactions(db, "income")
    manual_expense = _sum_transactions(db, "expense")
    total_income = sales_income + manual_income

    return {
        "sales_income": sales_income,
        "manual_income": manual_income,
        "manual_expense": manual_expense,
        "total_income": total_income,
        "balance": total_income - manual_expense,
        "estimated_vat": total_income * (tax_rate / 100),
        "tax_rate": tax_rate,
        "currency": business.currency,
    }


def list_movements(db, limit=None) -> list:
    """Sales and transactions merged into one ledger, newest first."""
    movements = []
    for sale in db.execute(select(Sale)).scalars():
        movements.append(
            {
                "id": "sale-{}".format(sale.id),
                "type": "income",
                "amount": sale.total,
                "description": sale.product_name,
                "category": QUICK_SALE_CATEGORY,
                "date": as_utc(sale.sold_at),
                "source": "sale",
            }
        )
    for transaction in db.execute(select(Transaction)).scalars():
        movements.append(
            {
                "id": "transaction-{}".format(transaction.id),
                "type": transaction.type,
                "amount": transaction.amount,
                "description": transaction.description,
                "category": transaction.category,
                "date": as_utc(transaction.occurred_at),
                "source": transaction.source,
            }
        )
    movements.sort(key=lambda item: item["date"], reverse=True)
    if limit:
        movements = movements[:limit]
    return movements


__all__ = ["add_transaction", "cash_balance", "finance_summary", "list_movements"]
