import logging
from collections import defaultdict
from datetime import timedelta

from sqlalchemy import select

from simpligest.config import get_settings
from simpligest.core.dates import as_utc, utc_now
from simpligest.core.insights import calculate_product_insights, policy_from_settings, window_start
from simpligest.models.product import Product
from simpligest.models.sale import Sale
from simpligest.services.finance_service import cash_balance
from simpligest.services.settings_service import get_business_settings

logger = logging.getLogger(__name__)

MAX_OPPORTUNITIES = 4
_ASSISTANT_WINDOW_DAYS = 7


def build_insights(db, now=None, policy=None) -> list:
    now = as_utc(now) if now is not None else utc_now()
    policy = policy or policy_from_settings(get_settings())

    products = db.execute(select(Product).order_by(Product.id)).scalars().all()
    sales = db.execute(
        select(Sale).where(Sale.sold_at >= window_start(now, policy.history_days))
    ).scalars().all()
    insights = calculate_product_insights(products, sales, now, policy)
    logger.debug("Computed insights for %s products from %s sales", len(products), len(sales))
    return insights


def pricing_opportunities(insights, threshold_pct=None, limit=MAX_OPPORTUNITIES) -> list:
    if threshold_pct is None:
        threshold_pct = get_settings().INSIGHT_OPPORTUNITY_PCT
    selected = [
        insight
        for insight in insights
        if abs(insight.price_recommendation.variation_percentage) >= threshold_pct
    ]
    return selected[:limit]


def low_stock_products(products, default_stock_min=0) -> list:
    """Products at or below their minimum; products without one use the business default."""
    flagged = []
    for product in products:
        stock_min = product.stock_min or default_stock_min or 0
        if stock_min > 0 and (product.stock or 0) <= stock_min:
            flagged.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "stock": product.stock,
                    "stock_min": stock_min,
                }
            )
    return flagged


def _action_cards(currency, low_stock, best_seller_name, opportunities):
    cards = [
        {
            "title": "Publish your catalog",
            "description": "List products with prices in {} and highlight local payment methods.".format(currency),
            "severity": "info",
        }
    ]
    if low_stock:
        cards.append(
            {
                "title": "Prevent stockouts",
                "description": "{} products are at critical stock. Restock or open a waiting list.".format(
                    len(low_stock)
                ),
                "severity": "alert",
            }
        )
    if best_seller_name:
        cards.append(
            {
                "title": "Feature your best seller",
                "description": "Put {} up front, it is moving fastest this week.".format(best_seller_name),
                "severity": "positive",
            }
        )
    if opportunities:
        cards.append(
            {
                "title": "Review prices",
                "description": "{} products have a suggested price adjustment.".format(len(opportunities)),
                "severity": "info",
            }
        )
    return cards


def assistant_summary(db, now=None, policy=None) -> dict:
    now = as_utc(now) if now is not None else utc_now()
    business = get_business_settings(db)

    since = now - timedelta(days=_ASSISTANT_WINDOW_DAYS)
    recent_sales = db.execute(select(Sale).where(Sale.sold_at >= since)).scalars().all()
    revenue = sum(sale.total for sale in recent_sales)

    quantities = defaultdict(float)
    for sale in recent_sales:
        if sale.product_id is not None:
            quantities[sale.product_id] += sale.quantity

    best_seller = None
    if quantities:
        best_id = max(quantities, key=quantities.get)
        best_seller = db.get(Product, best_id)

    products = db.execute(select(Product).order_by(Product.id)).scalars().all()
    low_stock = low_stock_products(products, business.default_stock_min)
    opportunities = pricing_opportunities(build_insights(db, now, policy))
    best_seller_name = best_seller.name if best_seller else None

    return {
        "revenue_7d": revenue,
        "sales_count_7d": len(recent_sales),
        "best_seller_id": best_seller.id if best_seller else None,
        "best_seller_name": best_seller_name,
        "low_stock": low_stock,
        "cash_balance": cash_balance(db),
        "opportunities": opportunities,
        "action_cards": _action_cards(business.currency, low_stock, best_seller_name, opportunities),
    }


__all__ = [
    "MAX_OPPORTUNITIES",
    "assistant_summary",
    "build_insights",
    "low_stock_products",
    "pricing_opportunities",
]
