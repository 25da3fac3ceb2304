"""Headline numbers for the admin dashboard."""

from decimal import Decimal, InvalidOperation
import logging

from .domain import StoreOverview
from .exceptions import StoreFailure
from .services.rowstore import RowStore

log = logging.getLogger(__name__)


def _amount(value) -> Decimal:
    if value is None:
        return Decimal(0)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        amount = Decimal("NaN")
    if not amount.is_finite():
        log.debug("ignoring non numeric order amount %r", value)
        return Decimal(0)
    return amount


def store_overview(store: RowStore) -> StoreOverview:
    """Counts of products, orders and customer profiles plus total sales."""
    try:
        amounts = store.select("orders", ["total_amount"])
        return StoreOverview(
            total_products=store.count("products"),
            total_orders=store.count("orders"),
            total_users=store.count("profiles"),
            total_sales=float(sum((_amount(row["total_amount"]) for row in amounts),
                                  Decimal(0))),
        )
    except Exception as exc:
        log.error("store overview failed: %s", exc)
        raise StoreFailure("Could not load store statistics") from exc
