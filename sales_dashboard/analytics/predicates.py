"""
Channel Predicates

Each channel keys dates and stores differently, so each gets its own
predicate builder. Every aggregation composes its WHERE clause from these,
with bound parameters handled by SQLAlchemy.
"""

from typing import List

from sqlalchemy import ColumnElement

from sales_dashboard.analytics.filters import SalesQuery
from sales_dashboard.database.models import BiteOrder, Transaction


def in_store_conditions(query: SalesQuery) -> List[ColumnElement[bool]]:
    """
    In-store filters.

    transaction_date already holds the local calendar date, so the range is
    a plain inclusive comparison with no day shift.
    """
    conditions: List[ColumnElement[bool]] = []

    if query.date_range is not None:
        conditions.append(Transaction.transaction_date >= query.date_range.start)
        conditions.append(Transaction.transaction_date <= query.date_range.end)

    if query.store.in_store_id:
        conditions.append(Transaction.store_id == query.store.in_store_id)

    return conditions


def online_conditions(query: SalesQuery) -> List[ColumnElement[bool]]:
    """
    Online filters.

    ready_at_time is an absolute instant, compared directly against the
    closed epoch-second bounds of the range.
    """
    conditions: List[ColumnElement[bool]] = []

    if query.date_range is not None:
        lower, upper = query.date_range.online_bounds()
        conditions.append(BiteOrder.ready_at_time.between(lower, upper))

    if query.store.online_site_id:
        conditions.append(BiteOrder.site_id == query.store.online_site_id)

    return conditions
