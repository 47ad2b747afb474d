"""
Database Models - Order Sources

Read-only mappings of the two externally owned order sources:

In-store point of sale:
- Transaction: one row per completed till transaction, stored in local time
- TransactionItem: line items, keyed by numeric product id

Online ordering (Bite):
- BiteOrder: one row per online order, timestamped in epoch seconds (UTC)
- BiteOrderItem: line items, carrying the product name given at order time

Column types are kept portable so the same metadata can build a test schema.
"""

from datetime import date, time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# IN-STORE (POINT OF SALE)
# =============================================================================

class Transaction(Base):
    """
    In-store transaction.

    transaction_date and transaction_time are the restaurant's local calendar
    date and time of day; day_of_week is precomputed (ISO, Monday=1).
    """
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    store_id: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_time: Mapped[Optional[time]] = mapped_column(Time)
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    items: Mapped[List["TransactionItem"]] = relationship(back_populates="transaction")

    __table_args__ = (
        Index("idx_transactions_store_date", "store_id", "transaction_date"),
    )


class TransactionItem(Base):
    """In-store line item"""
    __tablename__ = "transaction_items"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    transaction_id: Mapped[int] = mapped_column(ForeignKey("transactions.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    transaction: Mapped["Transaction"] = relationship(back_populates="items")

    __table_args__ = (
        Index("idx_transaction_items_transaction", "transaction_id"),
    )


# =============================================================================
# ONLINE (BITE)
# =============================================================================

class BiteOrder(Base):
    """
    Online order.

    ready_at_time is an absolute instant in epoch seconds (UTC).
    """
    __tablename__ = "bite_orders"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    site_id: Mapped[str] = mapped_column(String(50), nullable=False)
    ready_at_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    items: Mapped[List["BiteOrderItem"]] = relationship(back_populates="order")

    __table_args__ = (
        Index("idx_bite_orders_site_ready", "site_id", "ready_at_time"),
    )


class BiteOrderItem(Base):
    """Online line item"""
    __tablename__ = "bite_order_items"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("bite_orders.order_id"), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    line_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    order: Mapped["BiteOrder"] = relationship(back_populates="items")
