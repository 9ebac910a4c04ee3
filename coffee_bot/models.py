from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Text,
    DateTime,
    Index,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class MenuRow(Base):
    """
    One raw row of the price list, as the shop maintains it.

    Values are kept as text the way they are typed in ("Latte", "Large",
    "$4.50"); normalization and validation happen when the menu cache parses
    the rows, so a bad row never blocks the rest of the menu.
    """
    __tablename__ = "menu_rows"

    id = Column(Integer, primary_key=True, index=True)
    item = Column(String, nullable=True)
    size = Column(String, nullable=True)   # blank for items without size variation
    price = Column(String, nullable=True)  # e.g. "$4.50"


class LedgerOrder(Base):
    """A finalized order in the append-only ledger. Only status is mutable."""
    __tablename__ = "ledger_orders"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(String, nullable=False)  # ISO 8601, UTC
    customer_name = Column(String, nullable=False)
    items_json = Column(Text, nullable=False, default="[]")
    total = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="pending", index=True)
    order_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_ledger_orders_status_id", "status", "id"),
    )
