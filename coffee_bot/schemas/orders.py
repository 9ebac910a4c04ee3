"""
Order Schemas for Coffee Bot
============================

Pydantic models for placing orders in one message and for the order board
that counter staff work from.

Endpoint Coverage:
------------------
- POST /orders: Parse and place an order from a single message
- GET /orders: Order history, oldest first
- PATCH /orders/{row_index}/status: Move an order along

Order Lifecycle:
----------------
1. **pending**: Placed and waiting to be made
2. **ready**: Made and waiting at the counter
3. **fulfilled**: Picked up
4. **cancelled**: Will not be made

Row Index:
----------
Orders are addressed by their 0-based position in GET /orders, which is the
order they were placed in.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..config import MAX_MESSAGE_LENGTH

logger = logging.getLogger(__name__)


class FinalizedOrderOut(BaseModel):
    """An order as it was written to the ledger."""
    order_number: int
    customer_name: str
    items: List[Dict[str, Any]]
    total: float
    status: str
    timestamp: str
    estimated_wait_minutes: Optional[int] = None


class PlaceOrderRequest(BaseModel):
    """
    Request body for POST /orders.

    Attributes:
        text: The whole order in one message ("a large latte and an espresso")
        customer_name: Name to call out; "Guest" when omitted
    """
    text: Optional[str] = Field(
        default=None,
        max_length=MAX_MESSAGE_LENGTH,
        validation_alias=AliasChoices("text", "audioText"),
    )
    customer_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("customer_name", "customerName"),
    )


class PlaceOrderResponse(BaseModel):
    """
    Response from POST /orders.

    order is null when nothing was placed (nothing recognized, or the
    cashier needs a clarification); response then explains why.
    """
    response: str
    items: List[Dict[str, Any]] = []
    total: float = 0.0
    order: Optional[FinalizedOrderOut] = None


class OrderRecordOut(BaseModel):
    """
    One row of the order history.

    Ledger rows are decoded leniently: a malformed items cell becomes [] and
    an unparseable total becomes 0.
    """
    row_index: int
    timestamp: Optional[str] = None
    customer_name: Optional[str] = None
    items: List[Any] = []
    total: float = 0.0
    status: Optional[str] = None
    order_number: Optional[int] = None

    @field_validator("items", mode="before")
    @classmethod
    def _decode_items(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Ledger row has malformed items JSON; showing no items")
                return []
        return value if isinstance(value, list) else []

    @field_validator("total", mode="before")
    @classmethod
    def _parse_total(cls, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @classmethod
    def from_ledger_row(cls, row_index: int, row: List[Any]) -> "OrderRecordOut":
        cells = list(row) + [None] * (6 - len(row))
        timestamp, customer_name, items, total, status, order_number = cells[:6]
        return cls(
            row_index=row_index,
            timestamp=None if timestamp is None else str(timestamp),
            customer_name=customer_name,
            items=items,
            total=total,
            status=status,
            order_number=order_number,
        )


class OrderStatusUpdate(BaseModel):
    """Request body for PATCH /orders/{row_index}/status."""
    status: str


class OrderStatusOut(BaseModel):
    row_index: int
    status: str
