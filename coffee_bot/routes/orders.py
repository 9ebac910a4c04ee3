"""
Order Routes for Coffee Bot
===========================

Endpoints for placing an order in a single message and for the order board
the counter works from.

Endpoints:
----------
- POST /orders: Parse a whole order from one message and place it
- GET /orders: All orders, oldest first, with their row_index
- PATCH /orders/{row_index}/status: Set status (pending, ready, fulfilled, cancelled)

Single-Message Orders:
----------------------
POST /orders is stateless. If the message names at least one menu item
with a price the order is placed immediately; otherwise the response just
carries the cashier's reply (usually a clarification question) and
"order" is null.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..errors import LedgerError, LedgerRowNotFound, OracleError, OracleResponseError
from ..ledger import Ledger
from ..schemas.orders import (
    FinalizedOrderOut,
    OrderRecordOut,
    OrderStatusOut,
    OrderStatusUpdate,
    PlaceOrderRequest,
    PlaceOrderResponse,
)
from ..single_turn import SingleTurnOrderParser
from .deps import get_ledger, get_single_turn_parser


logger = logging.getLogger(__name__)

# Router definition
orders_router = APIRouter(prefix="/orders", tags=["Orders"])


@orders_router.post("", response_model=PlaceOrderResponse)
def place_order(
    req: PlaceOrderRequest,
    parser: SingleTurnOrderParser = Depends(get_single_turn_parser),
) -> PlaceOrderResponse:
    """Place an order stated in one message."""
    text = (req.text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="text is required")

    try:
        result = parser.parse(text, req.customer_name)
    except OracleResponseError as e:
        logger.warning("Unusable oracle reply for single-message order: %s", e)
        raise HTTPException(status_code=502, detail="Could not understand the order assistant. Please try again.")
    except OracleError as e:
        logger.error("Oracle unavailable for single-message order: %s", e)
        raise HTTPException(status_code=502, detail="The order assistant is unavailable. Please try again.")
    except LedgerError as e:
        logger.error("Failed to save single-message order: %s", e)
        raise HTTPException(status_code=500, detail="Failed to process order")

    return PlaceOrderResponse(
        response=result.response,
        items=result.items,
        total=result.total,
        order=FinalizedOrderOut(**result.order.to_dict()) if result.order else None,
    )


@orders_router.get("", response_model=List[OrderRecordOut])
def list_orders(ledger: Ledger = Depends(get_ledger)) -> List[OrderRecordOut]:
    """Order history, oldest first."""
    try:
        rows = ledger.read_all()
    except LedgerError as e:
        logger.error("Failed to read orders: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch orders")

    return [OrderRecordOut.from_ledger_row(index, row) for index, row in enumerate(rows)]


@orders_router.patch("/{row_index}/status", response_model=OrderStatusOut)
def update_order_status(
    row_index: int,
    payload: OrderStatusUpdate,
    ledger: Ledger = Depends(get_ledger),
) -> OrderStatusOut:
    """Move an order to a new status."""
    try:
        ledger.update_status(row_index, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LedgerRowNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except LedgerError as e:
        logger.error("Failed to update order %d: %s", row_index, e)
        raise HTTPException(status_code=500, detail="Failed to update order status")

    return OrderStatusOut(row_index=row_index, status=payload.status.strip().lower())
