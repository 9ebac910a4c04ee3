"""
Schemas Package for Coffee Bot
==============================

Pydantic models used for API request validation and response serialization.

Schema Organization:
--------------------
- **chat.py**: Conversation turn request/response
- **orders.py**: Single-message orders, order history and status updates
- **menu.py**: Menu response

Naming Conventions:
-------------------
- *Out: Response models (e.g., OrderRecordOut) - what API returns
- *Request: Request bodies (e.g., ChatTurnRequest)
- *Response: Composite response structures (e.g., ChatTurnResponse)
"""

from .chat import ChatTurnRequest, ChatTurnResponse
from .menu import MenuOut
from .orders import (
    FinalizedOrderOut,
    OrderRecordOut,
    OrderStatusOut,
    OrderStatusUpdate,
    PlaceOrderRequest,
    PlaceOrderResponse,
)

__all__ = [
    "ChatTurnRequest",
    "ChatTurnResponse",
    "MenuOut",
    "FinalizedOrderOut",
    "OrderRecordOut",
    "OrderStatusOut",
    "OrderStatusUpdate",
    "PlaceOrderRequest",
    "PlaceOrderResponse",
]
