"""
Chat Schemas for Coffee Bot
===========================

Pydantic models for the conversation endpoint, which takes one customer
utterance per request and returns the cashier's reply together with the
order state after the turn.

Endpoint Coverage:
------------------
- POST /chat/turn: Process one conversation turn

Key Concepts:
-------------
1. **Sessions**: The caller picks the session_id and sends it with every
   turn. A session is created on first use and removed once its order is
   finalized or it sits idle past the timeout.

2. **Actions**: Each reply carries the action the cashier took (ask_size,
   ask_milk, add_item, finalize_order, ...), so a frontend can update the
   cart without parsing the reply text.

3. **Voice mode**: With mode="voice" the reply is also returned as base64
   MP3 audio. Audio is best-effort and is null if synthesis fails.

Validation:
-----------
- session_id and text are checked by the route (HTTP 400 when missing or
  blank) rather than by pydantic, so a bad request never touches a session.
- text cannot exceed MAX_MESSAGE_LENGTH (default: 2000 chars).
- camelCase field names (sessionId, customerName) are accepted too.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from ..config import MAX_MESSAGE_LENGTH
from .orders import FinalizedOrderOut


class ChatTurnRequest(BaseModel):
    """
    Request body for one conversation turn.

    Attributes:
        session_id: Caller-chosen session identifier
        text: Customer's utterance (typed, or already transcribed speech)
        customer_name: Name to call out when the order is ready
        mode: "text" or "voice"; voice also returns synthesized audio
    """
    session_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )
    text: Optional[str] = Field(
        default=None,
        max_length=MAX_MESSAGE_LENGTH,
        validation_alias=AliasChoices("text", "message", "audioText"),
    )
    customer_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("customer_name", "customerName"),
    )
    mode: Literal["text", "voice"] = "text"


class ChatTurnResponse(BaseModel):
    """
    Response from one conversation turn.

    Attributes:
        reply: What the cashier says
        action: Action the cashier took this turn
        needs_more_info: True while the current item still has open questions
        order_complete: True when this turn placed the order
        pending_item: Item still being clarified, if any
        items: Confirmed, priced line items so far
        subtotal: Sum of the confirmed line prices
        unpriced_items: Items added this turn that had no menu price ($0.00)
        order: The placed order when order_complete is true
        audio: Base64 MP3 of the reply (voice mode only)
    """
    session_id: str
    reply: str
    action: str
    needs_more_info: bool
    order_complete: bool = False
    pending_item: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = []
    subtotal: float = 0.0
    unpriced_items: List[str] = []
    order: Optional[FinalizedOrderOut] = None
    audio: Optional[str] = None
