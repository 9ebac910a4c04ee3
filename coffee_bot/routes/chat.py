"""
Chat Routes for Coffee Bot
==========================

The conversational ordering endpoint. Each request carries one customer
utterance; the cashier replies, asking for whatever the current item is
still missing, until the customer says they are done and the order is
placed.

Endpoints:
----------
- POST /chat/turn: Process one conversation turn

Conversation Flow:
------------------
1. Client picks a session_id and sends the first utterance
2. Cashier asks for size, temperature, milk, modifications as needed
3. Each completed item is priced from the menu and added to the order
4. When the customer is done, the order is written to the ledger, the
   response carries the order number and wait estimate, and the session ends

Error Handling:
---------------
- 400: session_id or text missing/blank (no session is touched)
- 502: The language model failed or replied with something unusable; the
  session is left as it was so the customer can simply repeat themselves
- 500: The finished order could not be saved; the session is kept for retry

Voice Mode:
-----------
With mode="voice" the reply is synthesized to MP3 and returned base64
encoded in "audio". Synthesis failure only drops the audio.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from ..engine import OrderEngine
from ..errors import LedgerError, OracleError, OracleResponseError
from ..schemas.chat import ChatTurnRequest, ChatTurnResponse
from ..schemas.orders import FinalizedOrderOut
from .deps import get_engine, resolve_tts_provider


logger = logging.getLogger(__name__)

# Router definition
chat_router = APIRouter(prefix="/chat", tags=["Chat"])


@chat_router.post("/turn", response_model=ChatTurnResponse)
async def chat_turn(
    req: ChatTurnRequest,
    request: Request,
    engine: OrderEngine = Depends(get_engine),
) -> ChatTurnResponse:
    """Process one customer utterance and return the cashier's reply."""
    session_id = (req.session_id or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id is required")

    text = (req.text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="text is required")

    # The engine blocks on the oracle and the database
    try:
        result = await run_in_threadpool(engine.handle_turn, session_id, text, req.customer_name)
    except OracleResponseError as e:
        logger.warning("Unusable oracle reply for session %s: %s", session_id[:8], e)
        raise HTTPException(status_code=502, detail="Could not understand the order assistant. Please try again.")
    except OracleError as e:
        logger.error("Oracle unavailable for session %s: %s", session_id[:8], e)
        raise HTTPException(status_code=502, detail="The order assistant is unavailable. Please try again.")
    except LedgerError as e:
        logger.error("Failed to save order for session %s: %s", session_id[:8], e)
        raise HTTPException(status_code=500, detail="Failed to save order")

    audio = None
    if req.mode == "voice":
        provider = resolve_tts_provider(request.app)
        if provider is not None:
            audio = await provider.synthesize_base64(result.reply)

    return ChatTurnResponse(
        session_id=session_id,
        reply=result.reply,
        action=result.action,
        needs_more_info=result.needs_more_info,
        order_complete=result.order_complete,
        pending_item=result.pending_item,
        items=result.items,
        subtotal=result.subtotal,
        unpriced_items=result.unpriced_items,
        order=FinalizedOrderOut(**result.order.to_dict()) if result.order else None,
        audio=audio,
    )
