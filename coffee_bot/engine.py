"""
Order Construction Engine
=========================

Drives one conversation turn: sends the dialogue and the current order state
to the oracle, interprets its structured reply, updates the session and
decides whether the order is complete.

Per-session states are implicit in the session's shape:

    Empty       no pending item, nothing ordered yet
    Clarifying  a pending item exists and is missing attributes
    ItemReady   oracle says "add_item" -> item priced and appended, pending cleared
    Finalizing  oracle says the order is complete and at least one item exists

Domain judgment (which sizes exist, whether espresso can be iced, etc.) is the
oracle's job via the instruction prompt. The engine only keeps the books:
pending item, completed items, history and persistence.

Atomicity:
----------
Each turn runs on a working copy of the session. The copy is committed only
after the oracle reply has been parsed and, when the order completes, the
ledger append has succeeded. A malformed oracle reply or a ledger failure
leaves the session exactly as it was before the turn.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .llm_client import build_conversation_system_prompt, parse_turn_reply
from .menu_cache import MenuCache
from .order_state import ConversationSession, FinalizedOrder, OrderLineItem, PendingItem
from .pricing import order_total, resolve_price
from .services.order import OrderFinalizer
from .services.session import SessionStore

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    def complete(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        ...


@dataclass
class TurnResult:
    """Outcome of one conversation turn."""
    reply: str
    action: str
    needs_more_info: bool
    order_complete: bool = False
    pending_item: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = field(default_factory=list)
    subtotal: float = 0.0
    unpriced_items: List[str] = field(default_factory=list)
    order: Optional[FinalizedOrder] = None


def _describe(pending: PendingItem) -> str:
    return f"{pending.size} {pending.item}" if pending.size else pending.item


class OrderEngine:
    """Conversation state machine over the session store."""

    def __init__(
        self,
        session_store: SessionStore,
        menu_cache: MenuCache,
        oracle: Oracle,
        finalizer: OrderFinalizer,
    ):
        self._sessions = session_store
        self._menu_cache = menu_cache
        self._oracle = oracle
        self._finalizer = finalizer

    def handle_turn(
        self,
        session_id: str,
        utterance: str,
        customer_name: Optional[str] = None,
    ) -> TurnResult:
        """
        Process one customer utterance.

        Args:
            session_id: Caller-supplied session identifier
            utterance: What the customer said or typed
            customer_name: Name for the order, used if this turn completes it

        Returns:
            TurnResult with the reply and the order state after the turn.
            When the order completed, TurnResult.order holds the persisted order.

        Raises:
            OracleError / OracleResponseError: oracle unreachable or unparseable
            LedgerError: the completed order could not be persisted
            In all three cases the session is unchanged.
        """
        with self._sessions.lock(session_id):
            session = self._sessions.get_or_create(session_id)
            return self._run_turn(session, utterance, customer_name)

    def _run_turn(
        self,
        session: ConversationSession,
        utterance: str,
        customer_name: Optional[str],
    ) -> TurnResult:
        working = session.working_copy()
        working.add_message("user", utterance)

        menu = self._menu_cache.get_menu()
        system_prompt = build_conversation_system_prompt(
            menu.to_dict(),
            [line.to_dict() for line in working.items],
            working.pending_item.to_dict() if working.pending_item else None,
        )

        raw = self._oracle.complete(system_prompt, working.history)
        reply = parse_turn_reply(raw)
        logger.debug(
            "Session %s: action=%s needs_more_info=%s order_complete=%s",
            session.session_id[:8], reply.action, reply.needs_more_info, reply.order_complete,
        )

        # The oracle saw the previous pending item, so its version is complete
        if reply.pending_item:
            pending = PendingItem.from_dict(reply.pending_item)
            if pending is not None:
                working.pending_item = pending

        unpriced: List[str] = []
        if reply.action == "add_item" and working.pending_item is not None:
            pending = working.pending_item
            price = resolve_price(menu, pending.item, pending.size)
            if price is None:
                logger.warning("Could not price '%s' (size=%s); recording at $0.00", pending.item, pending.size)
                unpriced.append(_describe(pending))
            working.items.append(OrderLineItem.from_pending(pending, price))
            working.pending_item = None

        reply_text = reply.reply
        if unpriced:
            reply_text += (
                f" (I couldn't find a price for {', '.join(unpriced)}, "
                "so it's on your order at $0.00 for now.)"
            )

        order: Optional[FinalizedOrder] = None
        if reply.order_complete and working.items:
            order = self._finalizer.finalize(working, customer_name)
            if order is None:
                reply_text += " I couldn't put a price on anything in this order yet, so it hasn't been placed."
            elif order.estimated_wait_minutes is not None:
                reply_text += (
                    f" Your order number is {order.order_number}"
                    f" and it'll be ready in about {order.estimated_wait_minutes} minutes."
                )

        working.add_message("assistant", reply_text)

        if order is None:
            session.commit(working)

        return TurnResult(
            reply=reply_text,
            action=reply.action,
            needs_more_info=reply.needs_more_info if order is None else False,
            order_complete=order is not None,
            pending_item=working.pending_item.to_dict() if working.pending_item else None,
            items=[line.to_dict() for line in working.items],
            subtotal=order_total(line.price for line in working.items),
            unpriced_items=unpriced,
            order=order,
        )
