"""
Order Persistence Service for Coffee Bot
========================================

This module turns a finished conversation (or a single-turn order) into a
FinalizedOrder and appends it to the ledger.

Key Functions:
--------------
- OrderFinalizer.finalize: Persist a conversation's completed items and clear
  the session
- OrderFinalizer.record_order: Persist an already-priced list of items (used
  by the single-turn parser)
- estimate_wait_minutes: Wait-time estimate shown to the customer

Order Lifecycle:
----------------
1. Customer builds the order in a session (not persisted)
2. Oracle signals the order is complete -> finalize()
3. Ledger append succeeds -> session deleted, status "pending"
4. Counter staff move the status along (ready / fulfilled / cancelled)

Persistence Rule:
-----------------
An order reaches the ledger only if it has at least one line item AND a
nonzero total. Anything else is relayed back to the customer instead.

Failure Handling:
-----------------
If the ledger append fails, LedgerError propagates and the session is left
in place so the customer can try again. The session is deleted only after a
successful append.

Order Numbers:
--------------
Order numbers are random three-digit numbers called out at the counter.
Collisions with other open orders are possible and not checked.
"""

import logging
import random
from typing import Any, Dict, Iterable, List, Optional

from ..config import (
    DEFAULT_CUSTOMER_NAME,
    ORDER_NUMBER_MAX,
    ORDER_NUMBER_MIN,
    WAIT_BASE_MINUTES,
    WAIT_MINUTES_PER_ITEM,
    WAIT_MINUTES_PER_QUEUED_ORDER,
)
from ..errors import LedgerError
from ..ledger import INITIAL_STATUS, Ledger
from ..order_state import ConversationSession, FinalizedOrder
from ..pricing import order_total
from .session import SessionStore


logger = logging.getLogger(__name__)

STATUS_COLUMN = 4


def estimate_wait_minutes(item_count: int, queued_orders: int) -> int:
    """Minutes until an order of item_count lines is ready behind queued_orders."""
    return (
        WAIT_BASE_MINUTES
        + WAIT_MINUTES_PER_ITEM * max(item_count, 0)
        + WAIT_MINUTES_PER_QUEUED_ORDER * max(queued_orders, 0)
    )


def normalize_customer_name(customer_name: Optional[str]) -> str:
    if isinstance(customer_name, str) and customer_name.strip():
        return customer_name.strip()
    return DEFAULT_CUSTOMER_NAME


class OrderFinalizer:
    """Computes totals, allocates order numbers and writes to the ledger."""

    def __init__(
        self,
        ledger: Ledger,
        session_store: SessionStore,
        rng: Optional[random.Random] = None,
    ):
        self._ledger = ledger
        self._session_store = session_store
        self._rng = rng or random.Random()

    def allocate_order_number(self) -> int:
        return self._rng.randint(ORDER_NUMBER_MIN, ORDER_NUMBER_MAX)

    def _queued_orders(self) -> int:
        """Orders still pending in the ledger. Best-effort; 0 if unreadable."""
        try:
            rows = self._ledger.read_all()
        except LedgerError as e:
            logger.warning("Could not read ledger for wait estimate: %s", e)
            return 0
        return sum(
            1 for row in rows
            if len(row) > STATUS_COLUMN and str(row[STATUS_COLUMN]).lower() == INITIAL_STATUS
        )

    def record_order(
        self,
        customer_name: Optional[str],
        items: Iterable[Dict[str, Any]],
        total: Optional[float] = None,
    ) -> Optional[FinalizedOrder]:
        """
        Append an order to the ledger.

        Args:
            customer_name: Name to call out; defaults to the placeholder
            items: Line items as dicts, each with a "price"
            total: Order total; computed from the line prices when omitted

        Returns:
            The FinalizedOrder, or None if there were no items or the total
            is zero (nothing is written in that case)

        Raises:
            LedgerError: if the append fails
        """
        items: List[Dict[str, Any]] = list(items)
        if total is None:
            total = order_total(item.get("price", 0.0) for item in items)
        total = round(float(total), 2)

        if not items or total <= 0:
            logger.info("Not persisting order with %d items and total $%.2f", len(items), total)
            return None

        queued = self._queued_orders()
        order = FinalizedOrder(
            customer_name=normalize_customer_name(customer_name),
            items=tuple(items),
            total=total,
            order_number=self.allocate_order_number(),
            status=INITIAL_STATUS,
            estimated_wait_minutes=estimate_wait_minutes(len(items), queued),
        )

        self._ledger.append(order.to_ledger_row())
        logger.info(
            "Order #%d persisted for %s: %d items, total=$%.2f, wait ~%d min",
            order.order_number, order.customer_name, len(items), total, order.estimated_wait_minutes,
        )
        return order

    def finalize(self, session: ConversationSession, customer_name: Optional[str] = None) -> Optional[FinalizedOrder]:
        """
        Persist a session's completed items and clear the session.

        Returns:
            The FinalizedOrder, or None when the session has no items or the
            items total to zero (the session is kept in that case)

        Raises:
            LedgerError: if the append fails; the session is kept for retry
        """
        items = [line.to_dict() for line in session.items]
        order = self.record_order(customer_name, items)
        if order is None:
            return None

        self._session_store.delete(session.session_id)
        logger.info("Session %s finalized as order #%d", session.session_id[:8], order.order_number)
        return order
