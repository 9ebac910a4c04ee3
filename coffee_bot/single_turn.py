"""
Single-turn order parsing.

A stateless shortcut for callers that send a whole order in one message
("two large lattes and an espresso"). The oracle parses and prices the order
against the current menu in one call; if it found at least one item and a
nonzero total, the order goes straight to the ledger.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .engine import Oracle
from .llm_client import build_single_turn_system_prompt, parse_order_reply
from .menu_cache import MenuCache
from .order_state import FinalizedOrder
from .services.order import OrderFinalizer

logger = logging.getLogger(__name__)


@dataclass
class SingleTurnResult:
    response: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    total: float = 0.0
    order: Optional[FinalizedOrder] = None


class SingleTurnOrderParser:
    def __init__(self, menu_cache: MenuCache, oracle: Oracle, finalizer: OrderFinalizer):
        self._menu_cache = menu_cache
        self._oracle = oracle
        self._finalizer = finalizer

    def parse(self, text: str, customer_name: Optional[str] = None) -> SingleTurnResult:
        """
        Parse and, when possible, persist an order stated in one message.

        Raises:
            OracleError / OracleResponseError: oracle unreachable or unparseable
            LedgerError: the order could not be persisted
        """
        menu = self._menu_cache.get_menu()
        raw = self._oracle.complete(
            build_single_turn_system_prompt(menu.to_dict()),
            [{"role": "user", "content": text}],
        )
        reply = parse_order_reply(raw)
        items = [item.model_dump() for item in reply.items]

        if not items or reply.total <= 0:
            logger.info("Single-turn order not placed (%d items, total $%.2f)", len(items), reply.total)
            return SingleTurnResult(response=reply.response, items=items, total=reply.total)

        order = self._finalizer.record_order(customer_name, items, reply.total)
        return SingleTurnResult(
            response=reply.response,
            items=items,
            total=order.total if order else reply.total,
            order=order,
        )
