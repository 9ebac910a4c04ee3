"""
In-memory order state for a conversation.

A session accumulates completed line items while one pending item is being
clarified:

    ConversationSession
      items:        [OrderLineItem, ...]   priced, immutable
      pending_item: PendingItem | None     attributes still being collected
      history:      [{"role": ..., "content": ...}, ...]

A PendingItem becomes an OrderLineItem once the oracle says it is complete and
the price has been resolved against the menu.
"""

import json
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

ATTRIBUTE_FIELDS = ("size", "temperature", "milk")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_modifications(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, (list, tuple)):
        return ()
    return tuple(m.strip() for m in value if isinstance(m, str) and m.strip())


@dataclass(frozen=True)
class PendingItem:
    """An order line under construction. Not priced."""
    item: str
    size: Optional[str] = None
    temperature: Optional[str] = None
    milk: Optional[str] = None
    modifications: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["PendingItem"]:
        """Build from oracle attributes. Returns None when no item is named."""
        item = _clean(data.get("item") or data.get("name"))
        if not item:
            return None
        return cls(
            item=item,
            size=_clean(data.get("size")),
            temperature=_clean(data.get("temperature")),
            milk=_clean(data.get("milk")),
            modifications=_clean_modifications(data.get("modifications")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"item": self.item}
        for name in ATTRIBUTE_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.modifications:
            data["modifications"] = list(self.modifications)
        return data


@dataclass(frozen=True)
class OrderLineItem:
    """A completed, priced order line."""
    item: str
    price: float
    size: Optional[str] = None
    temperature: Optional[str] = None
    milk: Optional[str] = None
    modifications: Tuple[str, ...] = ()

    @classmethod
    def from_pending(cls, pending: PendingItem, price: Optional[float]) -> "OrderLineItem":
        return cls(
            item=pending.item,
            price=float(price or 0.0),
            size=pending.size,
            temperature=pending.temperature,
            milk=pending.milk,
            modifications=pending.modifications,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"item": self.item}
        for name in ATTRIBUTE_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.modifications:
            data["modifications"] = list(self.modifications)
        data["price"] = self.price
        return data


@dataclass
class ConversationSession:
    """One customer's in-progress ordering dialogue."""
    session_id: str
    items: List[OrderLineItem] = field(default_factory=list)
    pending_item: Optional[PendingItem] = None
    history: List[Dict[str, str]] = field(default_factory=list)
    last_activity: float = field(default_factory=time.monotonic)

    def working_copy(self) -> "ConversationSession":
        """Copy that can be mutated freely during a turn and committed later."""
        return replace(
            self,
            items=list(self.items),
            history=[dict(turn) for turn in self.history],
        )

    def commit(self, working: "ConversationSession") -> None:
        """Adopt the state computed on a working copy."""
        self.items = list(working.items)
        self.pending_item = working.pending_item
        self.history = [dict(turn) for turn in working.history]

    def add_message(self, role: str, content: str) -> None:
        self.history.append({"role": role, "content": content})


@dataclass(frozen=True)
class FinalizedOrder:
    """A completed order as written to the ledger."""
    customer_name: str
    items: Tuple[Dict[str, Any], ...]
    total: float
    order_number: int
    status: str = "pending"
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    estimated_wait_minutes: Optional[int] = None

    def to_ledger_row(self) -> List[Any]:
        """[timestamp, customer_name, items_json, total, status, order_number]"""
        return [
            self.timestamp,
            self.customer_name,
            json.dumps(list(self.items)),
            self.total,
            self.status,
            self.order_number,
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "customer_name": self.customer_name,
            "items": list(self.items),
            "total": self.total,
            "status": self.status,
            "order_number": self.order_number,
            "estimated_wait_minutes": self.estimated_wait_minutes,
        }
