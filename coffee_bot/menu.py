"""
Menu Model and Sources
======================

The menu is a mapping from normalized item name to either a single price
(flat items such as a cookie) or a mapping of normalized size label to price
(sized items such as a latte):

    {
        "latte": {"small": 3.5, "medium": 4.0, "large": 4.5},
        "croissant": 3.25,
    }

Raw rows come from a menu source and are normalized here. A row only becomes
part of the menu when it has a nonempty item name and a positive, finite
price. Rows with a zero price (modifier rows such as "oat milk" that are not
sold on their own) and rows with unparseable prices are dropped.

When the same item shows up with both sized and size-less rows, the sized
rows win and the flat rows are dropped with a warning. This keeps the result
independent of row order.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from sqlalchemy.orm import Session

from .errors import MenuSourceError
from .models import MenuRow

logger = logging.getLogger(__name__)

MenuEntry = Union[float, Mapping[str, float]]


# Served when the menu source is unreachable
DEFAULT_MENU: Dict[str, Dict[str, float]] = {
    "coffee": {"small": 2.50, "medium": 3.00, "large": 3.50},
    "latte": {"small": 3.50, "medium": 4.00, "large": 4.50},
    "cappuccino": {"small": 3.50, "medium": 4.00, "large": 4.50},
    "espresso": {"single": 2.00, "double": 3.00},
}


@dataclass(frozen=True)
class MenuRowData:
    """A raw price-list row as delivered by a menu source."""
    item: Optional[str]
    size: Optional[str] = None
    price: Optional[str] = None


def normalize_key(value: Optional[str]) -> str:
    """Lowercase and trim a menu key. None becomes an empty string."""
    return (value or "").strip().lower()


def parse_price(raw: Any) -> Optional[float]:
    """
    Parse a price cell into a positive float.

    Accepts numbers and strings like "4.50", "$4.50" or "$1,200.00".
    Returns None for blank, zero, negative, non-finite or unparseable values.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace("$", "").replace(",", "").strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_menu_rows(rows: Iterable[MenuRowData]) -> Dict[str, MenuEntry]:
    """
    Build a menu mapping from raw rows.

    Args:
        rows: Raw rows in source order

    Returns:
        Dict of normalized item name -> flat price or {size: price}
    """
    flat: Dict[str, float] = {}
    sized: Dict[str, Dict[str, float]] = {}
    skipped = 0

    for row in rows:
        item = normalize_key(row.item)
        price = parse_price(row.price)
        if not item or price is None:
            skipped += 1
            continue

        size = normalize_key(row.size)
        if size:
            sized.setdefault(item, {})[size] = price
        else:
            flat[item] = price

    menu: Dict[str, MenuEntry] = dict(sized)
    for item, price in flat.items():
        if item in sized:
            logger.warning("Menu item '%s' has both sized and flat rows; using sized prices", item)
            continue
        menu[item] = price

    if skipped:
        logger.debug("Skipped %d menu rows without a name or a positive price", skipped)

    return menu


@dataclass(frozen=True)
class MenuSnapshot:
    """Immutable view of the menu at one point in time."""
    entries: Mapping[str, MenuEntry] = field(default_factory=dict)
    fetched_at: float = 0.0
    is_fallback: bool = False

    def __post_init__(self):
        frozen = {
            name: MappingProxyType(dict(entry)) if isinstance(entry, Mapping) else entry
            for name, entry in self.entries.items()
        }
        object.__setattr__(self, "entries", MappingProxyType(frozen))

    @classmethod
    def from_rows(cls, rows: Iterable[MenuRowData], fetched_at: Optional[float] = None) -> "MenuSnapshot":
        return cls(
            entries=parse_menu_rows(rows),
            fetched_at=time.time() if fetched_at is None else fetched_at,
        )

    def __getitem__(self, item: str) -> MenuEntry:
        return self.entries[item]

    def __contains__(self, item: object) -> bool:
        return item in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def get(self, item: str, default: Any = None) -> Any:
        return self.entries.get(item, default)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-serializable copy of the menu."""
        return {
            name: dict(entry) if isinstance(entry, Mapping) else entry
            for name, entry in self.entries.items()
        }


def default_snapshot(fetched_at: Optional[float] = None) -> MenuSnapshot:
    return MenuSnapshot(
        entries=DEFAULT_MENU,
        fetched_at=time.time() if fetched_at is None else fetched_at,
        is_fallback=True,
    )


def empty_snapshot(fetched_at: Optional[float] = None) -> MenuSnapshot:
    return MenuSnapshot(
        entries={},
        fetched_at=time.time() if fetched_at is None else fetched_at,
        is_fallback=True,
    )


# =============================================================================
# Menu Sources
# =============================================================================

class MenuSource(Protocol):
    """Anything that can produce raw menu rows."""

    def fetch_rows(self) -> List[MenuRowData]:
        ...


class StaticMenuSource:
    """In-memory menu rows. Used for seeding and tests."""

    def __init__(self, rows: Iterable[MenuRowData]):
        self._rows = list(rows)

    def fetch_rows(self) -> List[MenuRowData]:
        return list(self._rows)


class DatabaseMenuSource:
    """Reads the price list from the menu_rows table in insertion order."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def fetch_rows(self) -> List[MenuRowData]:
        db = self._session_factory()
        try:
            records = db.query(MenuRow).order_by(MenuRow.id).all()
            return [MenuRowData(item=r.item, size=r.size, price=r.price) for r in records]
        except Exception as e:
            raise MenuSourceError(f"Failed to read menu rows: {e}") from e
        finally:
            db.close()
