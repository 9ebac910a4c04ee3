"""
Price resolution against a menu snapshot.

An unresolved price is not an error: callers record the line at 0 and let the
conversation tell the customer what could not be priced.
"""

import logging
from typing import Iterable, Mapping, Optional

from .menu import MenuSnapshot, normalize_key

logger = logging.getLogger(__name__)


def resolve_price(menu: MenuSnapshot, item_name: Optional[str], size: Optional[str] = None) -> Optional[float]:
    """
    Look up the price of an item.

    Args:
        menu: Menu snapshot (or any mapping of the same shape)
        item_name: Item name as spoken or typed; normalized before lookup
        size: Size label; ignored for items without size variation

    Returns:
        The price, or None if the item is unknown or the size does not exist
        for a sized item.
    """
    entry = menu.get(normalize_key(item_name))
    if entry is None:
        return None

    if not isinstance(entry, Mapping):
        return float(entry)

    size_key = normalize_key(size)
    if size_key and size_key in entry:
        return float(entry[size_key])

    logger.debug("No price for '%s' in size '%s'", item_name, size)
    return None


def order_total(prices: Iterable[float]) -> float:
    """Sum line prices, rounded to cents."""
    return round(sum(float(p or 0.0) for p in prices), 2)
