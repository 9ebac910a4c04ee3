"""
Menu Schemas for Coffee Bot
===========================

GET /menu returns the normalized menu as a plain mapping, the same shape the
cashier sees in its instructions:

    {
        "latte": {"small": 3.5, "medium": 4.0, "large": 4.5},
        "croissant": 3.25
    }

Flat items map to a price; sized items map to {size: price}.
"""

from typing import Dict, Union

from pydantic import RootModel

MenuOut = RootModel[Dict[str, Union[float, Dict[str, float]]]]
