"""
Menu Routes for Coffee Bot
==========================

- GET /menu: The current menu, as the cashier sees it

Served from the menu cache, so this never fails: when the menu table cannot
be read the fallback menu is returned.
"""

from fastapi import APIRouter, Depends

from ..menu_cache import MenuCache
from ..schemas.menu import MenuOut
from .deps import get_menu_cache


menu_router = APIRouter(prefix="/menu", tags=["Menu"])


@menu_router.get("", response_model=MenuOut)
def get_menu(menu_cache: MenuCache = Depends(get_menu_cache)):
    return menu_cache.get_menu().to_dict()
