"""
Routes Package for Coffee Bot
=============================

API route definitions organized by area. Each module defines a FastAPI
APIRouter with related endpoints grouped together.

- chat.py: Conversational ordering (one turn per request)
- orders.py: Single-message orders, order history and status updates
- menu.py: Current menu

Router Registration:
--------------------
All routers are registered in main.py under two prefixes:
1. /api/v1/* - Versioned API (recommended)
2. /* - Root paths for backward compatibility

Route Dependencies:
-------------------
Components live on app.state and are injected via Depends() helpers in
deps.py (get_engine, get_ledger, get_menu_cache, ...).

Error Handling:
---------------
Routes raise HTTPException for error conditions:
- 400: Bad request (missing fields, unknown status)
- 404: Not found (no order at that row)
- 500: Order ledger unavailable
- 502: Language model unavailable or unusable reply
"""

from .chat import chat_router
from .menu import menu_router
from .orders import orders_router

__all__ = [
    "chat_router",
    "menu_router",
    "orders_router",
]
