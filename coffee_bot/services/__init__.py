"""
Services Package for Coffee Bot
===============================

Service modules that hold the business logic around a conversation.

Available Services:
-------------------
- **session**: In-memory conversation sessions with idle expiry
- **order**: Order finalization, order numbers and wait estimates

Usage:
------
    from coffee_bot.services.session import SessionStore
    from coffee_bot.services.order import OrderFinalizer

Or import the entire module:

    from coffee_bot.services import session, order
"""

from . import session
from . import order

__all__ = ["session", "order"]
