"""
Coffee Bot API
==============

FastAPI application for conversational coffee-counter ordering.

create_app() wires the components together once per application:

    MenuCache(DatabaseMenuSource)      menu with TTL and fallback
    SessionStore                       in-memory conversations + idle sweep
    SqlLedger                          append-only order record
    OrderFinalizer                     totals, order numbers, persistence
    OrderEngine                        one conversation turn at a time
    SingleTurnOrderParser              whole order in one message

Each of them can be passed in instead, which is how the tests substitute
fakes for the language model and the menu source.

Run with:
    uvicorn coffee_bot.main:app --reload
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware

from .config import CORS_ORIGINS, SEED_MENU
from .db import SessionLocal, init_db
from .engine import Oracle, OrderEngine
from .ledger import Ledger, SqlLedger
from .llm_client import OpenAIOracle
from .logging_config import setup_logging
from .menu import DatabaseMenuSource, MenuSource
from .menu_cache import MenuCache
from .routes import chat_router, menu_router, orders_router
from .seed_menu import seed_default_menu
from .services.order import OrderFinalizer
from .services.session import SessionStore
from .single_turn import SingleTurnOrderParser
from .tts import BaseTTSProvider

logger = logging.getLogger(__name__)


# ---------- Request ID Middleware ----------
# Adds a unique request ID to each request for debugging and log correlation


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.
    The ID is available in request.state.request_id and returned in X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


def create_app(
    bind: Optional[Engine] = None,
    menu_source: Optional[MenuSource] = None,
    oracle: Optional[Oracle] = None,
    ledger: Optional[Ledger] = None,
    session_store: Optional[SessionStore] = None,
    tts_provider: Optional[BaseTTSProvider] = None,
    seed_menu: bool = SEED_MENU,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        bind: Database engine (defaults to the DATABASE_URL engine)
        menu_source: Where menu rows come from (defaults to the menu_rows table)
        oracle: Language model client (defaults to OpenAI)
        ledger: Order ledger (defaults to the ledger_orders table)
        session_store: Conversation sessions (defaults to a fresh in-memory store)
        tts_provider: Speech provider (defaults to TTS_PROVIDER, created on first use)
        seed_menu: Seed the default menu into an empty menu table at startup

    Returns:
        Configured FastAPI application
    """
    session_factory: Callable[[], Session] = (
        sessionmaker(autocommit=False, autoflush=False, bind=bind) if bind is not None else SessionLocal
    )

    menu_cache = MenuCache(menu_source if menu_source is not None else DatabaseMenuSource(session_factory))
    sessions = session_store if session_store is not None else SessionStore()
    order_ledger = ledger if ledger is not None else SqlLedger(session_factory)
    language_model = oracle if oracle is not None else OpenAIOracle()
    finalizer = OrderFinalizer(order_ledger, sessions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(bind)
        if seed_menu:
            db = session_factory()
            try:
                if seed_default_menu(db):
                    menu_cache.invalidate()
            finally:
                db.close()

        await sessions.start_background_sweep()
        try:
            yield
        finally:
            await sessions.stop_background_sweep()

    app = FastAPI(
        title="Coffee Bot API",
        description="Conversational ordering for a coffee counter",
        version="1.0.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoints"},
            {"name": "Chat", "description": "Conversational ordering"},
            {"name": "Orders", "description": "Order placement and the order board"},
            {"name": "Menu", "description": "Current menu"},
        ],
    )

    app.state.menu_cache = menu_cache
    app.state.session_store = sessions
    app.state.ledger = order_ledger
    app.state.engine = OrderEngine(sessions, menu_cache, language_model, finalizer)
    app.state.single_turn_parser = SingleTurnOrderParser(menu_cache, language_model, finalizer)
    app.state.tts_provider = tts_provider
    app.state.started_at = time.time()

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(chat_router)
    api_v1.include_router(orders_router)
    api_v1.include_router(menu_router)
    app.include_router(api_v1)

    # Also mount at root for backward compatibility
    app.include_router(chat_router)
    app.include_router(orders_router)
    app.include_router(menu_router)

    @app.get("/health", tags=["Health"])
    def health_check():
        menu_stats = menu_cache.get_stats()
        return {
            "status": "healthy",
            "active_sessions": len(sessions),
            "menu_items": menu_stats["items"],
            "menu_age_seconds": menu_stats["age_seconds"],
            "uptime_seconds": round(time.time() - app.state.started_at, 1),
        }

    logger.info("Application created")
    return app


# Configure logging at module load time
setup_logging()

app = create_app()
