"""
Shared route dependencies.

The components a request needs (engine, ledger, menu cache, speech provider)
are built once by create_app() and kept on app.state. These helpers expose
them to routes through FastAPI's Depends().
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request

from ..engine import OrderEngine
from ..ledger import Ledger
from ..menu_cache import MenuCache
from ..single_turn import SingleTurnOrderParser
from ..tts import BaseTTSProvider, get_tts_provider

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> OrderEngine:
    return request.app.state.engine


def get_single_turn_parser(request: Request) -> SingleTurnOrderParser:
    return request.app.state.single_turn_parser


def get_ledger(request: Request) -> Ledger:
    return request.app.state.ledger


def get_menu_cache(request: Request) -> MenuCache:
    return request.app.state.menu_cache


def resolve_tts_provider(app: FastAPI) -> Optional[BaseTTSProvider]:
    """
    Return the app's speech provider, creating it on first use.

    Returns None when no provider can be configured (e.g. no API key);
    voice turns then reply without audio.
    """
    provider = getattr(app.state, "tts_provider", None)
    if provider is not None:
        return provider
    try:
        provider = get_tts_provider()
    except ValueError as e:
        logger.warning("Speech synthesis unavailable: %s", e)
        return None
    app.state.tts_provider = provider
    return provider
