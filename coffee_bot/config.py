"""
Configuration Module for Coffee Bot
===================================

This module centralizes the configuration settings, environment variables and
constants used throughout the Coffee Bot application. Values are parsed and
typed once at import time so misconfiguration surfaces at startup.

Configuration Categories:
-------------------------
- **Oracle**: OpenAI credentials, model name and sampling temperature used by
  the conversation engine and the single-turn parser.

- **Menu Cache**: How long a fetched menu stays fresh, and what to serve when
  the menu source is unreachable.

- **Session Management**: Idle timeout and sweep interval for the in-memory
  conversation session store.

- **Orders**: Customer name placeholder, order number range and wait-time
  estimate parameters.

- **Input Validation / CORS**: Message length limits and allowed origins.

Environment Variables:
----------------------
- OPENAI_API_KEY: API key for the oracle and speech synthesis
- OPENAI_MODEL: Chat model for the oracle (default: "gpt-4o")
- OPENAI_TEMPERATURE: Sampling temperature (default: 0.7)
- DATABASE_URL: SQLAlchemy URL for menu rows and the order ledger
- MENU_CACHE_TTL_SECONDS: Menu staleness bound (default: 300)
- MENU_FALLBACK: "default" or "empty" (default: "default")
- SEED_MENU: Seed the default menu into an empty menu table (default: "false")
- SESSION_IDLE_TIMEOUT_SECONDS: Idle sessions are swept after this (default: 1800)
- SESSION_SWEEP_INTERVAL_SECONDS: Sweep period (default: 300)
- MAX_MESSAGE_LENGTH: Max utterance length (default: 2000)
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")
- TTS_PROVIDER / TTS_VOICE: Speech synthesis provider and voice

Usage:
------
    from coffee_bot.config import (
        MENU_CACHE_TTL_SECONDS,
        SESSION_IDLE_TIMEOUT_SECONDS,
        DEFAULT_CUSTOMER_NAME,
    )
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load .env from the project root (one level above coffee_bot/)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


# =============================================================================
# Oracle Configuration
# =============================================================================
# The oracle is the OpenAI chat model that interprets utterances. The key is
# read lazily by the client so the app can start (and tests can run) without it.

OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))


def get_openai_api_key() -> str:
    """Return the OpenAI API key from the environment (may be empty)."""
    return os.getenv("OPENAI_API_KEY", "").strip()


# =============================================================================
# Database Configuration
# =============================================================================

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'coffee_bot.db'}")


# =============================================================================
# Menu Cache Configuration
# =============================================================================
# The menu is re-read from the source at most once per TTL window. When the
# source fails, the cache serves a fallback: the hardcoded default menu, or an
# empty menu when MENU_FALLBACK=empty.

MENU_CACHE_TTL_SECONDS: int = int(os.getenv("MENU_CACHE_TTL_SECONDS", "300"))  # 5 minutes
MENU_FALLBACK: str = os.getenv("MENU_FALLBACK", "default").strip().lower()
SEED_MENU: bool = os.getenv("SEED_MENU", "false").lower() == "true"


# =============================================================================
# Session Management Configuration
# =============================================================================
# Conversation sessions live in memory only. A background task removes
# sessions that have been idle longer than the timeout. In-progress orders in
# swept sessions are lost.

SESSION_IDLE_TIMEOUT_SECONDS: int = int(os.getenv("SESSION_IDLE_TIMEOUT_SECONDS", "1800"))  # 30 minutes
SESSION_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))  # 5 minutes


# =============================================================================
# Order Configuration
# =============================================================================

DEFAULT_CUSTOMER_NAME: str = os.getenv("DEFAULT_CUSTOMER_NAME", "Guest")

# Order numbers are called out at the counter, so they stay three digits.
# Uniqueness is not tracked.
ORDER_NUMBER_MIN: int = int(os.getenv("ORDER_NUMBER_MIN", "100"))
ORDER_NUMBER_MAX: int = int(os.getenv("ORDER_NUMBER_MAX", "999"))

# Wait estimate = base + per item + per order already waiting in the ledger
WAIT_BASE_MINUTES: int = int(os.getenv("WAIT_BASE_MINUTES", "2"))
WAIT_MINUTES_PER_ITEM: int = int(os.getenv("WAIT_MINUTES_PER_ITEM", "2"))
WAIT_MINUTES_PER_QUEUED_ORDER: int = int(os.getenv("WAIT_MINUTES_PER_QUEUED_ORDER", "3"))


# =============================================================================
# Input Validation Configuration
# =============================================================================

MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "2000"))


# =============================================================================
# CORS Configuration
# =============================================================================
# Format: comma-separated list of origins, e.g. "https://shop.example.com"
# Default "*" allows all origins (suitable for development only)

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]


# =============================================================================
# Speech Synthesis Configuration
# =============================================================================

TTS_PROVIDER: str = os.getenv("TTS_PROVIDER", "openai").lower()
TTS_VOICE: str = os.getenv("TTS_VOICE", "nova")
