import json
import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coffee_bot.engine import OrderEngine
from coffee_bot.errors import LedgerError, LedgerRowNotFound
from coffee_bot.ledger import validate_status
from coffee_bot.main import create_app
from coffee_bot.menu import MenuRowData, StaticMenuSource
from coffee_bot.menu_cache import MenuCache
from coffee_bot.models import Base
from coffee_bot.services.order import OrderFinalizer
from coffee_bot.services.session import SessionStore
from coffee_bot.tts import BaseTTSProvider


MENU_ROWS = [
    MenuRowData("Latte", "Small", "$3.50"),
    MenuRowData("Latte", "Medium", "$4.00"),
    MenuRowData("Latte", "Large", "$4.50"),
    MenuRowData("Espresso", "Single", "$2.00"),
    MenuRowData("Espresso", "Double", "$3.00"),
    MenuRowData("Croissant", "", "$3.25"),
    MenuRowData("Oat Milk", "", "$0.00"),
]


class FakeOracle:
    """Replays queued replies in order and records every call.

    Queued dicts are returned as JSON, strings verbatim, and exceptions are raised.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def complete(self, system_prompt, history):
        self.calls.append({
            "system_prompt": system_prompt,
            "history": [dict(m) for m in history],
        })
        if not self.replies:
            raise AssertionError("FakeOracle called with no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class FakeLedger:
    """In-memory ledger with switchable failures."""

    def __init__(self):
        self.rows = []
        self.fail_append = False
        self.fail_read = False

    def append(self, row):
        if self.fail_append:
            raise LedgerError("ledger offline")
        self.rows.append(list(row))

    def read_all(self):
        if self.fail_read:
            raise LedgerError("ledger offline")
        return [list(r) for r in self.rows]

    def update_status(self, row_index, status):
        status = validate_status(status)
        if not 0 <= row_index < len(self.rows):
            raise LedgerRowNotFound(f"No order at row {row_index}")
        self.rows[row_index][4] = status


class FakeTTS(BaseTTSProvider):
    def __init__(self, fail=False):
        self.fail = fail
        self.texts = []

    @property
    def name(self):
        return "Fake"

    async def synthesize(self, text, voice_id=None):
        self.texts.append(text)
        if self.fail:
            raise RuntimeError("tts offline")
        return b"fake-mp3"


@pytest.fixture
def db_engine():
    """In-memory SQLite shared across connections via StaticPool."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def menu_source():
    return StaticMenuSource(MENU_ROWS)


@pytest.fixture
def menu_cache(menu_source):
    return MenuCache(menu_source)


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def finalizer(fake_ledger, session_store):
    return OrderFinalizer(fake_ledger, session_store, rng=random.Random(7))


@pytest.fixture
def engine(session_store, menu_cache, oracle, finalizer):
    return OrderEngine(session_store, menu_cache, oracle, finalizer)


@pytest.fixture
def fake_tts():
    return FakeTTS()


@pytest.fixture
def app(db_engine, menu_source, oracle, session_store, fake_tts):
    return create_app(
        bind=db_engine,
        menu_source=menu_source,
        oracle=oracle,
        session_store=session_store,
        tts_provider=fake_tts,
        seed_menu=False,
    )


@pytest.fixture
def client(app):
    """TestClient with the lifespan (table creation, session sweep) running."""
    with TestClient(app) as test_client:
        yield test_client
