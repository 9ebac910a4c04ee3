"""
Tests for the HTTP API.
"""
import base64

import pytest

from coffee_bot.main import create_app
from coffee_bot.models import LedgerOrder


def oracle_turn(reply, action, pending=None, needs_more_info=True, order_complete=False):
    return {
        "reply": reply,
        "needs_more_info": needs_more_info,
        "order_complete": order_complete,
        "pending_item": pending,
        "action": action,
    }


LATTE_CONVERSATION = [
    oracle_turn("What size latte?", "ask_size", {"item": "latte"}),
    oracle_turn(
        "Large hot oat latte. Anything else?", "add_item",
        {"item": "latte", "size": "large", "temperature": "hot", "milk": "oat"},
        needs_more_info=False,
    ),
    oracle_turn("That's $4.50.", "finalize_order", None, needs_more_info=False, order_complete=True),
]


class TestHealthAndMenu:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["active_sessions"] == 0

    def test_request_id_header(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert resp.headers["X-Request-ID"] == "req-42"
        assert client.get("/health").headers["X-Request-ID"]

    def test_menu(self, client):
        resp = client.get("/menu")

        assert resp.status_code == 200
        body = resp.json()
        assert body["latte"]["large"] == 4.5
        assert body["croissant"] == 3.25
        assert "oat milk" not in body

    def test_menu_under_api_v1(self, client):
        assert client.get("/api/v1/menu").json() == client.get("/menu").json()


class TestChatTurn:
    """POST /chat/turn"""

    def test_latte_conversation_places_order(self, client, oracle):
        oracle.queue(*LATTE_CONVERSATION)

        first = client.post("/chat/turn", json={"session_id": "s1", "text": "a latte"})
        assert first.status_code == 200
        assert first.json()["action"] == "ask_size"
        assert first.json()["pending_item"] == {"item": "latte"}

        second = client.post("/chat/turn", json={"session_id": "s1", "text": "large hot oat"})
        assert second.json()["items"][0]["price"] == 4.5
        assert second.json()["subtotal"] == 4.5

        third = client.post(
            "/api/v1/chat/turn",
            json={"sessionId": "s1", "text": "that's it", "customerName": "Dana"},
        )
        body = third.json()
        assert third.status_code == 200
        assert body["order_complete"] is True
        assert body["order"]["customer_name"] == "Dana"
        assert body["order"]["total"] == 4.5
        assert body["audio"] is None

        orders = client.get("/orders").json()
        assert len(orders) == 1
        assert orders[0]["order_number"] == body["order"]["order_number"]
        assert orders[0]["items"][0]["milk"] == "oat"
        assert client.get("/health").json()["active_sessions"] == 0

    @pytest.mark.parametrize("payload", [
        {"text": "a latte"},
        {"session_id": "   ", "text": "a latte"},
    ])
    def test_missing_session_id(self, client, oracle, payload):
        resp = client.post("/chat/turn", json=payload)

        assert resp.status_code == 400
        assert oracle.calls == []

    @pytest.mark.parametrize("payload", [
        {"session_id": "s1"},
        {"session_id": "s1", "text": "   "},
    ])
    def test_blank_text(self, client, oracle, session_store, payload):
        resp = client.post("/chat/turn", json=payload)

        assert resp.status_code == 400
        assert oracle.calls == []
        assert "s1" not in session_store

    def test_malformed_oracle_reply_is_502(self, client, oracle, session_store):
        oracle.queue(LATTE_CONVERSATION[0], "Sorry, what?")
        client.post("/chat/turn", json={"session_id": "s1", "text": "a latte"})

        resp = client.post("/chat/turn", json={"session_id": "s1", "text": "large"})

        assert resp.status_code == 502
        assert "detail" in resp.json()
        assert len(session_store.get("s1").history) == 2

    def test_voice_mode_returns_audio(self, client, oracle, fake_tts):
        oracle.queue(LATTE_CONVERSATION[0])

        resp = client.post("/chat/turn", json={"session_id": "s1", "text": "a latte", "mode": "voice"})

        assert resp.status_code == 200
        assert base64.b64decode(resp.json()["audio"]) == b"fake-mp3"
        assert fake_tts.texts == ["What size latte?"]

    def test_voice_mode_survives_tts_failure(self, client, oracle, fake_tts):
        fake_tts.fail = True
        oracle.queue(LATTE_CONVERSATION[0])

        resp = client.post("/chat/turn", json={"session_id": "s1", "text": "a latte", "mode": "voice"})

        assert resp.status_code == 200
        assert resp.json()["audio"] is None
        assert resp.json()["reply"] == "What size latte?"


class TestOrders:
    """POST /orders, GET /orders, PATCH /orders/{row_index}/status"""

    def test_single_message_order(self, client, oracle):
        oracle.queue({
            "items": [{"item": "latte", "size": "large", "price": 4.5}],
            "total": 4.5,
            "response": "Got it! One large latte. That'll be $4.50",
        })

        resp = client.post("/orders", json={"audioText": "large latte", "customerName": "Dana"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["order"]["customer_name"] == "Dana"
        assert body["order"]["status"] == "pending"

        orders = client.get("/api/v1/orders").json()
        assert orders[0]["row_index"] == 0
        assert orders[0]["total"] == 4.5
        assert orders[0]["items"] == [{"item": "latte", "size": "large", "price": 4.5}]

    def test_single_message_clarification(self, client, oracle):
        oracle.queue({"items": [], "total": 0, "response": "What size?"})

        resp = client.post("/orders", json={"text": "a latte"})

        assert resp.json()["order"] is None
        assert client.get("/orders").json() == []

    def test_single_message_blank_text(self, client):
        assert client.post("/orders", json={"text": ""}).status_code == 400

    def test_order_history_decodes_bad_rows(self, client, session_factory):
        db = session_factory()
        db.add(LedgerOrder(
            timestamp="2026-01-01T00:00:00+00:00",
            customer_name="Guest",
            items_json="not json",
            total=3.0,
            status="pending",
            order_number=555,
        ))
        db.commit()
        db.close()

        orders = client.get("/orders").json()

        assert orders[0]["items"] == []
        assert orders[0]["order_number"] == 555

    def test_update_status(self, client, oracle):
        oracle.queue({"items": [{"item": "espresso", "size": "single", "price": 2.0}], "total": 2.0, "response": "ok"})
        client.post("/orders", json={"text": "single espresso"})

        resp = client.patch("/orders/0/status", json={"status": "Ready"})

        assert resp.status_code == 200
        assert resp.json() == {"row_index": 0, "status": "ready"}
        assert client.get("/orders").json()[0]["status"] == "ready"

    def test_update_status_unknown_value(self, client, oracle):
        oracle.queue({"items": [{"item": "espresso", "size": "single", "price": 2.0}], "total": 2.0, "response": "ok"})
        client.post("/orders", json={"text": "single espresso"})

        assert client.patch("/orders/0/status", json={"status": "eaten"}).status_code == 400

    def test_update_status_missing_row(self, client):
        assert client.patch("/orders/7/status", json={"status": "ready"}).status_code == 404


class TestAppWiring:
    """Injected components are used as given, even when empty."""

    def test_empty_session_store_is_kept(self, app, session_store):
        assert len(session_store) == 0
        assert app.state.session_store is session_store

    def test_injected_components_are_used(self, db_engine, menu_source, oracle, fake_ledger, session_store):
        app = create_app(
            bind=db_engine,
            menu_source=menu_source,
            oracle=oracle,
            ledger=fake_ledger,
            session_store=session_store,
            seed_menu=False,
        )

        assert app.state.ledger is fake_ledger
        assert app.state.session_store is session_store
        assert app.state.engine._oracle is oracle
