"""
Tests for oracle prompts, reply parsing and the OpenAI client wrapper.
"""
import json
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from coffee_bot.errors import OracleError, OracleResponseError
from coffee_bot.llm_client import (
    ACTIONS,
    OpenAIOracle,
    build_conversation_system_prompt,
    build_single_turn_system_prompt,
    extract_json_object,
    parse_order_reply,
    parse_turn_reply,
)


class TestExtractJsonObject:
    """Recovering a JSON object from oracle text."""

    def test_plain_json(self):
        assert extract_json_object('{"reply": "ok"}') == {"reply": "ok"}

    def test_json_embedded_in_prose(self):
        raw = 'Sure! {"reply":"ok","action":"ask_size"} thanks'

        assert extract_json_object(raw) == {"reply": "ok", "action": "ask_size"}

    def test_fenced_code_block(self):
        raw = 'Here you go:\n```json\n{"reply": "ok", "pending_item": {"item": "latte"}}\n```'

        assert extract_json_object(raw)["pending_item"] == {"item": "latte"}

    def test_skips_braces_that_are_not_json(self):
        raw = 'Menu {latte} ok -> {"reply": "ok"}'

        assert extract_json_object(raw) == {"reply": "ok"}

    @pytest.mark.parametrize("raw", [None, "", "   ", "no json here", "[1, 2, 3]", '{"reply": '])
    def test_unrecoverable(self, raw):
        with pytest.raises(OracleResponseError):
            extract_json_object(raw)

    def test_error_keeps_raw_text(self):
        with pytest.raises(OracleResponseError) as exc_info:
            extract_json_object("nope")

        assert exc_info.value.raw == "nope"


class TestParseTurnReply:
    """Validation of the conversation-turn schema."""

    def test_full_reply(self):
        reply = parse_turn_reply(json.dumps({
            "reply": "What size?",
            "needs_more_info": True,
            "order_complete": False,
            "pending_item": {"item": "latte"},
            "action": "ask_size",
        }))

        assert reply.reply == "What size?"
        assert reply.pending_item == {"item": "latte"}
        assert reply.action == "ask_size"

    def test_defaults(self):
        reply = parse_turn_reply('{"reply": "Hi"}')

        assert reply.needs_more_info is True
        assert reply.order_complete is False
        assert reply.pending_item is None
        assert reply.action == "invalid_request"

    @pytest.mark.parametrize("raw_action", ["Add Item", "add-item", "ADD_ITEM", " add_item "])
    def test_action_spelling_is_normalized(self, raw_action):
        reply = parse_turn_reply(json.dumps({"reply": "ok", "action": raw_action}))

        assert reply.action == "add_item"

    def test_unknown_action_becomes_invalid_request(self):
        reply = parse_turn_reply('{"reply": "ok", "action": "dance"}')

        assert reply.action == "invalid_request"

    def test_missing_reply_is_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_turn_reply('{"action": "ask_size"}')

    def test_all_actions_are_known(self):
        assert set(ACTIONS) == {
            "ask_size", "ask_temperature", "ask_milk", "ask_modifications",
            "add_item", "finalize_order", "invalid_request",
        }


class TestParseOrderReply:
    """Validation of the single-turn order schema."""

    def test_order_reply(self):
        reply = parse_order_reply(
            '{"items": [{"item": "latte", "size": "large", "price": 4.5}], "total": 4.5, "response": "Got it!"}'
        )

        assert reply.items[0].item == "latte"
        assert reply.total == 4.5
        assert reply.response == "Got it!"

    def test_negative_price_is_rejected(self):
        with pytest.raises(OracleResponseError):
            parse_order_reply('{"items": [{"item": "latte", "price": -1}], "total": 0}')


class TestPrompts:
    def test_conversation_prompt_embeds_state(self):
        prompt = build_conversation_system_prompt(
            {"latte": {"large": 4.5}},
            [{"item": "espresso", "size": "double", "price": 3.0}],
            {"item": "latte", "size": "large"},
        )

        assert '"large": 4.5' in prompt
        assert '"espresso"' in prompt
        assert 'PENDING ITEM:\n{"item": "latte", "size": "large"}' in prompt

    def test_conversation_prompt_without_pending(self):
        prompt = build_conversation_system_prompt({}, [], None)

        assert prompt.endswith("PENDING ITEM:\nnull")

    def test_single_turn_prompt_embeds_menu(self):
        prompt = build_single_turn_system_prompt({"latte": {"large": 4.5}})

        assert 'Current menu with prices: {"latte": {"large": 4.5}}' in prompt


def _mock_client(content):
    client = MagicMock()
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    client.chat.completions.create.return_value = completion
    return client


class TestOpenAIOracle:
    """Chat-completions wrapper."""

    def test_complete_sends_system_prompt_and_history(self):
        client = _mock_client('{"reply": "ok"}')
        oracle = OpenAIOracle(model="gpt-4o-mini", temperature=0.2, client=client)

        result = oracle.complete("SYSTEM", [
            {"role": "user", "content": "latte"},
            {"role": "assistant", "content": "size?"},
        ])

        assert result == '{"reply": "ok"}'
        kwargs = client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "SYSTEM"}
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant"]

    def test_default_model_and_temperature(self):
        from coffee_bot import config

        oracle = OpenAIOracle(client=_mock_client("{}"))

        assert oracle.model == config.OPENAI_MODEL
        assert oracle.temperature == config.OPENAI_TEMPERATURE

    def test_empty_content_returns_empty_string(self):
        oracle = OpenAIOracle(client=_mock_client(None))

        assert oracle.complete("SYSTEM", []) == ""

    def test_openai_error_is_wrapped(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("rate limited")
        oracle = OpenAIOracle(client=client)

        with pytest.raises(OracleError):
            oracle.complete("SYSTEM", [])

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "")
        oracle = OpenAIOracle()

        with pytest.raises(OracleError):
            oracle.complete("SYSTEM", [])
