"""
Tests for speech synthesis providers.
"""
import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from coffee_bot.tts import OpenAITTSProvider, get_tts_provider


def _provider():
    client = MagicMock()
    client.audio.speech.create = AsyncMock(return_value=MagicMock(content=b"mp3-bytes"))
    return OpenAITTSProvider(client=client, voice="nova"), client


class TestOpenAITTSProvider:
    def test_synthesize_returns_audio(self):
        provider, client = _provider()

        audio = asyncio.run(provider.synthesize("One large latte"))

        assert audio == b"mp3-bytes"
        kwargs = client.audio.speech.create.call_args[1]
        assert kwargs["voice"] == "nova"
        assert kwargs["input"] == "One large latte"
        assert kwargs["response_format"] == "mp3"

    def test_invalid_voice_falls_back(self):
        provider, client = _provider()

        asyncio.run(provider.synthesize("hi", voice_id="robot"))

        assert client.audio.speech.create.call_args[1]["voice"] == "nova"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "")

        with pytest.raises(ValueError):
            get_tts_provider()


class TestSynthesizeBase64:
    """Speech is best-effort."""

    def test_encodes_audio(self):
        provider, _ = _provider()

        encoded = asyncio.run(provider.synthesize_base64("hi"))

        assert base64.b64decode(encoded) == b"mp3-bytes"

    def test_failure_returns_none(self):
        provider, client = _provider()
        client.audio.speech.create.side_effect = RuntimeError("tts down")

        assert asyncio.run(provider.synthesize_base64("hi")) is None

    def test_blank_text_is_skipped(self):
        provider, client = _provider()

        assert asyncio.run(provider.synthesize_base64("  ")) is None
        client.audio.speech.create.assert_not_called()
