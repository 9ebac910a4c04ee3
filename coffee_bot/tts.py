"""
Text-to-Speech provider abstraction layer.

Voice-mode conversation turns return the cashier's reply as audio alongside
the text. Speech is best-effort: synthesize_base64() never raises, so a TTS
outage degrades a voice turn to a text-only reply.

Usage:
    from coffee_bot.tts import get_tts_provider

    provider = get_tts_provider()
    audio_b64 = await provider.synthesize_base64("One large oat latte, coming up!")
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from openai import AsyncOpenAI

from .config import TTS_PROVIDER, TTS_VOICE, get_openai_api_key

logger = logging.getLogger(__name__)


class TTSProvider(str, Enum):
    """Supported TTS providers."""
    OPENAI = "openai"


@dataclass
class Voice:
    """Represents a TTS voice option."""
    id: str
    name: str
    gender: Optional[str] = None
    description: Optional[str] = None


class BaseTTSProvider(ABC):
    """Abstract base class for TTS providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        """
        Synthesize text to speech.

        Returns:
            Audio data as bytes (MP3 format)
        """
        pass

    async def synthesize_base64(self, text: str) -> Optional[str]:
        """
        Synthesize text and base64-encode it for a JSON response.

        Returns None instead of raising when synthesis fails.
        """
        if not text or not text.strip():
            return None
        try:
            audio = await self.synthesize(text)
        except Exception as e:
            logger.warning("Speech synthesis failed, replying without audio: %s", e)
            return None
        return base64.b64encode(audio).decode("ascii")


class OpenAITTSProvider(BaseTTSProvider):
    """OpenAI Text-to-Speech provider."""

    VOICES = [
        Voice("alloy", "Alloy", "neutral", "Neutral and balanced"),
        Voice("echo", "Echo", "male", "Warm and confident"),
        Voice("onyx", "Onyx", "male", "Deep and authoritative"),
        Voice("nova", "Nova", "female", "Friendly and upbeat"),
        Voice("shimmer", "Shimmer", "female", "Clear and pleasant"),
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "tts-1",
        voice: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI TTS provider.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            model: TTS model to use ("tts-1" for speed, "tts-1-hd" for quality)
            voice: Default voice (defaults to TTS_VOICE)
            client: Preconfigured AsyncOpenAI client
        """
        self.model = model
        self.default_voice = voice or TTS_VOICE

        if client is None:
            api_key = api_key or get_openai_api_key()
            if not api_key:
                raise ValueError("OpenAI API key not found. Set OPENAI_API_KEY environment variable.")
            client = AsyncOpenAI(api_key=api_key)
        self.client = client

        logger.debug("OpenAI TTS provider initialized with model: %s", model)

    @property
    def name(self) -> str:
        return "OpenAI"

    @property
    def voices(self) -> List[Voice]:
        return self.VOICES

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        voice = voice_id or self.default_voice

        valid_voices = [v.id for v in self.VOICES]
        if voice not in valid_voices:
            logger.warning("Invalid voice '%s', using 'nova'", voice)
            voice = "nova"

        logger.debug("Synthesizing %d chars with voice '%s'", len(text), voice)

        response = await self.client.audio.speech.create(
            model=self.model,
            voice=voice,
            input=text,
            response_format="mp3",
        )

        audio_bytes = response.content
        logger.debug("Generated %d bytes of audio", len(audio_bytes))
        return audio_bytes


_PROVIDERS = {
    TTSProvider.OPENAI: OpenAITTSProvider,
}


def get_tts_provider(provider_type: Optional[TTSProvider] = None, **kwargs) -> BaseTTSProvider:
    """
    Create a TTS provider instance.

    Args:
        provider_type: Which provider to use (defaults to TTS_PROVIDER)
        **kwargs: Additional arguments passed to the provider constructor

    Raises:
        ValueError: if the provider is unsupported or missing credentials
    """
    if provider_type is None:
        try:
            provider_type = TTSProvider(TTS_PROVIDER)
        except ValueError:
            logger.warning("Unknown TTS provider '%s', defaulting to OpenAI", TTS_PROVIDER)
            provider_type = TTSProvider.OPENAI

    provider_class = _PROVIDERS[provider_type]
    provider = provider_class(**kwargs)
    logger.info("Initialized TTS provider: %s", provider.name)
    return provider
