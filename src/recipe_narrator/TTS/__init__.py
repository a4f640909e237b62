"""Text-to-Speech (TTS) synthesis components.

This module provides a protocol-based interface for remote speech synthesis
and a factory function to create synthesizer instances for different
providers. Synthesizers return base64 encoded PCM16 audio, or ``None`` when
the provider produced no audio.

Classes:
    SpeechSynthesizerProtocol: Protocol defining the remote TTS interface

Functions:
    get_speech_synthesizer: Factory function to create TTS instances
"""

import os
from typing import Protocol

DEFAULT_SAMPLE_RATE = 24000
DEFAULT_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_VOICE = "Kore"


class SpeechSynthesizerProtocol(Protocol):
    sample_rate: int
    channels: int

    async def synthesize(self, text: str) -> str | None: ...
    async def aclose(self) -> None: ...


def resolve_api_key(api_key: str | None = None) -> str:
    """Return the configured API key, falling back to ``GEMINI_API_KEY``."""
    return (api_key or os.environ.get("GEMINI_API_KEY") or "").strip()


# Factory function
def get_speech_synthesizer(
    provider: str = "gemini",
    *,
    api_key: str | None = None,
    model: str = DEFAULT_MODEL,
    voice: str = DEFAULT_VOICE,
    proxy_url: str = "http://localhost:3002",
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = 1,
    timeout: float = 30.0,
) -> SpeechSynthesizerProtocol:
    """
    Factory function to get an instance of a speech synthesizer based on the specified provider.

    Parameters:
        provider (str): The synthesis provider to use:
            - "gemini": Calls the Gemini TTS model directly with ``api_key``
            - "proxy": Calls the recipe backend's ``/api/tts`` route at ``proxy_url``
        api_key (str | None): Gemini API key, ``GEMINI_API_KEY`` is used when omitted
        model (str): Gemini TTS model name
        voice (str): Prebuilt Gemini voice name
        proxy_url (str): Base URL of the recipe backend
        sample_rate (int): Sample rate of the returned PCM16 audio
        channels (int): Channel count of the returned PCM16 audio
        timeout (float): Transport timeout in seconds for the proxy client

    Returns:
        SpeechSynthesizerProtocol: An instance of the requested speech synthesizer

    Raises:
        ValueError: If the provider is not supported or a Gemini key is missing
    """
    if provider == "gemini":
        from .gemini_tts import GeminiSpeechSynthesizer

        key = resolve_api_key(api_key)
        if not key:
            raise ValueError("Gemini synthesizer selected but GEMINI_API_KEY is not set")
        return GeminiSpeechSynthesizer(
            api_key=key, model=model, voice=voice, sample_rate=sample_rate, channels=channels
        )
    elif provider == "proxy":
        from .proxy_tts import ProxySpeechSynthesizer

        return ProxySpeechSynthesizer(base_url=proxy_url, sample_rate=sample_rate, channels=channels, timeout=timeout)
    else:
        raise ValueError(f"Unsupported speech synthesizer: {provider}")


__all__ = ["SpeechSynthesizerProtocol", "get_speech_synthesizer", "resolve_api_key"]
