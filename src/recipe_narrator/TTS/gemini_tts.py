"""Remote speech synthesis using the Gemini TTS models."""

import base64
from typing import Any

from google import genai
from google.genai import types
from loguru import logger


class GeminiSpeechSynthesizer:
    """Synthesizes narration with a Gemini TTS model.

    The model answers with a single inline audio part holding raw PCM16 mono
    audio at 24 kHz. The SDK hands the part back as bytes, which are
    re-encoded to base64 so every synthesizer returns the same payload shape.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash-preview-tts",
        voice: str = "Kore",
        sample_rate: int = 24000,
        channels: int = 1,
        client: Any = None,
    ) -> None:
        self.model = model
        self.voice = voice
        self.sample_rate = sample_rate
        self.channels = channels
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def _config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice),
                )
            ),
        )

    async def synthesize(self, text: str) -> str | None:
        """Request speech for ``text``.

        Returns:
            str | None: Base64 PCM16 audio, or None if the response carried no audio part
        """
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=text,
            config=self._config(),
        )

        candidates = getattr(response, "candidates", None) or []
        if not candidates or candidates[0].content is None:
            logger.debug("Gemini TTS: response had no candidates")
            return None
        parts = candidates[0].content.parts or []
        inline_data = getattr(parts[0], "inline_data", None) if parts else None
        data = getattr(inline_data, "data", None)
        if not data:
            logger.debug("Gemini TTS: response had no inline audio data")
            return None
        if isinstance(data, str):
            return data
        return base64.b64encode(data).decode("ascii")

    async def aclose(self) -> None:
        """Release the async HTTP session held by the genai client."""
        await self._client.aio.aclose()
