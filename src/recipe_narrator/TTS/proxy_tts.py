"""Remote speech synthesis through the recipe backend's TTS route."""

import httpx
from loguru import logger


class ProxySpeechSynthesizer:
    """Posts narration text to ``/api/tts`` and returns the ``audio`` field.

    The backend answers ``{"audio": <base64>, "format": "base64"}`` on
    success and a non-2xx status with an ``error`` message otherwise.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3002",
        sample_rate: int = 24000,
        channels: int = 1,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sample_rate = sample_rate
        self.channels = channels
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def synthesize(self, text: str) -> str | None:
        """Request speech for ``text``.

        Returns:
            str | None: Base64 PCM16 audio, or None if the backend returned none

        Raises:
            httpx.HTTPError: If the request fails or the backend reports an error status
        """
        response = await self._client.post(f"{self.base_url}/api/tts", json={"text": text})
        response.raise_for_status()
        data = response.json()
        audio = data.get("audio") if isinstance(data, dict) else None
        if not audio:
            logger.debug(f"TTS proxy: no audio in response from {self.base_url}")
            return None
        return str(audio)

    async def aclose(self) -> None:
        await self._client.aclose()
