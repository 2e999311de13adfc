import json
from typing import Dict, Optional

import httpx

from narration.core.config import settings
from narration.core.errors import SynthesisFailed
from narration.core.logger import logger
from narration.models.narration import Container, SynthesisOptions


class DeepgramTTSService:
    """Synthesize one chunk of text with the Deepgram speak API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_chars: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.deepgram_api_key
        self.base_url = base_url or settings.deepgram_base_url
        self.max_chars = max_chars or settings.tts_max_chars
        self.timeout = timeout or settings.tts_timeout_seconds
        # Shared client when given (app lifetime); otherwise one client per request
        self._client = client

        if not self.api_key:
            logger.warning("Deepgram API key not found - synthesis will fail")
        else:
            logger.info("Deepgram TTS service initialized successfully")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build_params(self, options: SynthesisOptions) -> Dict[str, str]:
        """Query parameters for one request; container-specific fields only where they apply."""
        container = Container.parse(options.container)
        params = {"model": options.model, "container": container.value}
        if container == Container.WAV:
            params["encoding"] = options.encoding or "linear16"
            params["sample_rate"] = str(options.sample_rate or 48000)
        if container == Container.MP3 and options.bit_rate:
            params["bit_rate"] = str(options.bit_rate)
        return params

    async def synthesize(self, text: str, options: SynthesisOptions) -> bytes:
        """Synthesize ``text`` and return the raw audio bytes.

        Raises:
            ValueError: ``text`` is longer than the provider accepts.
            SynthesisFailed: Missing key, network error, or non-2xx response.
        """
        if len(text) > self.max_chars:
            raise ValueError(f"Chunk of {len(text)} chars exceeds the {self.max_chars} char limit")
        if not self.api_key:
            raise SynthesisFailed(None, "DEEPGRAM_API_KEY not configured")

        params = self.build_params(options)
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = json.dumps({"text": text})

        logger.debug(f"Sending {len(text)} chars to Deepgram ({params['model']}, {params['container']})")
        try:
            if self._client is not None:
                resp = await self._client.post(self.base_url, params=params, headers=headers, content=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.base_url, params=params, headers=headers, content=payload)
        except httpx.HTTPError as e:
            raise SynthesisFailed(None, str(e) or e.__class__.__name__) from e

        if not resp.is_success:
            raise SynthesisFailed(resp.status_code, self._error_message(resp))

        return resp.content

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            return json.dumps(resp.json())
        except ValueError:
            return resp.text[:500]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
