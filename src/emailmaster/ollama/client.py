"""Ollama client implementation.

This module provides a client for interacting with a local Ollama server,
used as an alternative text-generation backend to Gemini.
"""

from typing import Any, Optional

import httpx
import structlog

from emailmaster.config import Settings
from emailmaster.exceptions import OllamaConnectionError, TextGenerationError

logger = structlog.get_logger()


class OllamaClient:
    """Ollama LLM client for AI inference.

    This client handles communication with the Ollama API
    for language model inference tasks.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
            client: HTTP client to use. If None, one is created per request.
        """
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self._client = client
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
        )

    async def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Generate text using Ollama.

        Args:
            prompt: The prompt to send to the model.
            model: Model name to use. If None, uses default from settings.

        Returns:
            The generated text.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            TextGenerationError: If inference fails.
        """
        model = model or self.settings.ollama_model
        logger.info("generating_text", provider="ollama", model=model, prompt_length=len(prompt))

        data = await self._post("/api/generate", {"model": model, "prompt": prompt, "stream": False})
        return str(data.get("response") or "").strip()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        if self._client is not None:
            return await self._send(self._client, path, payload)

        async with httpx.AsyncClient(
            base_url=self.settings.ollama_host.rstrip("/"),
            timeout=self.settings.ollama_timeout,
        ) as client:
            return await self._send(client, path, payload)

    async def _send(
        self, client: httpx.AsyncClient, path: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        url = path if self._client is None else f"{self.settings.ollama_host.rstrip('/')}{path}"
        try:
            response = await client.post(url, json=payload)
        except httpx.TransportError as exc:
            logger.warning("ollama_connection_failed", host=self.settings.ollama_host, error=str(exc))
            raise OllamaConnectionError(
                f"Cannot reach Ollama at {self.settings.ollama_host}: {exc}"
            ) from exc

        if response.status_code >= 400:
            logger.warning("ollama_request_failed", status=response.status_code, path=path)
            raise TextGenerationError(
                f"Ollama returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TextGenerationError("Ollama returned a non-JSON response") from exc

        if not isinstance(data, dict):
            raise TextGenerationError("Ollama returned an unexpected response shape")
        if data.get("error"):
            raise TextGenerationError(f"Ollama error: {data['error']}")
        return data
