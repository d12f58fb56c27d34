"""Google Gemini client implementation.

The google-generativeai SDK is synchronous; calls are wrapped with
`asyncio.to_thread` like the Gmail client.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from emailmaster.config import Settings
from emailmaster.exceptions import ConfigurationError, TextGenerationError

logger = structlog.get_logger()


class GeminiClient:
    """Gemini text-generation client."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize Gemini client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self._model: Any | None = None
        logger.info("gemini_client_initialized", model=self.settings.gemini_model)

    @property
    def is_configured(self) -> bool:
        key = self.settings.gemini_api_key
        return key is not None and bool(key.get_secret_value())

    async def generate(self, prompt: str, model: str | None = None) -> str:
        """Generate text for a prompt.

        Args:
            prompt: The prompt to send to the model.
            model: Model name to use. If None, uses default from settings.

        Returns:
            The raw response text.

        Raises:
            ConfigurationError: If no API key is configured.
            TextGenerationError: If the request fails.
        """

        model_name = model or self.settings.gemini_model
        logger.info("generating_text", provider="gemini", model=model_name, prompt_length=len(prompt))

        generative_model = self._get_model(model_name)
        try:
            response = await asyncio.to_thread(generative_model.generate_content, prompt)
            text = response.text
        except Exception as exc:  # noqa: BLE001
            logger.warning("gemini_generation_failed", model=model_name, error=str(exc))
            raise TextGenerationError(f"Gemini request failed: {exc}") from exc

        logger.debug("text_generated", provider="gemini", response_length=len(text or ""))
        return text or ""

    def _get_model(self, model_name: str) -> Any:
        if not self.is_configured:
            raise ConfigurationError(
                "Gemini API key missing. Set GEMINI_API_KEY or EMAILMASTER_GEMINI_API_KEY."
            )

        if self._model is not None and self._model.model_name.endswith(model_name):
            return self._model

        # Imported lazily to keep import-time cost low and tests fast.
        import google.generativeai as genai

        assert self.settings.gemini_api_key is not None
        genai.configure(api_key=self.settings.gemini_api_key.get_secret_value())
        self._model = genai.GenerativeModel(model_name)
        return self._model
