"""AI analysis: prompt building, response recovery, enrichment and reports."""

from emailmaster.analysis.analyzer import EmailAnalyzer, SearchHit, TextGenerator, text_search
from emailmaster.analysis.reports import (
    DailySummary,
    MoodTrendReport,
    generate_daily_summary,
    generate_mood_report,
)
from emailmaster.analysis.response_parsing import parse_ai_response
from emailmaster.config import Settings
from emailmaster.exceptions import ConfigurationError


def build_text_generator(settings: Settings) -> TextGenerator:
    """Return the client for the configured ``ai_provider``."""

    if settings.ai_provider == "gemini":
        from emailmaster.gemini.client import GeminiClient

        return GeminiClient(settings)
    if settings.ai_provider == "ollama":
        from emailmaster.ollama.client import OllamaClient

        return OllamaClient(settings)
    raise ConfigurationError(f"Unknown AI provider: {settings.ai_provider}")


__all__ = [
    "DailySummary",
    "EmailAnalyzer",
    "MoodTrendReport",
    "SearchHit",
    "TextGenerator",
    "build_text_generator",
    "generate_daily_summary",
    "generate_mood_report",
    "parse_ai_response",
    "text_search",
]
