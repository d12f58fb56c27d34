"""EmailMaster - Gmail fetch with stable email references and AI triage.

This package fetches inbox mail into a local cache, gives every email a
persistent index and unique ID, and enriches it with Gemini or Ollama.
"""

__version__ = "0.1.0"

from emailmaster.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
