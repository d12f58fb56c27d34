"""Custom exceptions for EmailMaster."""


class EmailMasterError(Exception):
    """Base exception for all EmailMaster errors."""


class GmailAPIError(EmailMasterError):
    """Exception raised for Gmail API related errors."""


class TextGenerationError(EmailMasterError):
    """Exception raised when the text-generation backend fails."""


class OllamaConnectionError(TextGenerationError):
    """Exception raised when unable to connect to Ollama."""


class ConfigurationError(EmailMasterError):
    """Exception raised for configuration related errors."""


class AuthenticationError(EmailMasterError):
    """Exception raised for authentication failures."""


class PersistenceError(EmailMasterError):
    """Exception raised when local state cannot be written."""


class StateCorruptionError(EmailMasterError):
    """Exception raised when a persisted state file exists but cannot be parsed."""


class ValidationError(EmailMasterError):
    """Exception raised for invalid user input."""
