"""Custom exception hierarchy for the performance_studio package."""


class StudioError(Exception):
    """Base exception for all performance_studio errors."""


class ConfigurationError(StudioError):
    """Raised when a required credential or voice selection is missing."""


class InputValidationError(StudioError):
    """Raised when user input cannot be acted on (e.g. empty sacred text)."""


class SynthesisError(StudioError):
    """Raised when the speech-synthesis provider call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class LanguageModelError(StudioError):
    """Raised when the language-understanding call fails or returns garbage."""


class GenerationInProgressError(StudioError):
    """Raised when a generation is requested while another is in flight."""


class SettingsError(StudioError):
    """Raised when persisted settings cannot be read or written."""
