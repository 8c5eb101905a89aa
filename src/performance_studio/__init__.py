"""Voice Performance Studio -- feedback-driven performance of sacred text.

Public API re-exports for convenient access::

    from performance_studio import StudioSession, RuleBasedFeedbackParser
"""

from ._version import __version__
from .accumulator import InstructionAccumulator
from .exceptions import (
    ConfigurationError,
    GenerationInProgressError,
    InputValidationError,
    LanguageModelError,
    SettingsError,
    StudioError,
    SynthesisError,
)
from .language_model import AnthropicClient, LanguageModelFeedbackParser
from .ledger import VersionLedger
from .models import (
    END,
    MIDDLE,
    START,
    End,
    Middle,
    PerformanceInstruction,
    Start,
    StyleTag,
    SynthesisRequest,
    Version,
    VoiceSettings,
    WordIndex,
)
from .parser import FallbackFeedbackParser, ParseResult, RuleBasedFeedbackParser
from .registry import (
    DIRECTIVE_REGISTRY,
    PARAMETER_REGISTRY,
    DirectiveEffect,
    ParameterEffect,
    TagRegistry,
)
from .renderers import DirectiveRenderer, ParameterRenderer, renderer_for
from .session import FeedbackOutcome, StudioSession
from .settings import SettingsStore, StudioSettings
from .synthesis import ElevenLabsClient
from .transcript import TranscriptBuffer

__all__ = [
    "__version__",
    # Models
    "StyleTag",
    "PerformanceInstruction",
    "Start",
    "End",
    "Middle",
    "WordIndex",
    "START",
    "END",
    "MIDDLE",
    "VoiceSettings",
    "SynthesisRequest",
    "Version",
    # Registry
    "TagRegistry",
    "ParameterEffect",
    "DirectiveEffect",
    "PARAMETER_REGISTRY",
    "DIRECTIVE_REGISTRY",
    # Parsing
    "RuleBasedFeedbackParser",
    "LanguageModelFeedbackParser",
    "FallbackFeedbackParser",
    "ParseResult",
    # Pipeline
    "InstructionAccumulator",
    "ParameterRenderer",
    "DirectiveRenderer",
    "renderer_for",
    "VersionLedger",
    "TranscriptBuffer",
    # Session
    "StudioSession",
    "FeedbackOutcome",
    "StudioSettings",
    "SettingsStore",
    # Collaborators
    "ElevenLabsClient",
    "AnthropicClient",
    # Exceptions
    "StudioError",
    "ConfigurationError",
    "InputValidationError",
    "SynthesisError",
    "LanguageModelError",
    "GenerationInProgressError",
    "SettingsError",
]
