"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    BookForgeError,
    LLMError,
    LLMResponseParseError,
    GenerationError,
    NonFatalGenerationError,
    BillingError,
    InsufficientBalanceError,
    DatabaseError,
    WorkflowError,
    WorkflowStateError,
    ChapterInFlightError,
    ValidationError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "BookForgeError",
    "LLMError",
    "LLMResponseParseError",
    "GenerationError",
    "NonFatalGenerationError",
    "BillingError",
    "InsufficientBalanceError",
    "DatabaseError",
    "WorkflowError",
    "WorkflowStateError",
    "ChapterInFlightError",
    "ValidationError",
    "InvalidConfigError",
]
