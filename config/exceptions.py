"""Custom exception hierarchy for the e-book generation workflow."""

from typing import Optional


class BookForgeError(Exception):
    """Base exception for all BookForge errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(BookForgeError):
    """Base exception for generation service API errors."""


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response."""

    def __init__(self, message: str = "Failed to parse LLM response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


# ---- Generation Errors ----

class GenerationError(BookForgeError):
    """A generation call failed or returned an unusable payload."""


class NonFatalGenerationError(GenerationError):
    """Generation failure that must not interrupt the workflow (cover images)."""


# ---- Billing Errors ----

class BillingError(BookForgeError):
    """Base exception for credit ledger errors."""


class InsufficientBalanceError(BillingError):
    """The credit balance cannot cover the requested operation."""

    def __init__(self, required: int, available: int, operation: str = ""):
        details = {"required": required, "available": available}
        if operation:
            details["operation"] = operation
        super().__init__("Insufficient credit balance, please top up", details)
        self.required = required
        self.available = available
        self.operation = operation


# ---- Database Errors ----

class DatabaseError(BookForgeError):
    """Database operation failed."""


# ---- Workflow Errors ----

class WorkflowError(BookForgeError):
    """Base exception for workflow orchestration errors."""


class WorkflowStateError(WorkflowError):
    """Operation is not permitted in the current workflow state."""


class ChapterInFlightError(WorkflowStateError):
    """A generation call for this chapter is already pending."""

    def __init__(self, index: int):
        super().__init__(f"Chapter {index + 1} is already being generated", {"index": index})
        self.index = index


# ---- Validation Errors ----

class ValidationError(BookForgeError):
    """Input validation failed."""


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
