"""Tests for the custom exception hierarchy."""

from config.exceptions import (
    BillingError,
    BookForgeError,
    ChapterInFlightError,
    DatabaseError,
    GenerationError,
    InsufficientBalanceError,
    InvalidConfigError,
    LLMError,
    LLMResponseParseError,
    NonFatalGenerationError,
    ValidationError,
    WorkflowError,
    WorkflowStateError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_base(self):
        leaf_classes = [
            LLMError, LLMResponseParseError,
            GenerationError, NonFatalGenerationError,
            BillingError, InsufficientBalanceError,
            DatabaseError,
            WorkflowError, WorkflowStateError, ChapterInFlightError,
            ValidationError, InvalidConfigError,
        ]
        for cls in leaf_classes:
            assert issubclass(cls, BookForgeError), f"{cls.__name__} must inherit BookForgeError"

    def test_subclasses(self):
        assert issubclass(LLMResponseParseError, LLMError)
        assert issubclass(NonFatalGenerationError, GenerationError)
        assert issubclass(InsufficientBalanceError, BillingError)
        assert issubclass(ChapterInFlightError, WorkflowStateError)
        assert issubclass(WorkflowStateError, WorkflowError)
        assert issubclass(InvalidConfigError, ValidationError)


class TestExceptionMessages:
    def test_message_without_details(self):
        assert str(BookForgeError("plain")) == "plain"

    def test_message_with_details(self):
        err = BookForgeError("failed", {"index": 2})
        assert err.message == "failed"
        assert "index=2" in str(err)

    def test_insufficient_balance_carries_amounts(self):
        err = InsufficientBalanceError(1200, 400, "chapter 2")
        assert err.message == "Insufficient credit balance, please top up"
        assert err.required == 1200
        assert err.available == 400
        assert err.details["operation"] == "chapter 2"

    def test_chapter_in_flight_message_is_one_based(self):
        assert ChapterInFlightError(0).message == "Chapter 1 is already being generated"

    def test_parse_error_truncates_raw_response(self):
        err = LLMResponseParseError(raw_response="x" * 1000)
        assert len(err.details["raw_response"]) <= 500
