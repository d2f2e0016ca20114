"""Enumerations for project configuration and workflow status tracking."""

from enum import Enum


class OutputLanguage(str, Enum):
    CHINESE = "Chinese"
    ENGLISH = "English"


class TargetAudience(str, Enum):
    NOVICE = "Novice"
    INTERMEDIATE = "Intermediate"
    EXPERT = "Expert"


class WritingStyle(str, Enum):
    TECHNICAL_MANUAL = "Technical Manual"
    TUTORIAL = "Tutorial"
    PRACTICAL_GUIDE = "Practical Guide"
    REFERENCE_MANUAL = "Reference Manual"


class TargetLength(str, Enum):
    SHORT = "Short"
    MEDIUM = "Medium"
    LONG = "Long"


class GenerationStatus(str, Enum):
    IDLE = "idle"
    OUTLINE_PENDING = "outline_pending"
    OUTLINE_READY = "outline_ready"
    CHAPTER_PENDING = "chapter_pending"
    MANUSCRIPT_ASSEMBLING = "manuscript_assembling"
    COVER_PENDING = "cover_pending"
    COMPLETED = "completed"
    ERROR = "error"


class Operation(str, Enum):
    """Billable operations."""
    OUTLINE = "outline"
    CHAPTER = "chapter"
    COVER = "cover"
    REMAINING = "remaining"


class ExportFormat(str, Enum):
    MARKDOWN = "md"
    WORD = "doc"
    PDF = "pdf"


# Default page estimate per chapter when the outline does not provide one
PAGES_PER_CHAPTER = {
    TargetLength.SHORT: 4,
    TargetLength.MEDIUM: 8,
    TargetLength.LONG: 12,
}
