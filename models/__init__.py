"""Models package: database, data models, and enums."""

from models.database import Database
from models.project import Project
from models.outline import Chapter, Outline, assemble_manuscript
from models.library import LibraryEntry
from models.enums import (
    OutputLanguage,
    TargetAudience,
    WritingStyle,
    TargetLength,
    GenerationStatus,
    Operation,
    ExportFormat,
    PAGES_PER_CHAPTER,
)

__all__ = [
    "Database",
    "Project",
    "Chapter",
    "Outline",
    "assemble_manuscript",
    "LibraryEntry",
    "OutputLanguage",
    "TargetAudience",
    "WritingStyle",
    "TargetLength",
    "GenerationStatus",
    "Operation",
    "ExportFormat",
    "PAGES_PER_CHAPTER",
]
