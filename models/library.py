"""Saved library entry model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.outline import Outline
from models.project import Project


@dataclass
class LibraryEntry:
    """Snapshot of a complete or partial project, keyed by project id."""
    project: Project = field(default_factory=Project)
    outline: Optional[Outline] = None
    manuscript: str = ""
    cover: str = ""
    completed: bool = False
    updated_at: Optional[datetime] = None

    @property
    def id(self) -> Optional[str]:
        return self.project.id

    @property
    def title(self) -> str:
        if self.outline and self.outline.title:
            return self.outline.title
        return self.project.description[:40] or "(untitled)"

    def to_dict(self) -> dict:
        return {
            "project": self.project.to_dict(),
            "outline": self.outline.to_dict() if self.outline else None,
            "manuscript": self.manuscript,
            "cover": self.cover,
            "completed": self.completed,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LibraryEntry":
        outline = data.get("outline")
        updated_at = data.get("updated_at")
        return cls(
            project=Project.from_dict(data.get("project") or {}),
            outline=Outline.from_dict(outline) if outline else None,
            manuscript=data.get("manuscript", ""),
            cover=data.get("cover", ""),
            completed=bool(data.get("completed", False)),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )
