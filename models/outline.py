"""Outline and chapter data models, plus manuscript assembly."""

from dataclasses import asdict, dataclass, field

DEFAULT_SEPARATOR = "\n\n---\n\n"


@dataclass
class Chapter:
    """One addressable unit of the manuscript."""
    title: str = ""
    description: str = ""
    estimated_pages: int = 1
    generated: bool = False
    content: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Chapter":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            estimated_pages=max(1, int(data.get("estimated_pages", 1))),
            generated=bool(data.get("generated", False)),
            content=data.get("content", "") or "",
        )


@dataclass
class Outline:
    """Book title, ordered chapter stubs, and the cover-image prompt."""
    title: str = ""
    chapters: list[Chapter] = field(default_factory=list)
    cover_prompt: str = ""

    @property
    def total_pages(self) -> int:
        return sum(ch.estimated_pages for ch in self.chapters)

    def pending_indices(self) -> list[int]:
        """Indices of chapters not yet generated, in manuscript order."""
        return [i for i, ch in enumerate(self.chapters) if not ch.generated]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "chapters": [ch.to_dict() for ch in self.chapters],
            "cover_prompt": self.cover_prompt,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Outline":
        return cls(
            title=data.get("title", ""),
            chapters=[Chapter.from_dict(ch) for ch in data.get("chapters", [])],
            cover_prompt=data.get("cover_prompt", ""),
        )


def assemble_manuscript(outline: Outline | None, separator: str = DEFAULT_SEPARATOR) -> str:
    """Join all non-empty chapter texts in manuscript order."""
    if outline is None:
        return ""
    return separator.join(ch.content for ch in outline.chapters if ch.content)
