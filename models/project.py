"""Project data model: the user-supplied book configuration."""

from dataclasses import asdict, dataclass, field
from typing import Optional

from models.enums import OutputLanguage, TargetAudience, TargetLength, WritingStyle


@dataclass
class Project:
    """User inputs that drive outline and chapter generation."""
    id: Optional[str] = None
    description: str = ""
    materials: str = ""
    language: str = "Python"  # code-sample language
    output_language: OutputLanguage = OutputLanguage.CHINESE
    writing_style: WritingStyle = WritingStyle.TECHNICAL_MANUAL
    target_audience: TargetAudience = TargetAudience.INTERMEDIATE
    reference_links: list[str] = field(default_factory=list)
    target_length: TargetLength = TargetLength.MEDIUM
    chapter_count: int = 8

    def to_dict(self) -> dict:
        data = asdict(self)
        data["output_language"] = self.output_language.value
        data["writing_style"] = self.writing_style.value
        data["target_audience"] = self.target_audience.value
        data["target_length"] = self.target_length.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data.get("id"),
            description=data.get("description", ""),
            materials=data.get("materials", ""),
            language=data.get("language", "Python"),
            output_language=OutputLanguage(data.get("output_language", OutputLanguage.CHINESE.value)),
            writing_style=WritingStyle(data.get("writing_style", WritingStyle.TECHNICAL_MANUAL.value)),
            target_audience=TargetAudience(data.get("target_audience", TargetAudience.INTERMEDIATE.value)),
            reference_links=list(data.get("reference_links") or []),
            target_length=TargetLength(data.get("target_length", TargetLength.MEDIUM.value)),
            chapter_count=int(data.get("chapter_count", 8)),
        )
