"""Pydantic schemas validating generation service payloads."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from models.outline import Chapter, Outline


class ChapterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    estimated_pages: Optional[int] = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("estimated_pages", "estimatedPages"),
    )

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class OutlinePayload(BaseModel):
    """Structure returned by the outline planning call."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    chapters: list[ChapterPayload] = Field(min_length=1)
    cover_prompt: str = Field(
        min_length=1,
        validation_alias=AliasChoices("cover_prompt", "coverPrompt"),
    )

    @field_validator("title", "cover_prompt")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def to_outline(self, default_pages: int) -> Outline:
        return Outline(
            title=self.title,
            chapters=[
                Chapter(
                    title=ch.title,
                    description=ch.description,
                    estimated_pages=ch.estimated_pages or default_pages,
                )
                for ch in self.chapters
            ],
            cover_prompt=self.cover_prompt,
        )
