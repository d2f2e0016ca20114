"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Text generation authenticates through the Claude Code CLI used by the
    Agent SDK; cover images need a Google GenAI API key.
    """

    # Generation models
    llm_model_outline: str = "claude-sonnet-4-6"   # OutlineAgent
    llm_model_chapter: str = "claude-opus-4-6"     # ChapterAgent
    image_model_cover: str = "gemini-2.5-flash-image"  # CoverAgent
    google_api_key: Optional[str] = None
    cover_aspect_ratio: str = "3:4"

    # Storage
    sqlite_db_path: Path = Path("./data/bookforge.db")
    export_dir: Path = Path("./data/exports")

    # Credits
    initial_balance: int = 10000
    outline_cost: int = 500
    credits_per_page: int = 400
    cover_cost: int = 200
    topup_delay_seconds: float = 1.5
    charge_regenerations: bool = True

    # Manuscript
    manuscript_separator: str = "\n\n---\n\n"

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("outline_cost", "credits_per_page", "cover_cost")
    @classmethod
    def validate_costs(cls, v: int) -> int:
        if v < 1:
            raise ValueError("operation costs must be >= 1 credit")
        return v

    @field_validator("initial_balance")
    @classmethod
    def validate_initial_balance(cls, v: int) -> int:
        if v < 0:
            raise ValueError("initial_balance must be non-negative")
        return v

    @field_validator("topup_delay_seconds")
    @classmethod
    def validate_topup_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("topup_delay_seconds must be non-negative")
        return v

    @field_validator("sqlite_db_path", "log_dir", "export_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
