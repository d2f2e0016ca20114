"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    def test_credit_costs(self, settings):
        assert settings.outline_cost == 500
        assert settings.credits_per_page == 400
        assert settings.cover_cost == 200
        assert settings.initial_balance == 10000

    def test_default_values(self, tmp_path):
        from config.settings import Settings
        # Use _env_file=None to test code defaults without .env overrides
        s = Settings(
            _env_file=None,
            sqlite_db_path=tmp_path / "books.db",
            export_dir=tmp_path / "exports",
            log_dir=tmp_path / "logs",
        )
        assert s.llm_model_outline == "claude-sonnet-4-6"
        assert s.llm_model_chapter == "claude-opus-4-6"
        assert s.image_model_cover == "gemini-2.5-flash-image"
        assert s.manuscript_separator == "\n\n---\n\n"
        assert s.topup_delay_seconds == 1.5
        assert s.charge_regenerations is True

    def test_parent_dirs_created(self, tmp_path):
        from config.settings import Settings
        Settings(
            sqlite_db_path=tmp_path / "nested" / "books.db",
            export_dir=tmp_path / "exports",
            log_dir=tmp_path / "logs",
        )
        assert (tmp_path / "nested").is_dir()


class TestSettingsValidation:
    @pytest.mark.parametrize("field", ["outline_cost", "credits_per_page", "cover_cost"])
    def test_zero_cost_raises(self, tmp_path, field):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="1 credit"):
            Settings(sqlite_db_path=tmp_path / "books.db", log_dir=tmp_path / "logs",
                     export_dir=tmp_path / "exports", **{field: 0})

    def test_negative_initial_balance_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="initial_balance"):
            Settings(sqlite_db_path=tmp_path / "books.db", log_dir=tmp_path / "logs",
                     export_dir=tmp_path / "exports", initial_balance=-1)

    def test_negative_topup_delay_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="topup_delay_seconds"):
            Settings(sqlite_db_path=tmp_path / "books.db", log_dir=tmp_path / "logs",
                     export_dir=tmp_path / "exports", topup_delay_seconds=-0.5)

    def test_env_override(self, tmp_path, monkeypatch):
        from config.settings import Settings
        monkeypatch.setenv("CREDITS_PER_PAGE", "100")
        s = Settings(
            _env_file=None,
            sqlite_db_path=tmp_path / "books.db",
            log_dir=tmp_path / "logs",
            export_dir=tmp_path / "exports",
        )
        assert s.credits_per_page == 100
