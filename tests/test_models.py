"""Tests for data models, manuscript assembly, and library persistence."""

import pytest

from config.exceptions import DatabaseError
from models.enums import OutputLanguage, TargetLength
from models.library import LibraryEntry
from models.outline import Chapter, Outline, assemble_manuscript
from models.project import Project


def _entry(entry_id: str, title: str = "Book", manuscript: str = "") -> LibraryEntry:
    return LibraryEntry(
        project=Project(id=entry_id, description=f"About {title}"),
        outline=Outline(title=title, chapters=[Chapter(title="One", estimated_pages=2)]),
        manuscript=manuscript,
    )


class TestOutline:
    def test_manuscript_joins_generated_texts_in_order(self):
        outline = Outline(chapters=[
            Chapter(title="A", content="foo", generated=True),
            Chapter(title="B"),
            Chapter(title="C", content="bar", generated=True),
        ])
        assert assemble_manuscript(outline) == "foo\n\n---\n\nbar"

    def test_manuscript_of_nothing_is_empty(self):
        assert assemble_manuscript(None) == ""
        assert assemble_manuscript(Outline(chapters=[Chapter(title="A")])) == ""

    def test_pending_indices_and_total_pages(self):
        outline = Outline(chapters=[
            Chapter(title="A", estimated_pages=3, generated=True),
            Chapter(title="B", estimated_pages=5),
        ])
        assert outline.pending_indices() == [1]
        assert outline.total_pages == 8

    def test_chapter_pages_clamped_on_load(self):
        assert Chapter.from_dict({"title": "A", "estimated_pages": 0}).estimated_pages == 1

    def test_outline_dict_round_trip_keeps_flags(self):
        outline = Outline(
            title="T",
            chapters=[Chapter(title="A", description="d", estimated_pages=4, generated=True, content="x")],
            cover_prompt="c",
        )
        restored = Outline.from_dict(outline.to_dict())
        assert restored == outline


class TestProject:
    def test_enums_serialised_as_values(self):
        data = Project(output_language=OutputLanguage.ENGLISH, target_length=TargetLength.LONG).to_dict()
        assert data["output_language"] == "English"
        assert data["target_length"] == "Long"

    def test_defaults_on_missing_fields(self):
        project = Project.from_dict({"description": "x"})
        assert project.chapter_count == 8
        assert project.language == "Python"
        assert project.reference_links == []


class TestLibraryEntry:
    def test_title_falls_back_to_description(self):
        entry = LibraryEntry(project=Project(description="A very long description " * 5))
        assert len(entry.title) == 40

    def test_title_from_outline(self):
        assert _entry("a", title="Rust in Action").title == "Rust in Action"


class TestDatabaseLibrary:
    def test_save_and_get(self, db):
        db.save_entry(_entry("a", manuscript="text"))
        entry = db.get_entry("a")
        assert entry.manuscript == "text"
        assert entry.updated_at is not None

    def test_save_same_id_replaces(self, db):
        db.save_entry(_entry("a", manuscript="old"))
        db.save_entry(_entry("a", manuscript="new"))
        entries = db.list_entries()
        assert len(entries) == 1
        assert entries[0].manuscript == "new"

    def test_list_newest_first(self, db):
        db.save_entry(_entry("a"))
        db.save_entry(_entry("b"))
        db.save_entry(_entry("a", manuscript="touched"))
        assert [e.id for e in db.list_entries()] == ["a", "b"]

    def test_delete(self, db):
        db.save_entry(_entry("a"))
        assert db.delete_entry("a") is True
        assert db.delete_entry("a") is False
        assert db.get_entry("a") is None

    def test_entry_requires_id(self, db):
        with pytest.raises(DatabaseError):
            db.save_entry(LibraryEntry(project=Project(description="x")))

    def test_get_missing_returns_none(self, db):
        assert db.get_entry("nope") is None

    def test_library_persists_across_instances(self, db, tmp_db_path):
        from models.database import Database
        db.save_entry(_entry("a"))
        assert Database(tmp_db_path).get_entry("a") is not None

    def test_entries_stored_under_library_key(self, db):
        db.save_entry(_entry("a"))
        stored = db.get_value("library")
        assert isinstance(stored, list)
        assert stored[0]["project"]["id"] == "a"

    def test_completed_flag_round_trip(self, db):
        entry = _entry("a")
        entry.completed = True
        db.save_entry(entry)
        assert db.get_entry("a").completed is True
        assert LibraryEntry.from_dict({"project": {"id": "b"}}).completed is False

    def test_corrupt_library_record(self, db):
        db.set_value("library", {"not": "a list"})
        with pytest.raises(DatabaseError):
            db.list_entries()


class TestDatabaseBalance:
    def test_balance_absent_until_set(self, db):
        assert db.get_balance() is None
        db.set_balance(1234)
        assert db.get_balance() == 1234
