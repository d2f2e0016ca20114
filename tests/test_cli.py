"""CLI smoke tests with the generation backends replaced by the fake service."""

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_main(monkeypatch, settings, db, fake_service):
    import cli.main as main
    from billing.ledger import CreditLedger
    from workflow.controller import WorkflowController

    def make_controller():
        return WorkflowController(fake_service, CreditLedger.load(db, settings), db=db, settings=settings)

    monkeypatch.setattr(main, "_make_controller", make_controller)
    monkeypatch.setattr(main, "_init_logging", lambda verbose: None)
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    return main


@pytest.fixture
def runner():
    return CliRunner()


def _new_project(cli_main, runner, db) -> str:
    result = runner.invoke(cli_main.cli, ["new", "-d", "Asyncio in practice", "-c", "3"])
    assert result.exit_code == 0, result.output
    return db.list_entries()[0].id


class TestNew:
    def test_new_plans_and_saves(self, cli_main, runner, db):
        result = runner.invoke(cli_main.cli, [
            "new", "-d", "Asyncio in practice", "-c", "3",
            "--output-language", "english", "-l", "https://docs.python.org",
        ])
        assert result.exit_code == 0, result.output
        assert "Outline ready" in result.output

        entries = db.list_entries()
        assert len(entries) == 1
        assert entries[0].outline.title == "Test Book"
        assert entries[0].project.output_language.value == "English"
        assert entries[0].project.reference_links == ["https://docs.python.org"]
        assert db.get_balance() == 9500

    def test_new_with_material_file(self, cli_main, runner, db, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("event loop internals", encoding="utf-8")
        result = runner.invoke(cli_main.cli, ["new", "-d", "Asyncio", "-m", str(notes)])
        assert result.exit_code == 0, result.output
        assert "event loop internals" in db.list_entries()[0].project.materials

    def test_new_blocked_without_credits(self, cli_main, runner, db):
        db.set_balance(100)
        result = runner.invoke(cli_main.cli, ["new", "-d", "Asyncio"])
        assert result.exit_code == 1
        assert "Insufficient credit balance" in result.output
        assert db.list_entries() == []
        assert db.get_balance() == 100


class TestGeneration:
    def test_write_selected_chapters(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["write", "-p", entry_id, "-c", "1,3"])
        assert result.exit_code == 0, result.output

        chapters = db.get_entry(entry_id).outline.chapters
        assert [ch.generated for ch in chapters] == [True, False, True]
        assert db.get_balance() == 9500 - 800 - 400

    def test_invalid_chapter_selection(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["write", "-p", entry_id, "-c", "x-y"])
        assert result.exit_code == 2

    def test_finish_then_export(self, cli_main, runner, db, settings):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["finish", "-p", entry_id])
        assert result.exit_code == 0, result.output
        assert "Book complete" in result.output

        entry = db.get_entry(entry_id)
        assert all(ch.generated for ch in entry.outline.chapters)
        assert entry.cover.startswith("data:image/png")

        result = runner.invoke(cli_main.cli, ["export", "-p", entry_id, "-f", "md"])
        assert result.exit_code == 0, result.output
        exported = settings.export_dir / "Test Book.md"
        assert exported.read_text(encoding="utf-8") == entry.manuscript

    def test_chapter_failure_exits_nonzero(self, cli_main, runner, db, fake_service):
        entry_id = _new_project(cli_main, runner, db)
        fake_service.fail_chapters = {0}
        result = runner.invoke(cli_main.cli, ["write", "-p", entry_id, "-c", "1"])
        assert result.exit_code == 1
        assert "Chapter 1 failed" in result.output
        assert db.get_balance() == 9500

    def test_cover_from_image(self, cli_main, runner, db, tmp_path):
        entry_id = _new_project(cli_main, runner, db)
        image = tmp_path / "cover.png"
        image.write_bytes(b"\x89PNG")
        result = runner.invoke(cli_main.cli, ["cover", "-p", entry_id, "--image", str(image)])
        assert result.exit_code == 0, result.output
        assert db.get_entry(entry_id).cover.startswith("data:image/png;base64,")


class TestLibraryCommands:
    def test_library_and_show(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["library"])
        assert result.exit_code == 0
        assert "Test Book" in result.output

        result = runner.invoke(cli_main.cli, ["show", "-p", entry_id])
        assert result.exit_code == 0
        assert "Chapter 2" in result.output

    def test_show_unknown_project(self, cli_main, runner):
        result = runner.invoke(cli_main.cli, ["show", "-p", "missing"])
        assert result.exit_code == 1

    def test_delete(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["delete", "-p", entry_id, "--force"])
        assert result.exit_code == 0
        assert db.list_entries() == []

    def test_outline_add_and_remove(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["outline", "add", "-p", entry_id, "-t", "Appendix", "--pages", "2"])
        assert result.exit_code == 0, result.output
        assert db.get_entry(entry_id).outline.chapters[-1].title == "Appendix"

        result = runner.invoke(cli_main.cli, ["outline", "remove", "-p", entry_id, "-c", "4"])
        assert result.exit_code == 0, result.output
        assert len(db.get_entry(entry_id).outline.chapters) == 3

    def test_outline_edit_reopens_finished_book(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["finish", "-p", entry_id])
        assert result.exit_code == 0, result.output
        assert db.get_entry(entry_id).completed is True

        result = runner.invoke(cli_main.cli, ["outline", "add", "-p", entry_id, "-t", "Appendix"])
        assert result.exit_code == 0, result.output
        entry = db.get_entry(entry_id)
        assert entry.completed is False
        assert entry.outline.chapters[-1].title == "Appendix"


class TestCreditCommands:
    def test_balance_and_packs(self, cli_main, runner):
        result = runner.invoke(cli_main.cli, ["balance"])
        assert "10,000" in result.output
        result = runner.invoke(cli_main.cli, ["packs"])
        assert "standard" in result.output

    def test_topup(self, cli_main, runner, db):
        result = runner.invoke(cli_main.cli, ["topup", "standard"])
        assert result.exit_code == 0, result.output
        assert db.get_balance() == 110000

    def test_topup_unknown_pack(self, cli_main, runner):
        result = runner.invoke(cli_main.cli, ["topup", "gold"])
        assert result.exit_code == 1

    def test_estimate(self, cli_main, runner, db):
        entry_id = _new_project(cli_main, runner, db)
        result = runner.invoke(cli_main.cli, ["estimate", "-p", entry_id])
        assert result.exit_code == 0
        assert "2,400" in result.output
        assert "ready" in result.output

    def test_estimate_skips_free_regenerations(self, cli_main, runner, db, settings):
        entry_id = _new_project(cli_main, runner, db)
        runner.invoke(cli_main.cli, ["write", "-p", entry_id, "-c", "1"])
        settings.charge_regenerations = False
        result = runner.invoke(cli_main.cli, ["estimate", "-p", entry_id])
        assert result.exit_code == 0, result.output
        assert "0 (regenerate)" in result.output
        assert "800 (regenerate)" not in result.output
