"""Shared pytest fixtures for the bookforge test suite."""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite database path."""
    return tmp_path / "test_books.db"


@pytest.fixture
def db(tmp_db_path):
    """Return an initialized Database instance backed by a temp file."""
    from models.database import Database
    return Database(tmp_db_path)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        sqlite_db_path=tmp_path / "books.db",
        export_dir=tmp_path / "exports",
        log_dir=tmp_path / "logs",
        google_api_key=None,
        initial_balance=10000,
        outline_cost=500,
        credits_per_page=400,
        cover_cost=200,
        topup_delay_seconds=0,
    )


@pytest.fixture
def ledger(settings, db):
    from billing.ledger import CreditLedger
    return CreditLedger.load(db, settings)


# ---------------------------------------------------------------------------
# LLM Client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm(settings):
    """Return a MagicMock replacing AgentSDKClient."""
    llm = MagicMock()
    llm.chat = AsyncMock(return_value="## Getting Started\n\nSome chapter text.")
    llm.chat_json = AsyncMock(return_value={
        "title": "Practical asyncio",
        "chapters": [
            {"title": "Event loops", "description": "How the loop runs", "estimatedPages": 3},
            {"title": "Tasks", "description": "Scheduling coroutines"},
        ],
        "coverPrompt": "A clean blue diagram of intertwined arrows",
    })
    llm.get_usage_summary.return_value = {"total_calls": 1}
    llm.settings = settings
    return llm


# ---------------------------------------------------------------------------
# Generation service fake
# ---------------------------------------------------------------------------

class FakeGenerationService:
    """In-memory generation service with scriptable failures.

    ``fail_chapters`` holds indices whose generation raises; ``gate`` (an
    asyncio.Event) blocks chapter calls until set, to hold calls in flight.
    """

    def __init__(self, chapter_pages: tuple = (2, 3, 1)):
        self.chapter_pages = chapter_pages
        self.fail_outline = False
        self.fail_chapters: set[int] = set()
        self.fail_cover = False
        self.gate = None
        self.outline_calls = 0
        self.chapter_calls: list[int] = []
        self.cover_calls = 0

    async def plan_outline(self, project):
        from config.exceptions import GenerationError
        from models.outline import Chapter, Outline

        self.outline_calls += 1
        if self.fail_outline:
            raise GenerationError("Outline service unavailable")
        return Outline(
            title="Test Book",
            chapters=[
                Chapter(title=f"Chapter {i + 1}", description=f"About part {i + 1}", estimated_pages=p)
                for i, p in enumerate(self.chapter_pages)
            ],
            cover_prompt="A minimalist cover",
        )

    async def write_chapter(self, project, outline, index):
        from config.exceptions import GenerationError

        self.chapter_calls.append(index)
        if self.gate is not None:
            await self.gate.wait()
        if index in self.fail_chapters:
            raise GenerationError(f"Chapter {index + 1} failed")
        return f"## {outline.chapters[index].title}\n\nBody of chapter {index + 1}."

    async def render_cover(self, prompt):
        from config.exceptions import NonFatalGenerationError

        self.cover_calls += 1
        if self.fail_cover:
            raise NonFatalGenerationError("No image returned")
        return "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def fake_service():
    return FakeGenerationService()


@pytest.fixture
def controller(fake_service, ledger, db, settings):
    """Return a WorkflowController with a project description filled in."""
    from workflow.controller import WorkflowController
    ctl = WorkflowController(fake_service, ledger, db=db, settings=settings)
    ctl.update_project(description="Asynchronous programming in Python", chapter_count=3)
    return ctl


@pytest_asyncio.fixture
async def planned_controller(controller):
    """Return a controller whose outline (pages 2, 3, 1) is ready."""
    await controller.plan_outline()
    return controller


@pytest.fixture
def make_controller(tmp_path):
    """Factory for controllers with custom chapter pages and settings overrides."""
    from billing.ledger import CreditLedger
    from config.settings import Settings
    from models.database import Database
    from workflow.controller import WorkflowController

    def _make(chapter_pages: tuple = (2, 3, 1), **overrides) -> "WorkflowController":
        settings = Settings(
            sqlite_db_path=tmp_path / "factory.db",
            export_dir=tmp_path / "exports",
            log_dir=tmp_path / "logs",
            topup_delay_seconds=0,
            **overrides,
        )
        db = Database(settings.sqlite_db_path)
        service = FakeGenerationService(chapter_pages)
        ctl = WorkflowController(service, CreditLedger.load(db, settings), db=db, settings=settings)
        ctl.update_project(description="Testing with pytest")
        return ctl

    return _make
