"""Generation workflow controller: the credit-metered state machine.

The controller owns one ``WorkflowSession`` and is the only code that
mutates its outline, manuscript, cover, and status. Every paid operation
follows the same order: admit by reserving credits, call the generation
service, then apply the result and commit the charge as one unit. A failed
call releases the reservation, so nothing is ever charged for a failure.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

from agents.service import GenerationService
from billing.ledger import CreditLedger, Reservation
from billing.packs import PaymentGateway, SimulatedPaymentGateway, get_pack
from config.exceptions import (
    BillingError,
    ChapterInFlightError,
    GenerationError,
    InsufficientBalanceError,
    ValidationError,
    WorkflowStateError,
)
from config.settings import Settings
from models.database import Database
from models.enums import PAGES_PER_CHAPTER, GenerationStatus, Operation
from models.library import LibraryEntry
from models.outline import Chapter, Outline, assemble_manuscript
from models.project import Project
from tools.text_utils import append_material, image_file_to_data_uri, read_material_file
from workflow.conditions import CHAPTER_STATES, can_edit_outline
from workflow.state import WorkflowSession

logger = logging.getLogger(__name__)

_PROJECT_FIELDS = {f for f in Project.__dataclass_fields__ if f != "id"}


class WorkflowController:
    """Sequences outline, chapter, and cover generation over one session."""

    def __init__(
        self,
        service: GenerationService,
        ledger: CreditLedger,
        db: Optional[Database] = None,
        settings: Optional[Settings] = None,
    ):
        self.service = service
        self.ledger = ledger
        self.db = db
        self.settings = settings or ledger.settings
        self.session = WorkflowSession()
        self._held: dict[int, Reservation] = {}
        self._bulk_session: Optional[WorkflowSession] = None

    # ---- State helpers ----

    @property
    def status(self) -> GenerationStatus:
        return self.session.status

    def _transition(self, status: GenerationStatus, session: Optional[WorkflowSession] = None):
        session = session or self.session
        if session.status != status:
            logger.info("Status: %s -> %s", session.status.value, status.value)
            session.status = status

    def _require(self, *allowed: GenerationStatus):
        if self.session.status not in allowed:
            raise WorkflowStateError(
                f"Not allowed while {self.session.status.value}",
                {"allowed": ", ".join(s.value for s in allowed)},
            )

    def _require_outline(self) -> Outline:
        if self.session.outline is None:
            raise WorkflowStateError("No outline has been planned yet")
        return self.session.outline

    def _check_index(self, index: int) -> Chapter:
        outline = self._require_outline()
        if not 0 <= index < len(outline.chapters):
            raise ValidationError(
                "Chapter index out of range",
                {"index": index, "chapters": len(outline.chapters)},
            )
        return outline.chapters[index]

    def _is_current(self, session: WorkflowSession) -> bool:
        return session is self.session

    def _require_no_bulk(self):
        if self.session.bulk_running:
            raise WorkflowStateError("Not allowed while the book is being finished")

    def _reserve(self, cost: int, operation: str) -> Reservation:
        try:
            return self.ledger.reserve(cost, operation)
        except InsufficientBalanceError as e:
            self.session.error = e.message
            logger.warning("Blocked %s: %s", operation, e)
            raise

    def fail(self, message: str, previous: GenerationStatus):
        """Enter ERROR, remembering the state the user may return to."""
        self.session.error = message
        self.session.previous_status = previous
        self._transition(GenerationStatus.ERROR)
        logger.error("Workflow error: %s", message)

    def recompute_manuscript(self) -> str:
        self.session.manuscript = assemble_manuscript(
            self.session.outline, self.settings.manuscript_separator,
        )
        return self.session.manuscript

    # ---- Costs ----

    def estimate(self, operation: Operation | str, index: Optional[int] = None) -> int:
        return self.ledger.estimate_cost(operation, self.session.outline, index)

    @property
    def remaining_cost(self) -> int:
        return self.ledger.remaining_cost(self.session.outline)

    def _chapter_charge(self, chapter: Chapter) -> int:
        if chapter.generated and not self.settings.charge_regenerations:
            return 0
        return self.ledger.chapter_cost(chapter)

    def chapter_charge(self, index: int) -> int:
        """What generating chapter ``index`` now would actually charge."""
        return self._chapter_charge(self._check_index(index))

    # ---- Outline ----

    async def plan_outline(self) -> Optional[Outline]:
        """Idle -> OutlinePending -> OutlineReady (or Error).

        Returns None if the session was replaced while the call was pending.
        """
        session = self.session
        if session.status == GenerationStatus.ERROR and session.previous_status == GenerationStatus.IDLE:
            self.dismiss_error()
        self._require(GenerationStatus.IDLE)
        if not session.project.description.strip():
            session.error = "A topic description is required"
            raise ValidationError(session.error)

        reservation = self._reserve(self.ledger.estimate_cost(Operation.OUTLINE), "outline")
        session.error = None
        self._transition(GenerationStatus.OUTLINE_PENDING)
        try:
            outline = await self.service.plan_outline(session.project)
            if not self._is_current(session):
                logger.info("Discarding outline from superseded session %s", session.session_id)
                return None
            session.outline = outline
            session.manuscript = ""
            self.ledger.commit(reservation)
            self._transition(GenerationStatus.OUTLINE_READY)
            return outline
        except GenerationError as e:
            if self._is_current(session):
                self.fail(e.message, GenerationStatus.IDLE)
            raise
        finally:
            self.ledger.release(reservation)
            if self._is_current(session) and session.status == GenerationStatus.OUTLINE_PENDING:
                # Unexpected exception: return to the pre-generation state
                self._transition(GenerationStatus.IDLE)

    # ---- Chapters ----

    async def _write_chapter(
        self, session: WorkflowSession, index: int, reservation: Reservation,
    ) -> Optional[str]:
        """Call the service for one chapter and apply the result as one unit.

        On success: flag, store text, recompute manuscript, commit charge,
        auto-save. On failure none of these happen.
        """
        outline = session.outline
        chapter = outline.chapters[index]
        session.in_flight.add(index)
        try:
            text = await self.service.write_chapter(session.project, outline, index)
            if not text or not text.strip():
                raise GenerationError(f"Chapter {index + 1} came back empty", {"index": index})
            if not self._is_current(session):
                logger.info("Discarding chapter %d from superseded session", index + 1)
                return None
            chapter.content = text
            chapter.generated = True
            self.recompute_manuscript()
            self.ledger.commit(reservation)
        finally:
            session.in_flight.discard(index)
            self.ledger.release(reservation)

        self.autosave()
        return text

    async def generate_chapter(self, index: int) -> Optional[str]:
        """Generate or regenerate one chapter, in any order, any number of times.

        A failure leaves the workflow in OutlineReady with the message in
        ``session.error``; it does not invalidate the outline.
        """
        self._require(*CHAPTER_STATES)
        self._require_no_bulk()
        chapter = self._check_index(index)
        if index in self.session.in_flight:
            raise ChapterInFlightError(index)

        session = self.session
        reservation = self._reserve(self._chapter_charge(chapter), f"chapter {index + 1}")
        session.error = None
        self._transition(GenerationStatus.CHAPTER_PENDING)
        try:
            return await self._write_chapter(session, index, reservation)
        except GenerationError as e:
            session.error = e.message
            raise
        finally:
            if not session.in_flight and session.status == GenerationStatus.CHAPTER_PENDING:
                self._transition(GenerationStatus.OUTLINE_READY, session)

    async def write_held_chapter(self, index: int) -> Optional[str]:
        """Write a chapter admitted by ``generate_all`` using its held reservation."""
        reservation = self._held.pop(index)
        if not self.bulk_active():
            self.ledger.release(reservation)
            return None
        return await self._write_chapter(self._bulk_session, index, reservation)

    def bulk_active(self) -> bool:
        """True while the session that started ``generate_all`` is current."""
        return self._bulk_session is not None and self._is_current(self._bulk_session)

    async def generate_all(self, callback=None) -> dict:
        """Write every outstanding chapter, assemble, try a cover, and complete.

        Admission reserves the cost of every outstanding chapter up front;
        each chapter is then charged individually as it succeeds.

        Raises:
            InsufficientBalanceError: If the remaining cost cannot be covered.
            GenerationError: If a chapter fails (the workflow is left in Error).
        """
        from workflow.graph import run_finish

        self._require(GenerationStatus.OUTLINE_READY)
        self._require_no_bulk()
        outline = self._require_outline()
        if self.session.in_flight:
            raise WorkflowStateError("Chapters are still being generated")

        pending = outline.pending_indices()
        total = sum(self.ledger.chapter_cost(outline.chapters[i]) for i in pending)
        if not self.ledger.can_afford(total):
            error = InsufficientBalanceError(total, self.ledger.available, "remaining chapters")
            self.session.error = error.message
            raise error

        self.session.error = None
        self._held = {
            i: self.ledger.reserve(self.ledger.chapter_cost(outline.chapters[i]), f"chapter {i + 1}")
            for i in pending
        }
        session = self.session
        session.bulk_running = True
        self._bulk_session = session
        try:
            final_state = await run_finish(self, pending, callback)
        finally:
            session.bulk_running = False
            for reservation in self._held.values():
                self.ledger.release(reservation)
            self._held = {}
            self._bulk_session = None

        if final_state.get("error"):
            raise GenerationError(final_state["error"], {"index": final_state.get("failed_index")})
        return final_state

    # ---- Cover ----

    async def attempt_cover(self, charge: bool) -> bool:
        """Try to render a cover; failures become soft warnings.

        Returns True if a new cover was stored.
        """
        session = self.session
        prompt = session.outline.cover_prompt if session.outline else ""
        reservation = self._reserve(self.settings.cover_cost, "cover") if charge else None
        try:
            image = await self.service.render_cover(prompt)
            if not self._is_current(session):
                return False
            session.cover = image
            if reservation is not None:
                self.ledger.commit(reservation)
            return True
        except GenerationError as e:
            logger.warning("Cover generation failed: %s", e)
            session.warnings.append(e.message)
            return False
        finally:
            if reservation is not None:
                self.ledger.release(reservation)

    async def regenerate_cover(self) -> bool:
        """Paid cover regeneration; charged only when an image comes back."""
        self._require(GenerationStatus.OUTLINE_READY, GenerationStatus.COMPLETED)
        self._require_no_bulk()
        self._require_outline()
        session = self.session
        previous = session.status
        self._transition(GenerationStatus.COVER_PENDING)
        try:
            return await self.attempt_cover(charge=True)
        finally:
            if session.status == GenerationStatus.COVER_PENDING:
                self._transition(previous, session)

    def set_cover_from_file(self, path: str | Path) -> str:
        """Use an uploaded image as the cover. Free, allowed in any state."""
        self.session.cover = image_file_to_data_uri(path)
        return self.session.cover

    # ---- Navigation ----

    def back_to_outline(self):
        self._require(GenerationStatus.COMPLETED)
        self._transition(GenerationStatus.OUTLINE_READY)

    def dismiss_error(self):
        self._require(GenerationStatus.ERROR)
        previous = self.session.previous_status or GenerationStatus.IDLE
        self.session.error = None
        self.session.previous_status = None
        self._transition(previous)

    def reset(self):
        """Discard in-memory state. Saved library entries are untouched."""
        logger.info("Resetting session %s", self.session.session_id)
        self.session = WorkflowSession()

    # ---- Outline edits ----

    def _require_editable(self) -> Outline:
        if not can_edit_outline(self.session):
            raise WorkflowStateError("The outline can only be edited while under review")
        return self.session.outline

    def add_chapter(
        self,
        title: str,
        description: str = "",
        estimated_pages: Optional[int] = None,
        index: Optional[int] = None,
    ) -> Chapter:
        outline = self._require_editable()
        if not title.strip():
            raise ValidationError("Chapter title must not be empty")
        pages = estimated_pages
        if pages is None:
            pages = PAGES_PER_CHAPTER[self.session.project.target_length]
        if pages < 1:
            raise ValidationError("Estimated pages must be at least 1", {"pages": pages})
        chapter = Chapter(title=title.strip(), description=description.strip(), estimated_pages=pages)
        position = len(outline.chapters) if index is None else max(0, min(index, len(outline.chapters)))
        outline.chapters.insert(position, chapter)
        return chapter

    def remove_chapter(self, index: int) -> Chapter:
        outline = self._require_editable()
        self._check_index(index)
        chapter = outline.chapters.pop(index)
        self.recompute_manuscript()
        return chapter

    def move_chapter(self, source: int, target: int):
        outline = self._require_editable()
        self._check_index(source)
        self._check_index(target)
        outline.chapters.insert(target, outline.chapters.pop(source))
        self.recompute_manuscript()

    def update_chapter(
        self,
        index: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        estimated_pages: Optional[int] = None,
    ) -> Chapter:
        self._require_editable()
        chapter = self._check_index(index)
        if title is not None:
            if not title.strip():
                raise ValidationError("Chapter title must not be empty")
            chapter.title = title.strip()
        if description is not None:
            chapter.description = description.strip()
        if estimated_pages is not None:
            if estimated_pages < 1:
                raise ValidationError("Estimated pages must be at least 1", {"pages": estimated_pages})
            chapter.estimated_pages = estimated_pages
        return chapter

    def update_outline(self, title: Optional[str] = None, cover_prompt: Optional[str] = None):
        outline = self._require_editable()
        if title is not None:
            outline.title = title.strip()
        if cover_prompt is not None:
            outline.cover_prompt = cover_prompt.strip()

    def edit_chapter_text(self, index: int, text: str):
        """Manual edit of a chapter's manuscript text. Never charged."""
        self._require(GenerationStatus.OUTLINE_READY, GenerationStatus.COMPLETED)
        self._require_no_bulk()
        chapter = self._check_index(index)
        if index in self.session.in_flight:
            raise ChapterInFlightError(index)
        chapter.content = text if text.strip() else ""
        chapter.generated = bool(chapter.content)
        self.recompute_manuscript()

    # ---- Project inputs ----

    def update_project(self, **fields) -> Project:
        unknown = set(fields) - _PROJECT_FIELDS
        if unknown:
            raise ValidationError("Unknown project fields", {"fields": ", ".join(sorted(unknown))})
        if "chapter_count" in fields and int(fields["chapter_count"]) < 1:
            raise ValidationError("chapter_count must be at least 1")
        # Enum fields may arrive as members or as their string values
        updates = {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items()}
        try:
            project = Project.from_dict({**self.session.project.to_dict(), **updates})
        except ValueError as e:
            raise ValidationError("Invalid project settings", {"reason": str(e)}) from e
        self.session.project = project
        return project

    def add_reference_link(self, url: str) -> list[str]:
        url = url.strip()
        if not url:
            raise ValidationError("Reference link must not be empty")
        self.session.project.reference_links.append(url)
        return self.session.project.reference_links

    def remove_reference_link(self, index: int) -> str:
        links = self.session.project.reference_links
        if not 0 <= index < len(links):
            raise ValidationError("Reference link index out of range", {"index": index})
        return links.pop(index)

    def add_material_text(self, name: str, text: str) -> str:
        project = self.session.project
        project.materials = append_material(project.materials, name, text)
        return project.materials

    def add_material_file(self, path: str | Path) -> str:
        path = Path(path)
        return self.add_material_text(path.name, read_material_file(path))

    # ---- Library ----

    def autosave(self) -> Optional[LibraryEntry]:
        if self.db is None:
            return None
        return self.save()

    def save(self) -> LibraryEntry:
        """Write the session to the library, assigning an id on first save."""
        if self.db is None:
            raise WorkflowStateError("No library database configured")
        if not self.session.project.id:
            self.session.project.id = uuid.uuid4().hex
        return self.db.save_entry(self.session.snapshot())

    def load(self, entry_id: str) -> WorkflowSession:
        if self.db is None:
            raise WorkflowStateError("No library database configured")
        entry = self.db.get_entry(entry_id)
        if entry is None:
            raise ValidationError("No saved project with this id", {"id": entry_id})
        self.session = WorkflowSession.from_entry(entry)
        logger.info("Loaded library entry %s (%s)", entry_id, self.session.status.value)
        return self.session

    def delete_entry(self, entry_id: str) -> bool:
        if self.db is None:
            raise WorkflowStateError("No library database configured")
        return self.db.delete_entry(entry_id)

    def list_entries(self) -> list[LibraryEntry]:
        if self.db is None:
            return []
        return self.db.list_entries()

    # ---- Credits ----

    async def top_up(self, pack_id: str, gateway: Optional[PaymentGateway] = None) -> int:
        pack = get_pack(pack_id)
        if pack is None:
            raise BillingError("Unknown credit pack", {"pack": pack_id})
        gateway = gateway or SimulatedPaymentGateway(self.settings.topup_delay_seconds)
        balance = await self.ledger.purchase(pack, gateway)
        return balance
