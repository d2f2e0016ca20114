"""Transition guards and routing functions for the generation workflow."""

from billing.ledger import CreditLedger
from models.enums import GenerationStatus, Operation
from workflow.state import FinishState, WorkflowSession

# States in which single chapters may be (re)generated
CHAPTER_STATES = (GenerationStatus.OUTLINE_READY, GenerationStatus.CHAPTER_PENDING)


def can_plan_outline(session: WorkflowSession, ledger: CreditLedger) -> bool:
    """Outline planning needs a description, an idle workflow, and credits."""
    if not session.project.description.strip():
        return False
    idle = session.status == GenerationStatus.IDLE or (
        session.status == GenerationStatus.ERROR
        and session.previous_status == GenerationStatus.IDLE
    )
    return idle and ledger.can_afford(ledger.estimate_cost(Operation.OUTLINE))


def can_generate_chapter(session: WorkflowSession, ledger: CreditLedger, index: int) -> bool:
    outline = session.outline
    if outline is None or session.status not in CHAPTER_STATES or session.bulk_running:
        return False
    if not 0 <= index < len(outline.chapters) or index in session.in_flight:
        return False
    return ledger.can_afford(ledger.estimate_cost(Operation.CHAPTER, outline, index))


def can_generate_all(session: WorkflowSession, ledger: CreditLedger) -> bool:
    if session.outline is None or session.status != GenerationStatus.OUTLINE_READY:
        return False
    if session.in_flight or session.bulk_running:
        return False
    return ledger.can_afford(ledger.remaining_cost(session.outline))


def can_edit_outline(session: WorkflowSession) -> bool:
    """Structure edits only while the outline is under review and idle."""
    return (
        session.outline is not None
        and session.status == GenerationStatus.OUTLINE_READY
        and not session.in_flight
        and not session.bulk_running
    )


def route_next_chapter(state: FinishState) -> str:
    """Route after a chapter step: error, stop, next chapter, or assembly."""
    if state.get("error"):
        return "handle_error"
    if state.get("superseded", False):
        return "__end__"
    if state.get("cursor", 0) < len(state.get("pending", [])):
        return "write_next_chapter"
    return "assemble_manuscript"
