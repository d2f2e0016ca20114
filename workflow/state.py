"""Workflow session state and the LangGraph state for the finish-book run."""

import uuid
from dataclasses import dataclass, field
from typing import Optional, TypedDict

from models.enums import GenerationStatus
from models.library import LibraryEntry
from models.outline import Outline
from models.project import Project


def _new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class WorkflowSession:
    """Everything one workflow run owns.

    A new session (and session id) is created on reset or load; results of
    generation calls issued under an older session id are discarded.
    """
    session_id: str = field(default_factory=_new_session_id)
    project: Project = field(default_factory=Project)
    outline: Optional[Outline] = None
    manuscript: str = ""
    cover: str = ""
    status: GenerationStatus = GenerationStatus.IDLE
    previous_status: Optional[GenerationStatus] = None  # restored by dismiss_error()
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    in_flight: set[int] = field(default_factory=set)
    bulk_running: bool = False  # a finish-book run owns the session

    def snapshot(self) -> LibraryEntry:
        return LibraryEntry(
            project=self.project,
            outline=self.outline,
            manuscript=self.manuscript,
            cover=self.cover,
            completed=self.status == GenerationStatus.COMPLETED,
        )

    @classmethod
    def from_entry(cls, entry: LibraryEntry) -> "WorkflowSession":
        if entry.outline is None:
            status = GenerationStatus.IDLE
        elif entry.completed:
            status = GenerationStatus.COMPLETED
        else:
            status = GenerationStatus.OUTLINE_READY
        return cls(
            project=entry.project,
            outline=entry.outline,
            manuscript=entry.manuscript,
            cover=entry.cover,
            status=status,
        )


class FinishState(TypedDict, total=False):
    """State shared by the nodes of the finish-book graph.

    - Plan: pending (chapter indices to write, in order), cursor
    - Progress: chapters_written, last_index, manuscript_chars, cover_generated
    - Control: error, failed_index, superseded, last_node
    """

    # Plan
    pending: list
    cursor: int

    # Progress
    chapters_written: int
    last_index: int
    manuscript_chars: int
    cover_generated: bool

    # Control flow
    error: str
    failed_index: int
    superseded: bool
    last_node: str
