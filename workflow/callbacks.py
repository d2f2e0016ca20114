"""Workflow progress callbacks for monitoring and terminal reporting."""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class WorkflowCallback(Protocol):
    """Protocol for finish-book progress callbacks."""

    def on_node_exit(self, node: str, state: dict) -> None:
        """Called after a node finishes executing with the accumulated state."""
        ...

    def on_chapter_complete(self, index: int, written: int, total: int) -> None:
        """Called when a chapter has been written and charged."""
        ...

    def on_error(self, node: str, error: str) -> None:
        """Called when a chapter step fails."""
        ...

    def on_workflow_complete(self, final_state: dict) -> None:
        """Called when the run finishes, successfully or not."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_node_exit(self, node: str, state: dict) -> None:
        logger.debug("← node: %s", node)

    def on_chapter_complete(self, index: int, written: int, total: int) -> None:
        logger.info("Chapter %d complete (%d/%d)", index + 1, written, total)

    def on_error(self, node: str, error: str) -> None:
        logger.error("Workflow error in '%s': %s", node, error)

    def on_workflow_complete(self, final_state: dict) -> None:
        logger.info(
            "Finish-book run done: chapters_written=%d",
            final_state.get("chapters_written", 0),
        )


class RichProgressCallback:
    """Renders a Rich live progress display in the terminal."""

    # Label for the step that starts after each node exits
    _ENTERING_LABEL: dict[str, str] = {
        "start": "Writing chapters",
        "write_next_chapter": "Writing chapters",
        "assemble_manuscript": "Rendering cover",
        "render_cover": "Finishing",
        "complete": "Done",
        "handle_error": "Stopped",
    }

    def __init__(self, console=None, total_chapters: int = 0):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            total_chapters: Chapters to write (for progress bar max).
        """
        self._console = console
        self._total = total_chapters
        self._progress = None
        self._chapter_task_id = None
        self._node_task_id = None

    def start(self):
        """Start the progress display. Call before running the workflow."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()
        self._chapter_task_id = self._progress.add_task(
            "Waiting to start...",
            total=self._total if self._total > 0 else None,
        )
        self._node_task_id = self._progress.add_task("[dim]Preparing...[/]", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_node_exit(self, node: str, state: dict) -> None:
        if not self._progress:
            return
        label = self._ENTERING_LABEL.get(node, node)
        self._progress.update(self._node_task_id, description=f"[dim]{label}[/]")

    def on_chapter_complete(self, index: int, written: int, total: int) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._chapter_task_id,
            completed=written,
            description=f"[green]Chapter {index + 1} written ({written}/{total or '?'})[/]",
        )

    def on_error(self, node: str, error: str) -> None:
        if not self._progress:
            return
        self._progress.update(self._node_task_id, description=f"[red]Error ({node}): {error[:80]}[/]")

    def on_workflow_complete(self, final_state: dict) -> None:
        if not self._progress:
            return
        written = final_state.get("chapters_written", 0)
        self._progress.update(
            self._chapter_task_id,
            description=f"[bold green]Done, {written} chapters written[/]",
        )
        self._progress.update(self._node_task_id, description="")
