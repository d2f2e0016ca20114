"""LangGraph StateGraph for the "finish book" run.

Writes every outstanding chapter in manuscript order, assembles the
manuscript, makes one non-fatal cover attempt if the book has no cover yet,
and completes.
"""

import logging
from typing import TYPE_CHECKING, Optional

from langchain_core.runnables import RunnableConfig
from langgraph.graph import StateGraph, END

from config.exceptions import GenerationError
from models.enums import GenerationStatus
from workflow.callbacks import LoggingCallback
from workflow.conditions import route_next_chapter
from workflow.state import FinishState

if TYPE_CHECKING:
    from workflow.callbacks import WorkflowCallback
    from workflow.controller import WorkflowController

logger = logging.getLogger(__name__)


def _controller(config: RunnableConfig) -> "WorkflowController":
    return config["configurable"]["controller"]


# ---------------------------------------------------------------------------
# Node functions
# ---------------------------------------------------------------------------

async def start(state: FinishState, config: RunnableConfig) -> dict:
    logger.info("Entering node: start (%d chapters pending)", len(state.get("pending", [])))
    ctl = _controller(config)
    if state.get("pending") and ctl.bulk_active():
        ctl._transition(GenerationStatus.CHAPTER_PENDING)
    return {"cursor": 0, "chapters_written": 0, "last_node": "start"}


async def write_next_chapter(state: FinishState, config: RunnableConfig) -> dict:
    """Write the chapter at the cursor; each success is charged on its own."""
    ctl = _controller(config)
    cursor = state.get("cursor", 0)
    index = state["pending"][cursor]
    logger.info("Entering node: write_next_chapter (chapter %d)", index + 1)

    try:
        text = await ctl.write_held_chapter(index)
    except GenerationError as e:
        return {"error": e.message, "failed_index": index, "last_node": "write_next_chapter"}

    if text is None:
        return {"superseded": True, "last_node": "write_next_chapter"}

    return {
        "cursor": cursor + 1,
        "chapters_written": state.get("chapters_written", 0) + 1,
        "last_index": index,
        "last_node": "write_next_chapter",
    }


async def assemble_manuscript(state: FinishState, config: RunnableConfig) -> dict:
    logger.info("Entering node: assemble_manuscript")
    ctl = _controller(config)
    if not ctl.bulk_active():
        return {"superseded": True, "last_node": "assemble_manuscript"}
    ctl._transition(GenerationStatus.MANUSCRIPT_ASSEMBLING)
    manuscript = ctl.recompute_manuscript()
    return {"manuscript_chars": len(manuscript), "last_node": "assemble_manuscript"}


async def render_cover(state: FinishState, config: RunnableConfig) -> dict:
    """One free cover attempt if the book has none yet.

    An existing cover, generated or uploaded, is only replaced by an explicit
    regenerate_cover or set_cover_from_file. A failure only leaves a warning.
    """
    logger.info("Entering node: render_cover")
    ctl = _controller(config)
    if not ctl.bulk_active():
        return {"superseded": True, "last_node": "render_cover"}
    if ctl.session.cover:
        logger.info("Keeping the existing cover")
        return {"cover_generated": False, "last_node": "render_cover"}
    ctl._transition(GenerationStatus.COVER_PENDING)
    generated = await ctl.attempt_cover(charge=False)
    return {"cover_generated": generated, "last_node": "render_cover"}


async def complete(state: FinishState, config: RunnableConfig) -> dict:
    logger.info("Entering node: complete")
    ctl = _controller(config)
    if not ctl.bulk_active():
        return {"superseded": True, "last_node": "complete"}
    ctl._transition(GenerationStatus.COMPLETED)
    ctl.autosave()
    return {"last_node": "complete"}


async def handle_error(state: FinishState, config: RunnableConfig) -> dict:
    """Stop the run; chapters already written stay written and charged."""
    logger.info("Entering node: handle_error")
    ctl = _controller(config)
    if not ctl.bulk_active():
        return {"superseded": True, "last_node": "handle_error"}
    ctl.fail(state.get("error", "Unknown error"), GenerationStatus.OUTLINE_READY)
    return {"last_node": "handle_error"}


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

def build_graph():
    """Build and return the compiled finish-book graph."""
    graph = StateGraph(FinishState)

    graph.add_node("start", start)
    graph.add_node("write_next_chapter", write_next_chapter)
    graph.add_node("assemble_manuscript", assemble_manuscript)
    graph.add_node("render_cover", render_cover)
    graph.add_node("complete", complete)
    graph.add_node("handle_error", handle_error)

    graph.set_entry_point("start")

    routes = {
        "write_next_chapter": "write_next_chapter",
        "assemble_manuscript": "assemble_manuscript",
        "handle_error": "handle_error",
        "__end__": END,
    }
    graph.add_conditional_edges("start", route_next_chapter, routes)
    graph.add_conditional_edges("write_next_chapter", route_next_chapter, routes)

    graph.add_edge("assemble_manuscript", "render_cover")
    graph.add_edge("render_cover", "complete")
    graph.add_edge("complete", END)
    graph.add_edge("handle_error", END)

    return graph.compile()


async def run_finish(
    controller: "WorkflowController",
    pending: list[int],
    callback: Optional["WorkflowCallback"] = None,
) -> dict:
    """Run the finish-book graph for ``pending`` chapter indices.

    Returns:
        Final graph state dict.
    """
    app = build_graph()
    initial_state: FinishState = {"pending": list(pending), "cursor": 0}
    config = {
        "configurable": {"controller": controller},
        # one step per chapter plus the fixed nodes
        "recursion_limit": max(25, len(pending) + 10),
    }

    logger.info("Starting finish-book run: %d chapters pending", len(pending))
    final_state = await _run_with_callback(app, initial_state, config, callback or LoggingCallback())
    logger.info("Finish-book run ended at node '%s'", final_state.get("last_node", ""))
    return final_state


async def _run_with_callback(app, initial_state: dict, config, callback) -> dict:
    """Run the graph with astream() and emit progress callbacks."""
    accumulated: dict = dict(initial_state)
    total = len(initial_state.get("pending", []))
    prev_written = 0

    async for event in app.astream(initial_state, config=config):
        # Each event is {node_name: state_update_dict}
        for node_name, node_update in event.items():
            if isinstance(node_update, dict):
                accumulated.update(node_update)

            callback.on_node_exit(node_name, accumulated)

            written = accumulated.get("chapters_written", 0)
            if written > prev_written:
                callback.on_chapter_complete(accumulated.get("last_index", 0), written, total)
                prev_written = written

            if node_name == "write_next_chapter" and accumulated.get("error"):
                callback.on_error(node_name, accumulated["error"])

    callback.on_workflow_complete(accumulated)
    return accumulated
