"""Workflow package: session state, controller, and the finish-book graph."""

from workflow.state import FinishState, WorkflowSession
from workflow.conditions import (
    can_plan_outline,
    can_generate_chapter,
    can_generate_all,
    can_edit_outline,
    route_next_chapter,
)
from workflow.controller import WorkflowController
from workflow.graph import build_graph, run_finish
from workflow.callbacks import WorkflowCallback, LoggingCallback, RichProgressCallback

__all__ = [
    "FinishState",
    "WorkflowSession",
    "can_plan_outline",
    "can_generate_chapter",
    "can_generate_all",
    "can_edit_outline",
    "route_next_chapter",
    "WorkflowController",
    "build_graph",
    "run_finish",
    "WorkflowCallback",
    "LoggingCallback",
    "RichProgressCallback",
]
