"""Workflow state machine and the session that drives it."""

from .session import PreviewHandle, TransformSession
from .state import AppState, WorkflowSnapshot, WorkflowStateMachine

__all__ = ["AppState", "PreviewHandle", "TransformSession", "WorkflowSnapshot", "WorkflowStateMachine"]
