"""Lifecycle of one transformation attempt.

The machine owns the only mutable ``WorkflowState`` of a session.  Each call to
``start_transform`` hands out a new attempt token; completions carrying any
other token are stale (the user reset or picked another file meanwhile) and
are dropped instead of applied.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mangamorph.errors import is_credential_error
from mangamorph.image.source import SourceImage
from mangamorph.logging_utils import RunLogger, null_logger
from mangamorph.transform.interfaces import TransformedImage

DEFAULT_ERROR_MESSAGE = "Something went wrong during transformation."


class AppState(str, Enum):
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class WorkflowSnapshot:
    """Read-only view handed to the presentation layer."""

    state: AppState
    current_image: Optional[SourceImage] = None
    result_image: Optional[TransformedImage] = None
    error_message: str = ""
    attempt: Optional[int] = None

    @property
    def needs_credentials(self) -> bool:
        return self.state is AppState.ERROR and is_credential_error(self.error_message)


def error_message_for(error: BaseException | str | None) -> str:
    if isinstance(error, BaseException):
        text = str(error).strip()
    else:
        text = (error or "").strip()
    return text or DEFAULT_ERROR_MESSAGE


class WorkflowStateMachine:
    """Idle → Processing → Success/Error, with token-guarded completions."""

    def __init__(self, logger: RunLogger | None = None) -> None:
        self._logger = logger or null_logger()
        self._tokens = itertools.count(1)
        self._state = AppState.IDLE
        self._current_image: Optional[SourceImage] = None
        self._result_image: Optional[TransformedImage] = None
        self._error_message = ""
        self._attempt: Optional[int] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def state(self) -> AppState:
        return self._state

    @property
    def current_attempt(self) -> Optional[int]:
        return self._attempt

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self._state,
            current_image=self._current_image,
            result_image=self._result_image,
            error_message=self._error_message,
            attempt=self._attempt,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def select_file(self, image: SourceImage) -> None:
        self._clear_outcome()
        self._attempt = None
        self._current_image = image
        self._move(AppState.IDLE, f"selected {image.name or image.mime_type} ({image.size} bytes)")

    def start_transform(self) -> Optional[int]:
        if self._current_image is None:
            self._logger.warn("state", "start ignored: no image selected")
            return None
        if self._state is AppState.PROCESSING:
            self._logger.warn("state", "start ignored: previous attempt still running", attempt=self._attempt)
            return None
        # regenerate: never show the previous image while a new one is drawn
        self._clear_outcome()
        self._attempt = next(self._tokens)
        self._move(AppState.PROCESSING, "started", attempt=self._attempt)
        return self._attempt

    def complete_success(self, token: int, image: TransformedImage) -> bool:
        if not self._accepts(token):
            return False
        self._result_image = image
        self._error_message = ""
        self._move(AppState.SUCCESS, f"produced {len(image.image_bytes)} bytes", attempt=token)
        return True

    def complete_failure(self, token: int, error: BaseException | str) -> bool:
        if not self._accepts(token):
            return False
        self._result_image = None
        self._error_message = error_message_for(error)
        self._move(AppState.ERROR, f"failed: {self._error_message}", level="ERROR", attempt=token)
        return True

    def reset(self) -> None:
        self._clear_outcome()
        self._current_image = None
        self._attempt = None
        self._move(AppState.IDLE, "reset")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _accepts(self, token: int) -> bool:
        if self._state is not AppState.PROCESSING or token != self._attempt:
            self._logger.warn("state", "discarding stale completion", attempt=token)
            return False
        return True

    def _clear_outcome(self) -> None:
        self._result_image = None
        self._error_message = ""

    def _move(self, state: AppState, message: str, *, level: str = "INFO", attempt: Optional[int] = None) -> None:
        previous = self._state
        self._state = state
        self._logger.log("state", f"{previous.value} -> {state.value}: {message}", level=level, attempt=attempt)


__all__ = [
    "AppState",
    "DEFAULT_ERROR_MESSAGE",
    "WorkflowSnapshot",
    "WorkflowStateMachine",
    "error_message_for",
]
