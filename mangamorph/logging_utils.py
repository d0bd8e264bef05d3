from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from rich.console import Console
from rich.theme import Theme

_LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}
_LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "white",
    "WARN": "yellow",
    "ERROR": "red",
}


def _normalize_level(level: str) -> str:
    level = level.upper().strip()
    return "WARN" if level == "WARNING" else level


def _attempt_tag(attempt: Optional[int]) -> str:
    # "#-" marks lines outside any transform attempt
    return f"#{attempt}" if attempt is not None else "#-"


@dataclass(slots=True)
class RunLogger:
    """Console logger for one session; every line names its step and attempt.

    Lines read ``[time] [LEVEL] [STEP   ] [#N] message``, so interleaved
    output from a superseded attempt and its replacement can be told apart.
    """

    console: Optional[Console]
    level: str = "INFO"
    logfile: Optional[Path] = None
    _plain_file: Optional[TextIO] = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self.level = _normalize_level(self.level)
        if self.level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.level}")
        if self.logfile:
            self.logfile.parent.mkdir(parents=True, exist_ok=True)
            self._plain_file = self.logfile.open("a", encoding="utf-8")

    def enabled_for(self, level: str) -> bool:
        return _LOG_LEVELS.get(_normalize_level(level), 100) >= _LOG_LEVELS[self.level]

    def close(self) -> None:
        if self._plain_file:
            self._plain_file.close()
            self._plain_file = None

    def log(
        self,
        step: str,
        message: str,
        level: str = "INFO",
        elapsed_ms: Optional[float] = None,
        *,
        attempt: Optional[int] = None,
    ) -> None:
        level = _normalize_level(level)
        if not self.enabled_for(level):
            return
        now = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        suffix = f" (ms={elapsed_ms:.0f})" if elapsed_ms is not None else ""
        line = f"[{now}] [{level.ljust(5)}] [{step.upper().ljust(7)}] [{_attempt_tag(attempt)}] {message}{suffix}"
        if self.console is not None:
            self.console.print(line, style=_LEVEL_STYLES[level], highlight=False, soft_wrap=True)
        if self._plain_file:
            self._plain_file.write(line + "\n")
            self._plain_file.flush()

    def debug(self, step: str, message: str, *, attempt: Optional[int] = None) -> None:
        self.log(step, message, level="DEBUG", attempt=attempt)

    def warn(self, step: str, message: str, *, attempt: Optional[int] = None) -> None:
        self.log(step, message, level="WARN", attempt=attempt)

    def error(self, step: str, message: str, *, attempt: Optional[int] = None) -> None:
        self.log(step, message, level="ERROR", attempt=attempt)

    def timed(
        self,
        step: str,
        message: Union[str, Callable[[object], str]],
        func: Callable[..., object],
        *args,
        level: str = "INFO",
        attempt: Optional[int] = None,
        **kwargs,
    ) -> object:
        """Run ``func`` and log how long it took; failures are logged and re-raised."""
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000.0
            self.log(step, f"error: {exc}", level="ERROR", elapsed_ms=elapsed, attempt=attempt)
            raise
        elapsed = (time.perf_counter() - start) * 1000.0
        msg = message(result) if callable(message) else message
        self.log(step, msg, level=level, elapsed_ms=elapsed, attempt=attempt)
        return result


def create_logger(level: str = "INFO", logfile: Optional[Path] = None, *, quiet: bool = False) -> RunLogger:
    console = None if quiet else Console(theme=Theme({"repr.number": "cyan"}), stderr=True)
    return RunLogger(console=console, level=level, logfile=logfile)


def null_logger() -> RunLogger:
    return RunLogger(console=None, level="ERROR")


__all__ = ["RunLogger", "create_logger", "null_logger"]
