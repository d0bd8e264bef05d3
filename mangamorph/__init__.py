from __future__ import annotations

"""Photo-to-manga transformation pipeline on top of Gemini image models."""

from importlib import import_module
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .config import MangaMorphConfig, load_config
    from .transform import GeminiTransformEngine
    from .workflow import AppState, TransformSession

__all__ = ["AppState", "GeminiTransformEngine", "MangaMorphConfig", "TransformSession", "load_config"]

__version__ = "0.1.0"


def __getattr__(name: str) -> Any:  # pragma: no cover - dispatch helper
    if name in {"MangaMorphConfig", "load_config"}:
        module = import_module(".config", __name__)
    elif name == "GeminiTransformEngine":
        module = import_module(".transform", __name__)
    elif name in {"AppState", "TransformSession"}:
        module = import_module(".workflow", __name__)
    else:
        raise AttributeError(name)

    value = getattr(module, name)
    globals()[name] = value
    return value
