from __future__ import annotations

import hashlib
from pathlib import Path

# data/manga_prompt.txt deliberately differs from the original app prompt: the
# body-stylization item is left out and the remaining items are renumbered.
DEFAULT_STYLE_PROMPT_PATH = Path(__file__).with_name("data").joinpath("manga_prompt.txt")


def load_style_instruction(path: Path | None = None) -> str:
    source = Path(path) if path is not None else DEFAULT_STYLE_PROMPT_PATH
    text = source.read_text(encoding="utf-8").strip()
    if not text:
        raise ValueError(f"Style instruction file {source} is empty")
    return text


def style_instruction_hash(prompt: str) -> str:
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:12]


MANGA_PROMPT = load_style_instruction()

__all__ = ["DEFAULT_STYLE_PROMPT_PATH", "MANGA_PROMPT", "load_style_instruction", "style_instruction_hash"]
