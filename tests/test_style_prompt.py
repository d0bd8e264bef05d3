from pathlib import Path

import pytest

from mangamorph.style import (
    DEFAULT_STYLE_PROMPT_PATH,
    MANGA_PROMPT,
    load_style_instruction,
    style_instruction_hash,
)


def test_bundled_prompt_is_loaded_once_at_import() -> None:
    assert DEFAULT_STYLE_PROMPT_PATH.exists()
    assert MANGA_PROMPT == load_style_instruction()
    assert MANGA_PROMPT.startswith("Transform this realistic image")


@pytest.mark.parametrize(
    "fragment",
    ["PLAIN WHITE background", "THICK, BOLD BLACK OUTLINES", "exact original pose", "HEAD slightly LARGER", "PNG export"],
)
def test_prompt_covers_visual_constraints(fragment: str) -> None:
    assert fragment in MANGA_PROMPT


def test_empty_override_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "blank.txt"
    path.write_text("  \n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_style_instruction(path)


def test_hash_is_stable_and_short() -> None:
    assert style_instruction_hash(MANGA_PROMPT) == style_instruction_hash(MANGA_PROMPT)
    assert len(style_instruction_hash(MANGA_PROMPT)) == 12


def test_bundled_prompt_omits_body_stylization_and_is_renumbered() -> None:
    assert "Body Stylization" not in MANGA_PROMPT
    assert "Hourglass" not in MANGA_PROMPT
    numbered = [line.split(".", 1)[0] for line in MANGA_PROMPT.splitlines() if line[:1].isdigit()]
    assert numbered == ["1", "2", "3", "4", "5"]
