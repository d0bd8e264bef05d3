from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from mangamorph.config import MangaMorphConfig
from mangamorph.errors import MangaMorphError
from mangamorph.image.aspect import estimate
from mangamorph.image.encoding import encode
from mangamorph.image.source import SourceImage
from mangamorph.logging_utils import RunLogger, null_logger
from mangamorph.style import MANGA_PROMPT, load_style_instruction, style_instruction_hash
from mangamorph.transform.interfaces import TransformEngineProtocol, TransformationRequest

from .state import WorkflowSnapshot, WorkflowStateMachine

SourceLike = Union[SourceImage, Path, str, bytes]


class PreviewHandle:
    """Temporary on-disk copy of the source bytes for display."""

    def __init__(self, image: SourceImage) -> None:
        fd, name = tempfile.mkstemp(prefix="mangamorph-preview-", suffix=image.suffix)
        with os.fdopen(fd, "wb") as handle:
            handle.write(image.data)
        self.path = Path(name)
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            raise RuntimeError(f"Preview {self.path} already released")
        self._released = True
        self.path.unlink(missing_ok=True)


class TransformSession:
    """Drives select → transform → result for one user.

    All state changes go through ``WorkflowStateMachine``; the Gemini call runs
    in a worker thread and is the only point where the session yields.
    """

    def __init__(
        self,
        engine: TransformEngineProtocol,
        *,
        config: MangaMorphConfig | None = None,
        logger: RunLogger | None = None,
        instruction: str | None = None,
    ) -> None:
        self._engine = engine
        self._config = config or MangaMorphConfig()
        self._logger = logger or null_logger()
        if instruction is None:
            instruction = (
                load_style_instruction(self._config.style_prompt_path)
                if self._config.style_prompt_path
                else MANGA_PROMPT
            )
        self._instruction = instruction
        self._logger.debug("style", f"instruction {style_instruction_hash(instruction)} ({len(instruction)} chars)")
        self._machine = WorkflowStateMachine(self._logger)
        self._preview: Optional[PreviewHandle] = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def preview(self) -> Optional[PreviewHandle]:
        return self._preview

    def snapshot(self) -> WorkflowSnapshot:
        return self._machine.snapshot()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def select_file(self, source: SourceLike, *, mime_type: str | None = None) -> SourceImage:
        image = self._read_source(source, mime_type)
        preview = PreviewHandle(image)
        self._release_preview()
        self._preview = preview
        self._machine.select_file(image)
        return image

    def start_transform(self) -> Optional["asyncio.Task[WorkflowSnapshot]"]:
        loop = asyncio.get_running_loop()
        image = self._machine.snapshot().current_image
        token = self._machine.start_transform()
        if token is None or image is None:
            return None
        return loop.create_task(self._run_attempt(token, image))

    async def transform(self) -> WorkflowSnapshot:
        task = self.start_transform()
        if task is None:
            return self.snapshot()
        return await task

    def reset(self) -> None:
        self._machine.reset()
        self._release_preview()

    def close(self) -> None:
        self._release_preview()

    def __enter__(self) -> "TransformSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _run_attempt(self, token: int, image: SourceImage) -> WorkflowSnapshot:
        try:
            ratio = estimate(image)
            self._logger.log("ratio", f"aspect {ratio.value}", attempt=token)
            encoded = encode(image)
            self._logger.log("encode", f"{len(encoded.payload)} base64 chars ({encoded.mime_type})", attempt=token)
            request = TransformationRequest(
                instruction=self._instruction,
                payload=encoded.payload,
                mime_type=encoded.mime_type,
                aspect_ratio=ratio,
                attempt=token,
            )
            result = await asyncio.to_thread(self._engine.transform, request)
            image_out = result.unwrap()
        except MangaMorphError as exc:
            self._machine.complete_failure(token, exc)
        except Exception as exc:
            # outside the taxonomy; the attempt still ends in Error
            self._logger.error("attempt", f"unexpected {type(exc).__name__}: {exc}", attempt=token)
            self._machine.complete_failure(token, exc)
        else:
            self._machine.complete_success(token, image_out)
        return self._machine.snapshot()

    def _read_source(self, source: SourceLike, mime_type: str | None) -> SourceImage:
        max_bytes = self._config.upload.max_bytes
        if isinstance(source, SourceImage):
            return source
        if isinstance(source, (bytes, bytearray)):
            if not mime_type:
                raise ValueError("mime_type is required when selecting raw bytes")
            return SourceImage.from_bytes(bytes(source), mime_type, max_bytes=max_bytes)
        if isinstance(source, str) and source.startswith("data:"):
            return SourceImage.from_data_url(source, max_bytes=max_bytes)
        return SourceImage.from_path(Path(source), max_bytes=max_bytes)

    def _release_preview(self) -> None:
        if self._preview is not None:
            preview, self._preview = self._preview, None
            preview.release()


__all__ = ["PreviewHandle", "SourceLike", "TransformSession"]
