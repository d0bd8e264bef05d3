from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from mangamorph.config import MangaMorphConfig, resolve_api_key
from mangamorph.errors import (
    CredentialError,
    EmptyResponseError,
    NoImageDataError,
    RefusalError,
    TransportError,
)
from mangamorph.image.aspect import AspectRatioTag
from mangamorph.image.encoding import decode_payload
from mangamorph.logging_utils import RunLogger, null_logger
from mangamorph.style import MANGA_PROMPT

from .interfaces import TransformEngineProtocol, TransformationRequest, TransformationResult

_AUTH_STATUS_CODES = {401, 403}
_AUTH_MARKERS = ("api key", "api_key_invalid", "permission_denied", "unauthenticated")


def _coerce_bytes(blob: Any) -> bytes | None:
    if isinstance(blob, (bytes, bytearray)):
        return bytes(blob)
    if isinstance(blob, str):
        try:
            return base64.b64decode(blob)
        except (ValueError, binascii.Error):
            return None
    return None


def _response_parts(response: Any) -> Sequence[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ()
    content = getattr(candidates[0], "content", None)
    return getattr(content, "parts", None) or ()


def parse_response(response: Any) -> TransformationResult:
    """Classify a ``generate_content`` response.

    The first inline image wins; a text part is only read when no image part
    exists and is treated as the model's refusal.
    """

    parts = _response_parts(response)
    if not parts:
        return TransformationResult.failure(EmptyResponseError())

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is None:
            continue
        blob = _coerce_bytes(getattr(inline, "data", None))
        if blob:
            return TransformationResult.success(blob)

    for part in parts:
        text = getattr(part, "text", None)
        if isinstance(text, str) and text:
            return TransformationResult.failure(RefusalError(text))

    return TransformationResult.failure(NoImageDataError())


def _is_auth_failure(exc: genai_errors.APIError) -> bool:
    if getattr(exc, "code", None) in _AUTH_STATUS_CODES:
        return True
    text = " ".join(str(v) for v in (getattr(exc, "status", None), getattr(exc, "message", None), exc) if v)
    lowered = text.lower()
    return any(marker in lowered for marker in _AUTH_MARKERS)


def build_contents(request: TransformationRequest) -> list[types.Part]:
    return [
        types.Part.from_text(text=request.instruction),
        types.Part.from_bytes(data=decode_payload(request.payload), mime_type=request.mime_type),
    ]


def build_config(aspect_ratio: AspectRatioTag) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        image_config=types.ImageConfig(aspect_ratio=AspectRatioTag(aspect_ratio).value),
    )


@dataclass
class GeminiTransformEngine(TransformEngineProtocol):
    """Single-shot Gemini image edit; no retries, no caching."""

    model: str
    api_key: Optional[str] = None
    client: Optional[Any] = None
    timeout_s: Optional[float] = None
    logger: RunLogger = field(default_factory=null_logger)

    @classmethod
    def from_config(
        cls,
        config: MangaMorphConfig,
        *,
        environ: Optional[Mapping[str, str]] = None,
        logger: RunLogger | None = None,
    ) -> "GeminiTransformEngine":
        try:
            api_key: Optional[str] = resolve_api_key(config, environ)
        except CredentialError:
            # surfaced on the first attempt so the workflow can show it
            api_key = None
        return cls(
            model=config.gemini.model,
            api_key=api_key,
            timeout_s=config.gemini.timeout_s,
            logger=logger or null_logger(),
        )

    def _ensure_client(self) -> Any:
        if self.client is not None:
            return self.client
        if not self.api_key:
            raise CredentialError("Set GEMINI_API_KEY (or API_KEY) in the environment or a .env file.")
        http_options = None
        if self.timeout_s:
            http_options = types.HttpOptions(timeout=int(self.timeout_s * 1000))
        self.client = genai.Client(api_key=self.api_key, http_options=http_options)
        return self.client

    def transform(self, request: TransformationRequest) -> TransformationResult:
        client = self._ensure_client()
        contents = build_contents(request)
        config = build_config(request.aspect_ratio)
        self.logger.log(
            "gemini",
            f"model={self.model} aspect={AspectRatioTag(request.aspect_ratio).value} mime={request.mime_type}",
            level="DEBUG",
            attempt=request.attempt,
        )
        try:
            response = self.logger.timed(
                "gemini",
                "response received",
                client.models.generate_content,
                model=self.model,
                contents=contents,
                config=config,
                attempt=request.attempt,
            )
        except genai_errors.APIError as exc:
            if _is_auth_failure(exc):
                raise CredentialError(getattr(exc, "message", None) or str(exc)) from exc
            raise TransportError(f"Gemini request failed ({exc.code}): {exc.message or exc}") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise TransportError(f"Could not reach Gemini: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"Malformed response from Gemini: {exc}") from exc

        result = parse_response(response)
        if result.error is not None:
            self.logger.warn("gemini", f"{type(result.error).__name__}: {result.error}", attempt=request.attempt)
        return result


def transform_image(
    payload: str,
    mime_type: str,
    ratio: AspectRatioTag,
    *,
    engine: TransformEngineProtocol,
    instruction: str = MANGA_PROMPT,
) -> TransformationResult:
    request = TransformationRequest(
        instruction=instruction,
        payload=payload,
        mime_type=mime_type,
        aspect_ratio=AspectRatioTag(ratio),
    )
    return engine.transform(request)


__all__ = [
    "GeminiTransformEngine",
    "build_config",
    "build_contents",
    "parse_response",
    "transform_image",
]
