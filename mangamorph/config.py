from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import CredentialError
from .image.source import DEFAULT_MAX_BYTES

DEFAULT_MODEL = "gemini-2.5-flash-image"
FALLBACK_API_KEY_ENVS: tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass
class GeminiConfig:
    model: str = DEFAULT_MODEL
    api_key_env: str | None = None
    timeout_s: float | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "GeminiConfig":
        if not raw:
            return cls()
        timeout = raw.get("timeout_s")
        return cls(
            model=str(raw.get("model") or DEFAULT_MODEL),
            api_key_env=_optional_str(raw.get("api_key_env")),
            timeout_s=float(timeout) if timeout not in (None, "") else None,
        )

    def api_key_envs(self) -> tuple[str, ...]:
        names = [self.api_key_env] if self.api_key_env else []
        names.extend(name for name in FALLBACK_API_KEY_ENVS if name not in names)
        return tuple(names)


@dataclass
class UploadConfig:
    max_bytes: int = DEFAULT_MAX_BYTES

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "UploadConfig":
        if not raw:
            return cls()
        max_bytes = raw.get("max_bytes")
        if max_bytes is None and raw.get("max_mb") is not None:
            max_bytes = int(float(raw["max_mb"]) * 1024 * 1024)
        return cls(max_bytes=int(max_bytes) if max_bytes is not None else DEFAULT_MAX_BYTES)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    logfile: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "LoggingConfig":
        if not raw:
            return cls()
        return cls(
            level=str(raw.get("level") or "INFO").upper(),
            logfile=_optional_path(raw.get("logfile")),
        )


@dataclass
class MangaMorphConfig:
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    style_prompt_path: Path | None = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MangaMorphConfig":
        runtime = raw.get("runtime", {}) if isinstance(raw.get("runtime"), Mapping) else {}
        gemini_data = runtime.get("gemini", raw.get("gemini", {}))
        upload_data = runtime.get("upload", raw.get("upload", {}))
        logging_data = runtime.get("logging", raw.get("logging", {}))
        prompt_path = raw.get("style_prompt_path") or _nested_value(raw.get("style"), "prompt_path")
        return cls(
            gemini=GeminiConfig.from_mapping(gemini_data),
            upload=UploadConfig.from_mapping(upload_data),
            logging=LoggingConfig.from_mapping(logging_data),
            style_prompt_path=_optional_path(prompt_path),
        )


def load_config(path: Path) -> MangaMorphConfig:
    text = Path(path).read_text(encoding="utf-8")
    if Path(path).suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")
    return MangaMorphConfig.from_dict(data)


def resolve_api_key(config: MangaMorphConfig, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    names = config.gemini.api_key_envs()
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    raise CredentialError(f"Set one of {', '.join(names)} in the environment or a .env file.")


def _optional_path(value: Any) -> Path | None:
    if value in (None, "", False):
        return None
    return Path(str(value))


def _optional_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _nested_value(source: Any, key: str) -> Any:
    if not isinstance(source, Mapping):
        return None
    return source.get(key)


__all__ = [
    "DEFAULT_MODEL",
    "FALLBACK_API_KEY_ENVS",
    "GeminiConfig",
    "LoggingConfig",
    "MangaMorphConfig",
    "UploadConfig",
    "load_config",
    "resolve_api_key",
]
