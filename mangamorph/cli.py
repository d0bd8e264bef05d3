from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional, Sequence

import yaml
from dotenv import load_dotenv

from .config import MangaMorphConfig, load_config
from .errors import MangaMorphError
from .logging_utils import RunLogger, create_logger
from .transform import GeminiTransformEngine
from .workflow import AppState, TransformSession, WorkflowSnapshot

DEFAULT_OUTPUT_NAME = "manga-morph-result.png"
CREDENTIAL_HINT = "Check GEMINI_API_KEY (or API_KEY) in your environment or .env file."


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mangamorph", description="Turn a photo into a manga illustration with Gemini.")
    ap.add_argument("image", type=Path, help="Source photo (JPEG, PNG, WebP...)")
    ap.add_argument("-o", "--output", type=Path, default=None, help=f"Where to write the PNG (default: {DEFAULT_OUTPUT_NAME})")
    ap.add_argument("--config", type=Path, default=None, help="YAML or JSON configuration file")
    ap.add_argument("--model", default=None, help="Override the Gemini image model")
    ap.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARN", "ERROR"])
    ap.add_argument("--log-file", type=Path, default=None)
    return ap


def _resolve_config(args: argparse.Namespace) -> MangaMorphConfig:
    config = load_config(args.config) if args.config else MangaMorphConfig()
    if args.model:
        config.gemini.model = args.model
    if args.log_level:
        config.logging.level = args.log_level
    if args.log_file:
        config.logging.logfile = args.log_file
    return config


def _report(snapshot: WorkflowSnapshot, output: Path, logger: RunLogger) -> int:
    if snapshot.state is AppState.SUCCESS and snapshot.result_image is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(snapshot.result_image.image_bytes)
        logger.log("output", f"wrote {output}")
        return 0
    logger.error("output", snapshot.error_message or f"finished in state {snapshot.state.value}")
    if snapshot.needs_credentials:
        logger.warn("output", CREDENTIAL_HINT)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    try:
        config = _resolve_config(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        fallback = create_logger(args.log_level or "INFO", args.log_file)
        fallback.error("config", f"Could not load configuration {args.config}: {exc}")
        fallback.close()
        return 2
    logger = create_logger(config.logging.level, config.logging.logfile)
    try:
        engine = GeminiTransformEngine.from_config(config, logger=logger)
        with TransformSession(engine, config=config, logger=logger) as session:
            try:
                session.select_file(args.image)
            except MangaMorphError as exc:
                logger.error("select", str(exc))
                return 2
            snapshot = asyncio.run(session.transform())
            return _report(snapshot, args.output or Path(DEFAULT_OUTPUT_NAME), logger)
    finally:
        logger.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
