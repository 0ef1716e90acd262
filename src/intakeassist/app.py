"""Command line entry point: ask the assistant to rewrite an application's situation text."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, TextIO, get_args, get_origin, get_type_hints

from .ai.errors import ConfigurationError
from .ai.orchestrator import SuggestionOrchestrator, SuggestionOutcome
from .models import ApplicationData
from .services.settings import Settings, SettingsStore, redact_secret
from .services.validation import load_application_json
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}

EXIT_OK = 0
EXIT_SUGGESTION_FAILED = 1
EXIT_INVALID_INPUT = 2
EXIT_CONFIGURATION = 3


def configure_logging(debug: bool = False, *, log_to_file: bool = True, force: bool = False) -> None:
    level = logging_utils.resolve_level(debug)
    logging_utils.setup_logging(level, log_to_file=log_to_file, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Path | None = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``intakeassist`` console script."""

    args = _parse_cli_args(argv)
    debug = args.debug or _env_flag("INTAKEASSIST_DEBUG", default=False)
    configure_logging(debug, log_to_file=not args.no_log_file)

    settings_path = args.settings_path or os.environ.get("INTAKEASSIST_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    settings = load_settings(resolved_path, store=store, overrides=cli_overrides or None)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=cli_overrides)
        return EXIT_OK

    if args.application is None:
        print("An application file is required (use '-' to read from stdin).", file=sys.stderr)
        return EXIT_INVALID_INPUT

    if settings.debug_logging and not debug:
        configure_logging(True, log_to_file=not args.no_log_file, force=True)

    data = _read_application(args.application)
    if data is None:
        return EXIT_INVALID_INPUT

    try:
        orchestrator = _build_orchestrator(settings)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION

    outcome = asyncio.run(_run_once(orchestrator, data))
    if not outcome.ok or outcome.result is None:
        print(outcome.message or "The suggestion request failed.", file=sys.stderr)
        return EXIT_SUGGESTION_FAILED

    json.dump(outcome.result.to_dict(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK


def run() -> None:
    sys.exit(main())


def _build_orchestrator(settings: Settings) -> SuggestionOrchestrator:
    return SuggestionOrchestrator.from_settings(settings)


async def _run_once(orchestrator: SuggestionOrchestrator, data: ApplicationData) -> SuggestionOutcome:
    try:
        return await orchestrator.request(data)
    finally:
        await orchestrator.aclose()


def _read_application(source: str) -> ApplicationData | None:
    try:
        if source == "-":
            text = sys.stdin.read()
        else:
            text = Path(source).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Unable to read {source}: {exc}", file=sys.stderr)
        return None

    payload, errors = load_application_json(text)
    if errors or payload is None:
        for error in errors:
            location = f" (line {error.line})" if error.line else ""
            print(f"{source}{location}: {error.message}", file=sys.stderr)
        return None
    return ApplicationData.from_dict(payload)


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="intakeassist",
        description="Rewrite the situation sections of an intake application with an AI model.",
    )
    parser.add_argument(
        "application",
        nargs="?",
        metavar="APPLICATION_JSON",
        help="Path to the application snapshot (camelCase JSON), or '-' for stdin.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.intakeassist/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override a setting for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--no-log-file", action="store_true", help="Log to stderr only.")
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(type_hints.get(key, str), raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    if raw_value.lower() in {"none", "null"} and type(None) in get_args(annotation):
        return None
    if target is bool:
        return _parse_bool(raw_value)
    if target is int:
        return int(raw_value, 10)
    if target is float:
        return float(raw_value)
    if target is dict:
        try:
            value = json.loads(raw_value or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Dict overrides must be valid JSON objects") from exc
        if not isinstance(value, dict):
            raise ValueError("Dict overrides must be valid JSON objects")
        return value
    return raw_value


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin is dict:
        return dict
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else origin


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    payload["api_key"] = redact_secret(settings.api_key)
    meta = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": sorted(name for name in os.environ if name.startswith("INTAKEASSIST_")),
    }
    json.dump({"settings": payload, "meta": meta}, destination, indent=2)
    destination.write("\n")


if __name__ == "__main__":  # pragma: no cover - manual invocation
    run()
