"""Tests covering the command line entry point."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from intakeassist import app
from intakeassist.ai.errors import ErrorKind, SuggestionError
from intakeassist.ai.orchestrator import SuggestionOrchestrator
from intakeassist.services.settings import Settings, SettingsStore


class _StubBackend:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.closed = False

    async def complete(self, prompt: str) -> str:
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


@pytest.fixture
def application_file(tmp_path: Path, application_payload: dict[str, Any]) -> Path:
    path = tmp_path / "application.json"
    path.write_text(json.dumps(application_payload), encoding="utf-8")
    return path


def _install_backend(monkeypatch: pytest.MonkeyPatch, outcome: Any) -> _StubBackend:
    backend = _StubBackend(outcome)
    monkeypatch.setattr(app, "_build_orchestrator", lambda settings: SuggestionOrchestrator(backend))
    return backend


def test_successful_run_prints_camel_case_json(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
    application_file: Path,
    well_formed_reply: str,
) -> None:
    backend = _install_backend(monkeypatch, well_formed_reply)

    exit_code = app.main(["--settings-path", str(settings_path), str(application_file)])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {
        "currentFinancial": "I recently lost my job and have no steady income.",
        "employmentCircumstances": "I was laid off in March due to restructuring.",
        "reason": "I need temporary help covering rent.",
    }
    assert backend.closed is True


def test_application_can_be_read_from_stdin(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
    application_payload: dict[str, Any],
    well_formed_reply: str,
) -> None:
    _install_backend(monkeypatch, well_formed_reply)
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(application_payload)))

    assert app.main(["--settings-path", str(settings_path), "-"]) == 0
    assert "currentFinancial" in capsys.readouterr().out


def test_handled_failure_exits_with_one(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
    application_file: Path,
) -> None:
    _install_backend(monkeypatch, SuggestionError(ErrorKind.RATE_LIMIT, status_code=429))

    exit_code = app.main(["--settings-path", str(settings_path), str(application_file)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "rate limit" in captured.err


def test_invalid_application_exits_with_two(
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
    tmp_path: Path,
) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text('{"personal": {}}', encoding="utf-8")

    exit_code = app.main(["--settings-path", str(settings_path), str(bad)])

    assert exit_code == 2
    assert "situation" in capsys.readouterr().err


def test_missing_application_file_exits_with_two(settings_path: Path, tmp_path: Path) -> None:
    assert app.main(["--settings-path", str(settings_path), str(tmp_path / "nope.json")]) == 2


def test_application_argument_is_required(settings_path: Path) -> None:
    assert app.main(["--settings-path", str(settings_path)]) == 2


def test_missing_api_key_exits_with_three(
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
    application_file: Path,
) -> None:
    exit_code = app.main(["--settings-path", str(settings_path), str(application_file)])

    assert exit_code == 3
    assert "API key" in capsys.readouterr().err


def test_bad_override_exits_with_two(settings_path: Path, application_file: Path) -> None:
    assert app.main(["--settings-path", str(settings_path), "--set", "nonsense", str(application_file)]) == 2
    assert app.main(["--settings-path", str(settings_path), "--set", "colour=blue", str(application_file)]) == 2


def test_dump_settings_redacts_api_key(
    capsys: pytest.CaptureFixture[str],
    settings_path: Path,
) -> None:
    SettingsStore(settings_path).save(Settings(api_key="sk-very-secret", model="gpt-4o-mini"))

    exit_code = app.main(["--settings-path", str(settings_path), "--dump-settings", "--set", "max_attempts=5"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["settings"]["model"] == "gpt-4o-mini"
    assert payload["settings"]["max_attempts"] == 5
    assert payload["settings"]["api_key"] == "sk**********et"
    assert payload["meta"]["path"] == str(settings_path)
    assert payload["meta"]["cli_overrides"] == ["max_attempts"]


def test_coerce_cli_overrides_uses_field_types() -> None:
    overrides = app._coerce_cli_overrides(
        [
            "request_timeout=7.5",
            "max_attempts=2",
            "debug_logging=on",
            "organization=none",
            'default_headers={"X-Team": "intake"}',
            "model=gpt-4o",
        ]
    )

    assert overrides == {
        "request_timeout": 7.5,
        "max_attempts": 2,
        "debug_logging": True,
        "organization": None,
        "default_headers": {"X-Team": "intake"},
        "model": "gpt-4o",
    }


@pytest.mark.parametrize("item", ["debug_logging=maybe", "max_attempts=two", "default_headers=[1]"])
def test_coerce_cli_overrides_rejects_bad_values(item: str) -> None:
    with pytest.raises(ValueError):
        app._coerce_cli_overrides([item])


def test_env_flag() -> None:
    assert app._env_flag("INTAKEASSIST_DOES_NOT_EXIST", default=True) is True
