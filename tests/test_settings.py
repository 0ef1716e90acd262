"""Tests for the settings persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from intakeassist.services.settings import SecretVault, Settings, SettingsStore, redact_secret


def _store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json", vault=SecretVault(key_path=tmp_path / "settings.key"))


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    assert _store(tmp_path).load() == Settings()


def test_defaults_match_documented_values() -> None:
    settings = Settings()

    assert settings.base_url == "https://api.openai.com/v1"
    assert settings.model == "gpt-3.5-turbo"
    assert settings.request_timeout == 15.0
    assert settings.max_attempts == 3
    assert settings.backoff_seconds == 1.0
    assert settings.throttle_interval == 2.0
    assert settings.cache_max_entries == 0


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    store = _store(tmp_path)
    original = Settings(
        base_url="https://example.com/v1",
        api_key="super-secret",
        model="gpt-4o-mini",
        organization="acme",
        request_timeout=20.0,
        throttle_interval=3.5,
        cache_max_entries=100,
        default_headers={"X-Test": "1"},
        debug_logging=True,
    )

    store.save(original)
    reloaded = _store(tmp_path).load()

    assert reloaded == original


def test_api_key_is_encrypted_on_disk(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(Settings(api_key="super-secret"))

    payload = json.loads(store.path.read_text(encoding="utf-8"))

    assert "api_key" not in payload
    assert payload["api_key_ciphertext"].startswith("fernet:")
    assert "super-secret" not in store.path.read_text(encoding="utf-8")
    assert payload["version"] == 1


def test_load_legacy_plaintext_api_key(tmp_path: Path) -> None:
    target = tmp_path / "settings.json"
    target.write_text(json.dumps({"model": "gpt-4o", "api_key": "legacy-key", "version": 1}), encoding="utf-8")

    settings = _store(tmp_path).load()

    assert settings.api_key == "legacy-key"
    assert settings.model == "gpt-4o"
    migrated = json.loads(target.read_text(encoding="utf-8"))
    assert "api_key" not in migrated
    assert migrated["api_key_ciphertext"].startswith("fernet:")


def test_undecryptable_key_is_dropped(tmp_path: Path) -> None:
    target = tmp_path / "settings.json"
    target.write_text(json.dumps({"api_key_ciphertext": "fernet:not-a-token", "version": 1}), encoding="utf-8")

    assert _store(tmp_path).load().api_key == ""


def test_invalid_json_falls_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text("{not json", encoding="utf-8")

    assert _store(tmp_path).load() == Settings()


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    (tmp_path / "settings.json").write_text(json.dumps({"model": "m", "theme": "dark", "version": 1}), encoding="utf-8")

    assert _store(tmp_path).load().model == "m"


def test_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(Settings(api_key="file-key", model="file-model"))
    monkeypatch.setenv("INTAKEASSIST_API_KEY", "env-key")
    monkeypatch.setenv("INTAKEASSIST_MODEL", "env-model")

    settings = store.load()

    assert settings.api_key == "env-key"
    assert settings.model == "env-model"


def test_openai_api_key_is_a_fallback_only(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")

    assert _store(tmp_path).load().api_key == "openai-key"

    monkeypatch.setenv("INTAKEASSIST_API_KEY", "own-key")
    assert _store(tmp_path).load().api_key == "own-key"


def test_openai_api_key_does_not_replace_saved_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(Settings(api_key="saved-key"))
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")

    assert store.load().api_key == "saved-key"


def test_typed_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("INTAKEASSIST_DEBUG_LOGGING", "yes")
    monkeypatch.setenv("INTAKEASSIST_REQUEST_TIMEOUT", "7.5")
    monkeypatch.setenv("INTAKEASSIST_THROTTLE_INTERVAL", "0")
    monkeypatch.setenv("INTAKEASSIST_MAX_ATTEMPTS", "5")

    settings = _store(tmp_path).load()

    assert settings.debug_logging is True
    assert settings.request_timeout == 7.5
    assert settings.throttle_interval == 0.0
    assert settings.max_attempts == 5


def test_malformed_numeric_env_override_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("INTAKEASSIST_MAX_ATTEMPTS", "lots")

    assert _store(tmp_path).load().max_attempts == 3


def test_load_applies_cli_overrides(tmp_path: Path) -> None:
    settings = _store(tmp_path).load(overrides={"model": "cli-model", "max_attempts": 1, "unknown": "x"})

    assert settings.model == "cli-model"
    assert settings.max_attempts == 1


def test_env_overrides_take_priority_over_cli(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("INTAKEASSIST_MODEL", "env-model")

    settings = _store(tmp_path).load(overrides={"model": "cli-model"})

    assert settings.model == "env-model"


def test_secret_vault_roundtrip(tmp_path: Path) -> None:
    vault = SecretVault(key_path=tmp_path / "nested" / "vault.key")

    token = vault.encrypt("hello")

    assert token.startswith("fernet:")
    assert vault.decrypt(token) == "hello"
    assert vault.key_path.exists()
    assert vault.encrypt("") == ""
    assert vault.decrypt(None) == ""


def test_secret_vault_rejects_foreign_tokens(tmp_path: Path) -> None:
    vault = SecretVault(key_path=tmp_path / "vault.key")

    with pytest.raises(ValueError):
        vault.decrypt("plain:abc")


@pytest.mark.parametrize(
    ("secret", "expected"),
    [("", ""), ("abcd", "****"), ("sk-123456", "sk*****56")],
)
def test_redact_secret(secret: str, expected: str) -> None:
    assert redact_secret(secret) == expected
