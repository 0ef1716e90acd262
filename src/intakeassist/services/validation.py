"""JSON schema validation for application snapshots handed to the assistant."""

from __future__ import annotations

import json
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Iterable, Mapping, Sequence

import jsonschema

__all__ = [
    "APPLICATION_SCHEMA",
    "DuplicateJSONKeyError",
    "ValidationError",
    "load_application_json",
    "validate_application",
]

MAX_SCHEMA_ERRORS = 25

_TEXT = {"type": "string"}
_NUMBER = {"type": "number", "minimum": 0}

APPLICATION_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["situation"],
    "properties": {
        "personal": {
            "type": "object",
            "properties": {
                key: _TEXT
                for key in (
                    "name",
                    "nationalId",
                    "dob",
                    "gender",
                    "address",
                    "city",
                    "state",
                    "country",
                    "phone",
                    "email",
                )
            },
        },
        "family": {
            "type": "object",
            "properties": {
                "maritalStatus": _TEXT,
                "dependents": {"type": "integer", "minimum": 0},
                "employmentStatus": _TEXT,
                "monthlyIncome": _NUMBER,
                "housingStatus": _TEXT,
            },
        },
        "situation": {
            "type": "object",
            "properties": {
                "currentFinancial": _TEXT,
                "employmentCircumstances": _TEXT,
                "reason": _TEXT,
            },
        },
    },
}


@dataclass(slots=True)
class ValidationError:
    """A single problem found in an application payload."""

    message: str
    line: int | None = None


class DuplicateJSONKeyError(ValueError):
    """Raised when a duplicate key is encountered during JSON parsing."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Duplicate key '{key}' found in JSON object.")
        self.key = key


def validate_application(
    payload: Any, *, schema: Mapping[str, Any] | None = None
) -> list[ValidationError]:
    """Check an already-decoded payload against the application schema."""

    validator = jsonschema.Draft202012Validator(dict(schema or APPLICATION_SCHEMA))
    errors: list[ValidationError] = []
    issues = sorted(validator.iter_errors(payload), key=lambda item: [str(part) for part in item.absolute_path])
    for issue in issues:
        path = _format_schema_path(issue.absolute_path)
        msg = f"{path}: {issue.message}" if path else issue.message
        errors.append(ValidationError(message=msg))
        if len(errors) >= MAX_SCHEMA_ERRORS:
            errors.append(ValidationError(message="Too many validation errors; stopping early."))
            break
    return errors


def load_application_json(text: str) -> tuple[dict[str, Any] | None, list[ValidationError]]:
    """Decode and validate an application snapshot.

    Returns the decoded mapping (``None`` when decoding failed) along with
    every problem found. Callers treat a non-empty error list as invalid input.
    """

    raw = (text or "").strip()
    if not raw:
        return None, [ValidationError(message="Application payload is empty.")]
    try:
        parsed = json.loads(raw, object_pairs_hook=_reject_duplicate_keys)
    except DuplicateJSONKeyError as exc:
        return None, [ValidationError(message=str(exc))]
    except JSONDecodeError as exc:
        return None, [ValidationError(message=_format_json_decode_message(exc), line=exc.lineno)]
    return parsed, validate_application(parsed)


def _reject_duplicate_keys(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise DuplicateJSONKeyError(key)
        result[key] = value
    return result


def _format_json_decode_message(exc: JSONDecodeError) -> str:
    return f"{exc.msg} (line {exc.lineno}, column {exc.colno})"


def _format_schema_path(path: Sequence[Any]) -> str:
    parts: list[str] = []
    for item in path:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        elif parts:
            parts.append(f".{item}")
        else:
            parts.append(str(item))
    return "".join(parts)
