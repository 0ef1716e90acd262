"""Application data records shared by the form and the suggestion pipeline.

The intake form stores its progress as a camelCase JSON snapshot. The records
below mirror that snapshot with snake_case attributes, and translate back and
forth through :meth:`from_dict` / :meth:`to_dict`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Mapping, TypeVar

__all__ = [
    "ApplicationData",
    "FamilyInfo",
    "PersonalInfo",
    "SituationInfo",
    "SuggestionResult",
]

Number = int | float
_R = TypeVar("_R", bound="_WireRecord")


class _WireRecord:
    """Mixin translating between snake_case attributes and camelCase wire keys."""

    __slots__ = ()

    WIRE_KEYS: ClassVar[Mapping[str, str]] = {}

    @classmethod
    def from_dict(cls: type[_R], payload: Mapping[str, Any] | None) -> _R:
        data = payload or {}
        values: dict[str, Any] = {}
        for item in fields(cls):  # type: ignore[arg-type]
            wire_key = cls.WIRE_KEYS.get(item.name, item.name)
            raw = data.get(wire_key, data.get(item.name))
            values[item.name] = cls._coerce(item.name, raw)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            self.WIRE_KEYS.get(item.name, item.name): getattr(self, item.name)
            for item in fields(self)  # type: ignore[arg-type]
        }

    @classmethod
    def _coerce(cls, name: str, raw: Any) -> Any:
        if raw is None:
            return ""
        return str(raw)


@dataclass(slots=True, frozen=True)
class PersonalInfo(_WireRecord):
    name: str = ""
    national_id: str = ""
    dob: str = ""
    gender: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""

    WIRE_KEYS: ClassVar[Mapping[str, str]] = {"national_id": "nationalId"}


@dataclass(slots=True, frozen=True)
class FamilyInfo(_WireRecord):
    marital_status: str = ""
    dependents: int = 0
    employment_status: str = ""
    monthly_income: Number = 0
    housing_status: str = ""

    WIRE_KEYS: ClassVar[Mapping[str, str]] = {
        "marital_status": "maritalStatus",
        "employment_status": "employmentStatus",
        "monthly_income": "monthlyIncome",
        "housing_status": "housingStatus",
    }

    @classmethod
    def _coerce(cls, name: str, raw: Any) -> Any:
        if name == "dependents":
            return _as_int(raw)
        if name == "monthly_income":
            return _as_number(raw)
        return super(FamilyInfo, cls)._coerce(name, raw)


@dataclass(slots=True, frozen=True)
class SituationInfo(_WireRecord):
    """The three free-text fields the assistant can rewrite."""

    current_financial: str = ""
    employment_circumstances: str = ""
    reason: str = ""

    WIRE_KEYS: ClassVar[Mapping[str, str]] = {
        "current_financial": "currentFinancial",
        "employment_circumstances": "employmentCircumstances",
    }


# Suggestions share the situation shape; the alias keeps call sites readable.
SuggestionResult = SituationInfo


@dataclass(slots=True, frozen=True)
class ApplicationData:
    """Everything the applicant entered across the form steps."""

    personal: PersonalInfo = PersonalInfo()
    family: FamilyInfo = FamilyInfo()
    situation: SituationInfo = SituationInfo()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "ApplicationData":
        data = payload or {}
        return cls(
            personal=PersonalInfo.from_dict(_section(data, "personal")),
            family=FamilyInfo.from_dict(_section(data, "family")),
            situation=SituationInfo.from_dict(_section(data, "situation")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "personal": self.personal.to_dict(),
            "family": self.family.to_dict(),
            "situation": self.situation.to_dict(),
        }

    def canonical_json(self) -> str:
        """Serialize deterministically; equal field values give equal strings."""

        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, separators=(",", ":"))

    def with_situation(self, situation: SituationInfo) -> "ApplicationData":
        return ApplicationData(personal=self.personal, family=self.family, situation=situation)


def _section(payload: Mapping[str, Any], name: str) -> Mapping[str, Any] | None:
    value = payload.get(name)
    return value if isinstance(value, Mapping) else None


def _as_int(raw: Any) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    try:
        return int(float(str(raw).strip()))
    except (TypeError, ValueError):
        return 0


def _as_number(raw: Any) -> Number:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw
    try:
        text = str(raw).strip()
        value = float(text)
    except (TypeError, ValueError):
        return 0
    return int(value) if value.is_integer() and "." not in text else value
