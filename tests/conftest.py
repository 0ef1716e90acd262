"""Shared pytest fixtures."""

from __future__ import annotations

import os
from typing import Any

import pytest

from intakeassist.models import ApplicationData


@pytest.fixture
def application_payload() -> dict[str, Any]:
    return {
        "personal": {
            "name": "Amal Hassan",
            "nationalId": "784-1990-1234567-1",
            "dob": "1990-04-12",
            "gender": "female",
            "address": "12 Palm Street",
            "city": "Dubai",
            "state": "",
            "country": "UAE",
            "phone": "+971500000000",
            "email": "amal@example.com",
        },
        "family": {
            "maritalStatus": "married",
            "dependents": 3,
            "employmentStatus": "unemployed",
            "monthlyIncome": 1500,
            "housingStatus": "renting",
        },
        "situation": {
            "currentFinancial": "I lost my job",
            "employmentCircumstances": "laid off in March",
            "reason": "need help with rent",
        },
    }


@pytest.fixture
def application(application_payload: dict[str, Any]) -> ApplicationData:
    return ApplicationData.from_dict(application_payload)


@pytest.fixture
def well_formed_reply() -> str:
    return (
        "Current Financial Situation:\n"
        "I recently lost my job and have no steady income.\n\n"
        "Employment Circumstances:\n"
        "I was laid off in March due to restructuring.\n\n"
        "Reason for Applying:\n"
        "I need temporary help covering rent."
    )


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own configuration out of the tests."""

    for name in list(os.environ):
        if name.startswith("INTAKEASSIST_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
