"""intakeassist: AI-assisted rewriting of the situation sections of an intake application."""

from __future__ import annotations

from .ai.errors import ConfigurationError, ErrorKind, SuggestionError
from .ai.orchestrator import SuggestionOrchestrator, SuggestionOutcome
from .events import EventBus, SuggestionCompleted, SuggestionFailed, SuggestionStateChanged
from .models import ApplicationData, FamilyInfo, PersonalInfo, SituationInfo, SuggestionResult

__all__ = [
    "ApplicationData",
    "ConfigurationError",
    "ErrorKind",
    "EventBus",
    "FamilyInfo",
    "PersonalInfo",
    "SituationInfo",
    "SuggestionCompleted",
    "SuggestionError",
    "SuggestionFailed",
    "SuggestionOrchestrator",
    "SuggestionOutcome",
    "SuggestionResult",
    "SuggestionStateChanged",
]

__version__ = "0.1.0"
