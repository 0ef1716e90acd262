"""Extract the rewritten situation sections from free-form model output."""

from __future__ import annotations

import logging
import re
from typing import Mapping, Pattern

from ..models import SituationInfo, SuggestionResult
from .prompts import SECTION_HEADINGS

__all__ = ["parse_situation_sections"]

LOGGER = logging.getLogger(__name__)

# Markdown decoration a model tends to wrap headings in ("**Reason for Applying:**", "## ...").
_LEAD_MARKERS = r"[ \t#*_>\-]*"
_EMPHASIS_CHARS = "*_"


def _compile_section_patterns(headings: Mapping[str, str]) -> dict[str, Pattern[str]]:
    any_heading = "|".join(re.escape(heading) for heading in headings.values())
    # A section starts and ends where a known heading begins a line; it may also end at end of text.
    terminator = rf"(?=\n{_LEAD_MARKERS}(?:{any_heading})|\Z)"
    return {
        field_name: re.compile(
            rf"(?:\A|\n){_LEAD_MARKERS}{re.escape(heading)}(.*?){terminator}", re.IGNORECASE | re.DOTALL
        )
        for field_name, heading in headings.items()
    }


_SECTION_PATTERNS = _compile_section_patterns(SECTION_HEADINGS)


def parse_situation_sections(raw: str, original: SituationInfo) -> SuggestionResult:
    """Split ``raw`` into the three situation fields.

    Each heading is located on its own, so sections may come back in any order.
    A section that is missing or empty keeps the value from ``original``. The
    function never raises: a partially malformed answer is still usable.
    """

    text = raw or ""
    values: dict[str, str] = {}
    missing: list[str] = []
    for field_name, pattern in _SECTION_PATTERNS.items():
        captured = _capture(pattern, text)
        if captured:
            values[field_name] = captured
        else:
            values[field_name] = getattr(original, field_name)
            missing.append(field_name)
    if missing:
        LOGGER.debug("Model response lacked section(s) %s; keeping original text", ", ".join(missing))
    return SituationInfo(**values)


def _capture(pattern: Pattern[str], text: str) -> str:
    match = pattern.search(text)
    if match is None:
        return ""
    return match.group(1).strip().strip(_EMPHASIS_CHARS).strip()
