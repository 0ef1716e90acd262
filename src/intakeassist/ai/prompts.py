"""Prompt templates for the situation rewrite assistant.

The response parser locates sections by the literal heading text below, so
the headings used here and in :mod:`intakeassist.ai.parser` must stay in sync.
"""

from __future__ import annotations

from ..models import ApplicationData, FamilyInfo, Number, PersonalInfo, SituationInfo

__all__ = [
    "CURRENT_FINANCIAL_HEADING",
    "EMPLOYMENT_HEADING",
    "PLACEHOLDER",
    "REASON_HEADING",
    "SECTION_HEADINGS",
    "build_situation_prompt",
]

CURRENT_FINANCIAL_HEADING = "Current Financial Situation:"
EMPLOYMENT_HEADING = "Employment Circumstances:"
REASON_HEADING = "Reason for Applying:"

# Field name on SituationInfo -> heading that introduces it in model output.
SECTION_HEADINGS: dict[str, str] = {
    "current_financial": CURRENT_FINANCIAL_HEADING,
    "employment_circumstances": EMPLOYMENT_HEADING,
    "reason": REASON_HEADING,
}

PLACEHOLDER = "[none provided]"


def build_situation_prompt(data: ApplicationData) -> str:
    """Build the rewrite request for the three situation sections.

    Every personal and family field is included so the model can tailor the
    wording, but it is only asked to return the situation sections, each
    under its original heading.
    """

    return f"""
You are an expert social support advisor. Below is all of the user's information. Improve and rewrite only the three "Situation" sections, each under its original heading exactly, while taking into account their personal & family context.

{_personal_section(data.personal)}

{_family_section(data.family)}

{_situation_section(data.situation)}

Rewrite and improve each of these three sections. Return your answer in the following exact format (leave no extra text):

{CURRENT_FINANCIAL_HEADING}
[rewritten paragraph here]

{EMPLOYMENT_HEADING}
[rewritten paragraph here]

{REASON_HEADING}
[rewritten paragraph here]
""".strip()


def _personal_section(personal: PersonalInfo) -> str:
    address_parts = [part.strip() for part in (personal.address, personal.city, personal.state, personal.country)]
    address = ", ".join(part for part in address_parts if part) or PLACEHOLDER
    lines = [
        "Personal Information:",
        f"  Name: {_text(personal.name)}",
        f"  National ID: {_text(personal.national_id)}",
        f"  Date of Birth: {_text(personal.dob)}",
        f"  Gender: {_text(personal.gender)}",
        f"  Address: {address}",
        f"  Phone: {_text(personal.phone)}",
        f"  Email: {_text(personal.email)}",
    ]
    return "\n".join(lines)


def _family_section(family: FamilyInfo) -> str:
    lines = [
        "Family & Financial Info:",
        f"  Marital Status: {_text(family.marital_status)}",
        f"  Dependents: {_number(family.dependents)}",
        f"  Employment Status: {_text(family.employment_status)}",
        f"  Monthly Income: {_number(family.monthly_income)}",
        f"  Housing Status: {_text(family.housing_status)}",
    ]
    return "\n".join(lines)


def _situation_section(situation: SituationInfo) -> str:
    lines = ["Situation Descriptions (current):"]
    for field_name, heading in SECTION_HEADINGS.items():
        lines.append(f"  {heading} {_text(getattr(situation, field_name))}")
    return "\n".join(lines)


def _text(value: str) -> str:
    return value if value and value.strip() else PLACEHOLDER


def _number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
