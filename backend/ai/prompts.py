"""
Prompts for the remote drug-safety advisory.

The model is asked for critical warnings only, one per line, so the reply can
be split into lines and shown to the pharmacist next to the local rule hits.
It is never asked to approve, dose, or substitute medication.
"""
from typing import Iterable, Sequence

SYSTEM_PROMPT = (
    "You are a clinical pharmacist AI assistant specializing in drug interactions "
    "and patient safety. Provide concise, critical warnings only."
)

USER_PROMPT_TEMPLATE = """Patient Profile:
- Allergies: {allergies}
- Chronic Conditions: {conditions}

Prescribed Medications:
{medications}

Identify any critical drug interactions, contraindications, or warnings. List only serious concerns, one per line."""


def _join_or_none(values: Iterable[str] | None) -> str:
    cleaned = [v.strip() for v in (values or []) if v and v.strip()]
    return ", ".join(cleaned) if cleaned else "None"


def build_interaction_prompt(allergies: Sequence[str] | None, conditions: Sequence[str] | None, products) -> str:
    """Render the user prompt. `products` needs name, generic_name and strength attributes."""
    medication_lines = []
    for p in products:
        line = f"- {p.name} ({p.generic_name or 'N/A'})"
        if p.strength:
            line += f" {p.strength}"
        medication_lines.append(line)

    return USER_PROMPT_TEMPLATE.format(
        allergies=_join_or_none(allergies),
        conditions=_join_or_none(conditions),
        medications="\n".join(medication_lines),
    )
