"""
Safety Screener: allergy, chronic-condition and interaction warnings.

================================================================================
HEURISTIC, NOT CLINICAL
================================================================================

All local rules are case-insensitive substring checks on product names. This
is a known simplification: "Penicillin" does NOT flag "Amoxicillin". A real
deployment swaps in a licensed interaction database behind the same
`screen(patient, products) -> list[str]` contract.

Rule order is fixed because the UI shows the list verbatim:
1. Allergy match (per product)
2. Chronic-condition rules (per product, per rule)
3. Anticoagulant + NSAID interaction (once per call)
4. Optional remote advisory lines (at most 5, appended last)

screen() never raises.
================================================================================
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ai.groq_client import get_groq_client
from ai.prompts import SYSTEM_PROMPT, build_interaction_prompt
from app.core.config import settings
from app.models.patient import Patient
from app.models.product import Product

logger = logging.getLogger(__name__)

# Advisory source: (patient, products) -> raw reply text or None
Advisor = Callable[[Patient, Sequence[Product]], Optional[str]]

_BULLET = re.compile(r"^\s*(?:[-*•]+|\d+[.)](?=\s))\s*")


@dataclass(frozen=True)
class ConditionRule:
    """Warn when the patient has `condition_keywords` and the product matches."""
    label: str
    condition_keywords: tuple
    name_keywords: tuple
    generic_keywords: tuple
    message: str  # formatted with {name}

    def applies_to_patient(self, conditions: List[str]) -> bool:
        return any(kw in c for c in conditions for kw in self.condition_keywords)

    def matches(self, product_name: str, generic_name: str) -> bool:
        return any(kw in product_name for kw in self.name_keywords) or any(
            kw in generic_name for kw in self.generic_keywords
        )


CONDITION_RULES = (
    ConditionRule(
        label="diabetes",
        condition_keywords=("diabetes",),
        name_keywords=("steroid",),
        generic_keywords=("prednisolone",),
        message="DIABETES ALERT: {name} may affect blood sugar levels",
    ),
    ConditionRule(
        label="hypertension",
        condition_keywords=("hypertension", "blood pressure"),
        name_keywords=("nsaid", "ibuprofen"),
        generic_keywords=(),
        message="HYPERTENSION ALERT: {name} may increase blood pressure",
    ),
)

ANTICOAGULANT_KEYWORDS = ("warfarin", "aspirin")
NSAID_KEYWORDS = ("ibuprofen", "diclofenac")
BLEEDING_RISK_WARNING = "INTERACTION WARNING: Anticoagulant with NSAID increases bleeding risk"


def _lower_tokens(values) -> List[str]:
    return [v.lower() for v in (values or []) if isinstance(v, str) and v.strip()]


def allergy_warnings(patient: Patient, products: Sequence[Product]) -> List[str]:
    allergies = _lower_tokens(patient.allergies)
    if not allergies:
        return []
    warnings = []
    for product in products:
        name = (product.name or "").lower()
        generic = (product.generic_name or "").lower()
        if any(a in name or a in generic for a in allergies):
            warnings.append(f"ALLERGY ALERT: Patient is allergic to components in {product.name}")
    return warnings


def condition_warnings(patient: Patient, products: Sequence[Product]) -> List[str]:
    conditions = _lower_tokens(patient.chronic_conditions)
    if not conditions:
        return []
    active_rules = [rule for rule in CONDITION_RULES if rule.applies_to_patient(conditions)]
    warnings = []
    for product in products:
        name = (product.name or "").lower()
        generic = (product.generic_name or "").lower()
        for rule in active_rules:
            if rule.matches(name, generic):
                warnings.append(rule.message.format(name=product.name))
    return warnings


def interaction_warnings(products: Sequence[Product]) -> List[str]:
    if len(products) < 2:
        return []
    names = [(p.name or "").lower() for p in products]
    has_anticoagulant = any(kw in n for n in names for kw in ANTICOAGULANT_KEYWORDS)
    has_nsaid = any(kw in n for n in names for kw in NSAID_KEYWORDS)
    return [BLEEDING_RISK_WARNING] if has_anticoagulant and has_nsaid else []


def parse_advisory_reply(reply: Optional[str], limit: int = settings.ADVISORY_MAX_WARNINGS) -> List[str]:
    """Split an advisory reply into trimmed, de-bulleted lines (max `limit`)."""
    if not reply or not isinstance(reply, str):
        return []
    lines = []
    for raw in reply.splitlines():
        line = _BULLET.sub("", raw).strip()
        if line:
            lines.append(line)
    return lines[:limit]


def groq_advisor(patient: Patient, products: Sequence[Product]) -> Optional[str]:
    """Default advisor backed by the shared Groq client. None when disabled."""
    client = get_groq_client()
    if not client.is_available():
        return None
    prompt = build_interaction_prompt(patient.allergies, patient.chronic_conditions, products)
    return client.complete(SYSTEM_PROMPT, prompt)


class SafetyScreener:
    """Runs the local rules, then the optional advisor. Stateless apart from the advisor."""

    def __init__(self, advisor: Optional[Advisor] = groq_advisor):
        self.advisor = advisor

    def screen(self, patient: Optional[Patient], products: Sequence[Product]) -> List[str]:
        if patient is None or not products:
            return []

        products = list(products)
        warnings: List[str] = []
        try:
            warnings.extend(allergy_warnings(patient, products))
            warnings.extend(condition_warnings(patient, products))
            warnings.extend(interaction_warnings(products))
        except Exception as e:
            logger.error(f"Local safety rules failed for patient {patient.id}: {e}", exc_info=True)

        if self.advisor is not None:
            try:
                warnings.extend(parse_advisory_reply(self.advisor(patient, products)))
            except Exception as e:
                logger.error(f"Remote drug advisory failed for patient {patient.id}: {e}")

        if warnings:
            logger.info(f"Safety screen for patient {patient.id}: {len(warnings)} warning(s)")
        return warnings


_screener: Optional[SafetyScreener] = None


def get_safety_screener() -> SafetyScreener:
    """FastAPI dependency returning the shared screener; overridden in tests."""
    global _screener
    if _screener is None:
        _screener = SafetyScreener()
    return _screener
