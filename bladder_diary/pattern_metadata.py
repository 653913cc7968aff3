"""Structured metadata for bladder diary pattern signatures."""
from __future__ import annotations

from typing import Any, Mapping

from .models import PatternContext
from .rule_base import PatternRule

_FEMALE_LUTS_URL = "https://uroweb.org/guidelines/non-neurogenic-female-luts"
_MALE_LUTS_URL = "https://uroweb.org/guidelines/non-neurogenic-male-luts"

PATTERN_METADATA: dict[str, dict[str, Any]] = {
    "overactive_bladder": {
        "pattern_signature_name": "Overactive Bladder (OAB)",
        "rule_definition_1_line": ">8 voids/day with urgency >=4 in >30% of voids or median volume <200 ml",
        "confidence_basis": "EAU guidelines: frequency >8 voids/24h with urgency",
        "guideline_url": _FEMALE_LUTS_URL,
        "audiences": ["patient", "clinician"],
        "recommendations": {
            "patient": (
                "Bladder training and behavioral modifications may help. "
                "Discuss with your doctor about treatment options."
            ),
            "clinician": (
                "Consider behavioral therapy, bladder training, and potentially antimuscarinic medications."
            ),
        },
    },
    "stress_urinary_incontinence": {
        "pattern_signature_name": "Stress Urinary Incontinence",
        "rule_definition_1_line": ">=1 leakage triggered by cough, sneeze, laugh, exercise or lifting",
        "confidence_basis": "Leakage triggers reported in diary",
        "guideline_url": f"{_FEMALE_LUTS_URL}/chapter/stress-urinary-incontinence",
        "audiences": ["patient", "clinician"],
        "recommendations": {
            "patient": (
                "Pelvic floor exercises (Kegels) are often effective. "
                "Consider consulting a specialist or pelvic floor physiotherapist."
            ),
            "clinician": "Consider pelvic floor muscle training, pessary evaluation, or surgical options.",
        },
    },
    "urge_incontinence": {
        "pattern_signature_name": "Urge Incontinence",
        "rule_definition_1_line": ">=1 leakage preceded by urgency",
        "confidence_basis": "Leakage triggers reported in diary",
        "guideline_url": _FEMALE_LUTS_URL,
        "audiences": ["patient", "clinician"],
        "recommendations": {
            "patient": (
                "Bladder retraining and scheduled voiding may help. "
                "Medication options exist; discuss with your healthcare provider."
            ),
            "clinician": "Bladder retraining, scheduled voiding, and antimuscarinic or beta-3 agonist medications.",
        },
    },
    "nocturia": {
        "pattern_signature_name": "Nocturia",
        "rule_definition_1_line": "Night voids >= 2 per observed day",
        "confidence_basis": "EAU guidelines: >=2 nighttime voids",
        "guideline_url": f"{_MALE_LUTS_URL}/chapter/nocturia",
        "audiences": ["patient", "clinician"],
        "recommendations": {
            "patient": (
                "Consider reducing evening fluid intake, especially caffeine and alcohol. "
                "Rule out other causes with your doctor."
            ),
            "clinician": "Evaluate for nocturnal polyuria, consider desmopressin if appropriate.",
        },
    },
    "polyuria": {
        "pattern_signature_name": "Polyuria",
        "rule_definition_1_line": "Average daily voided volume >2500 ml",
        "confidence_basis": "EAU guidelines: 24h output >2.5 L",
        "guideline_url": _MALE_LUTS_URL,
        "audiences": ["patient", "clinician"],
        "recommendations": {
            "patient": (
                "Review fluid intake patterns and discuss with your doctor, "
                "especially if accompanied by increased thirst."
            ),
            "clinician": "Review fluid intake and screen for diabetes mellitus or diabetes insipidus.",
        },
    },
    "incomplete_emptying": {
        "pattern_signature_name": "Possible Incomplete Emptying",
        "rule_definition_1_line": "Median volume <150 ml with >10 voids/day",
        "confidence_basis": "Low functional capacity with high frequency",
        "guideline_url": _MALE_LUTS_URL,
        "audiences": ["patient"],
        "recommendations": {
            "patient": (
                "Double voiding technique may help. "
                "Your doctor may recommend post-void residual measurement."
            ),
        },
    },
    "no_concerning_patterns": {
        "pattern_signature_name": "No Concerning Patterns",
        "rule_definition_1_line": "Fallback when no other pattern fires and events exist",
        "guideline_url": _FEMALE_LUTS_URL,
        "audiences": ["patient", "clinician"],
        "reasoning": {
            "patient": "Your voiding diary shows patterns within normal ranges.",
            "clinician": "Voiding patterns appear within normal ranges.",
        },
        "recommendations": {
            "patient": "Maintain good hydration habits and continue tracking if concerns persist.",
            "clinician": "Continue monitoring. Reassess if symptoms change.",
        },
    },
}

_DEFAULT_GUIDELINE_URL = _FEMALE_LUTS_URL


def resolve_rule_metadata(rule: PatternRule) -> Mapping[str, Any] | None:
    """Return metadata associated with a rule, if any."""

    metadata = getattr(rule, "metadata", None)
    if metadata:
        return metadata
    return PATTERN_METADATA.get(rule.id)


def should_evaluate_rule(rule: PatternRule, context: PatternContext) -> bool:
    """Determine whether a rule applies to the audience in the context."""

    metadata = resolve_rule_metadata(rule)
    if not metadata:
        return True

    audiences = metadata.get("audiences")
    if audiences and context.audience.value not in audiences:
        return False
    return True


def guideline_url(pattern_name: str) -> str:
    """Guideline link for a finding name, falling back to the general LUTS page."""

    for metadata in PATTERN_METADATA.values():
        if metadata.get("pattern_signature_name") == pattern_name:
            return metadata.get("guideline_url", _DEFAULT_GUIDELINE_URL)
    return _DEFAULT_GUIDELINE_URL


__all__ = [
    "PATTERN_METADATA",
    "guideline_url",
    "resolve_rule_metadata",
    "should_evaluate_rule",
]
