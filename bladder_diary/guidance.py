"""Supplementary guidance attached to specific findings."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .models import ClinicalPattern, Probability, Session

EAU_NOCTURIA_PDF_URL = (
    "https://d56bochluxqnz.cloudfront.net/documents/"
    "EAU-Cheat-Sheet-EAU-Guidelines-on-Male-LUTS-V-Management-of-Nocturia.pdf"
)
NOCTURIA = "Nocturia"

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class NocturiaGuidance:
    title: str
    description: str
    url: str


def _luhn_check_digit(digits: str) -> int:
    total = 0
    for index, char in enumerate(digits):
        product = int(char) * (2 if index % 2 == 0 else 1)
        total += product // 10 + product % 10
    return (10 - total % 10) % 10


def sex_from_personal_number(personal_number: str | None) -> Optional[str]:
    """Return ``"male"`` or ``"female"`` from a Swedish personal number.

    Accepts ``YYMMDD-NNNC`` or ``YYYYMMDD-NNNC`` with any separators. The
    digit before the check digit is odd for men. Returns ``None`` when the
    number is malformed or its check digit does not match.
    """

    if not personal_number:
        return None
    digits = _NON_DIGITS.sub("", personal_number)
    if len(digits) == 12:
        digits = digits[2:]
    if len(digits) != 10:
        return None
    if _luhn_check_digit(digits[:9]) != int(digits[9]):
        return None
    return "male" if int(digits[8]) % 2 == 1 else "female"


def patient_sex(session: Session) -> Optional[str]:
    """Declared sex on the profile, else the one derived from the personal number."""

    patient = session.patient
    if patient is None:
        return None
    if patient.sex:
        return patient.sex.lower()
    return sex_from_personal_number(patient.personal_number)


def nocturia_guidance(patterns: Sequence[ClinicalPattern], session: Session) -> Optional[NocturiaGuidance]:
    """Male-specific nocturia guidance when a high or moderate nocturia finding exists."""

    has_nocturia = any(
        pattern.name == NOCTURIA and pattern.probability in (Probability.HIGH, Probability.MODERATE)
        for pattern in patterns
    )
    if not has_nocturia or patient_sex(session) != "male":
        return None
    return NocturiaGuidance(
        title="Nocturia: clinical guidance (EAU)",
        description=(
            "Nocturia was identified from the bladder diary. The EAU Guidelines on male LUTS "
            "cheat sheet covers the management of nocturia."
        ),
        url=EAU_NOCTURIA_PDF_URL,
    )
