from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from bladder_diary.guidance import (
    EAU_NOCTURIA_PDF_URL,
    nocturia_guidance,
    patient_sex,
    sex_from_personal_number,
)
from bladder_diary.models import ClinicalPattern, PatientProfile, Probability, Session, SessionRole


@pytest.mark.parametrize(
    "personal_number, expected",
    [
        ("811228-9874", "male"),
        ("8112289874", "male"),
        ("19121212-1212", "male"),
        ("121212-1220", "female"),
        ("670919-9530", "male"),
        ("811228-9875", None),
        ("12345", None),
        ("", None),
        (None, None),
    ],
)
def test_sex_from_personal_number(personal_number, expected):
    assert sex_from_personal_number(personal_number) == expected


def _session(personal_number=None, sex=None, role=SessionRole.CLINICIAN) -> Session:
    return Session(role=role, patient=PatientProfile(patient_id="p1", personal_number=personal_number, sex=sex))


def _nocturia(probability: Probability) -> ClinicalPattern:
    return ClinicalPattern(name="Nocturia", probability=probability, reasoning="", recommendation="")


def test_explicit_sex_wins_over_personal_number():
    assert patient_sex(_session("811228-9874", sex="Female")) == "female"
    assert patient_sex(_session("811228-9874")) == "male"
    assert patient_sex(Session(role=SessionRole.PATIENT)) is None


def test_guidance_only_for_male_patients_with_nocturia():
    guidance = nocturia_guidance([_nocturia(Probability.HIGH)], _session("811228-9874"))
    assert guidance is not None
    assert guidance.url == EAU_NOCTURIA_PDF_URL

    assert nocturia_guidance([_nocturia(Probability.MODERATE)], _session("121212-1220")) is None
    assert nocturia_guidance([_nocturia(Probability.LOW)], _session("811228-9874")) is None
    assert nocturia_guidance([], _session("811228-9874")) is None
