"""Shared utilities for bladder diary rule implementations."""
from __future__ import annotations

import math
from typing import Iterable

import pandas as pd

from ..features import round_one_decimal

STRESS_TRIGGERS: frozenset[str] = frozenset({"cough", "sneeze", "laugh", "exercise", "lifting"})
URGENCY_TRIGGER = "urgency"


def normalize_trigger(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned or None


def trigger_mask(leakages: pd.DataFrame, triggers: Iterable[str]) -> pd.Series:
    """Boolean mask of leakages whose trigger is one of ``triggers``."""

    wanted = set(triggers)
    return leakages["trigger"].map(normalize_trigger).isin(wanted)


def one_decimal(value: float) -> str:
    return f"{round_one_decimal(value):.1f}"


def whole(value: float) -> str:
    return str(math.floor(value + 0.5))
