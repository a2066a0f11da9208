"""
Ground-Truth Simulator

Draws a synthetic outcome per scored subject with success probability equal
to its risk score. Demonstration only: metrics computed on these labels
reflect the noise process, not model quality. Use attach_observed_outcomes
with an independently labelled dataset for anything else.
"""
from dataclasses import replace
from typing import List, Mapping, Sequence

import numpy as np

from transitionrisk.core.domain import Subject


def simulate_outcome(score: float, rng: np.random.Generator) -> bool:
    """Bernoulli draw with p = score."""
    return bool(rng.random() < score)


def attach_simulated_outcomes(subjects: Sequence[Subject], rng: np.random.Generator) -> List[Subject]:
    """Simulated outcome for every subject that has a risk score."""
    return [
        replace(s, actual_outcome=simulate_outcome(s.risk_score, rng))
        if s.risk_score is not None else s
        for s in subjects
    ]


def attach_observed_outcomes(subjects: Sequence[Subject], outcomes: Mapping[str, bool]) -> List[Subject]:
    """Replace outcomes of scored subjects with observed labels; others are unchanged."""
    return [
        replace(s, actual_outcome=bool(outcomes[s.id]))
        if s.id in outcomes and s.risk_score is not None else s
        for s in subjects
    ]
