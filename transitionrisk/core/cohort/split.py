"""
Cohort Split & Eligibility

Filters subjects on minimum therapy duration, shuffles the eligible ones
with an injected random source and partitions them into TRAIN / TEST.
"""
from dataclasses import replace
import math
from typing import List, NamedTuple, Sequence

import numpy as np

from transitionrisk.core.domain import CohortConfig, Split, Subject
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

# Subjects need at least this many months on current therapy to be split
MIN_MONTHS_ON_THERAPY = 1


class CohortSplit(NamedTuple):
    """Eligible subjects (shuffled, split assigned) and the excluded rest."""
    eligible: List[Subject]
    ineligible: List[Subject]

    @property
    def train(self) -> List[Subject]:
        return [s for s in self.eligible if s.split == Split.TRAIN]

    @property
    def test(self) -> List[Subject]:
        return [s for s in self.eligible if s.split == Split.TEST]


def is_eligible(subject: Subject) -> bool:
    """Minimum time on current therapy gate."""
    return subject.months_on_current_therapy >= MIN_MONTHS_ON_THERAPY


def split_index(n_subjects: int, train_test_split: float) -> int:
    """Index of the first TEST subject."""
    return math.floor(n_subjects * (1 - train_test_split))


def split_cohort(
    subjects: Sequence[Subject],
    config: CohortConfig,
    rng: np.random.Generator,
) -> CohortSplit:
    """
    Partition eligible subjects into TRAIN and TEST.
    
    Returns new Subject instances; the input sequence is not modified and
    ineligible subjects never receive a split.
    """
    eligible = [s for s in subjects if is_eligible(s)]
    ineligible = [s for s in subjects if not is_eligible(s)]
    
    order = rng.permutation(len(eligible))
    cut = split_index(len(eligible), config.train_test_split)
    
    assigned = [
        replace(eligible[j], split=Split.TRAIN if pos < cut else Split.TEST)
        for pos, j in enumerate(order)
    ]
    logger.info(
        f"Cohort split: {cut} train, {len(assigned) - cut} test, "
        f"{len(ineligible)} ineligible"
    )
    return CohortSplit(eligible=assigned, ineligible=ineligible)
