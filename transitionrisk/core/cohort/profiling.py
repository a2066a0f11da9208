"""
Cohort Profiling

Therapy-line distribution and class balance check used to recommend a
scoring strategy before a run is configured.
"""
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from transitionrisk.core.domain import ImbalanceStrategy, ModelType, Subject
from transitionrisk.core.ingestion.normalizer import UNKNOWN

# First-line share outside this band counts as imbalanced
IMBALANCE_LOW = 0.15
IMBALANCE_HIGH = 0.85


@dataclass
class CohortProfile:
    total: int
    first_line: int
    second_line: int
    third_line_plus: int
    missing_diagnosis: int
    first_line_ratio: float
    is_imbalanced: bool
    recommended_model: ModelType
    recommended_imbalance_strategy: ImbalanceStrategy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "distribution": {
                "1L": self.first_line,
                "2L": self.second_line,
                "3L+": self.third_line_plus,
            },
            "missing_diagnosis": self.missing_diagnosis,
            "first_line_ratio": round(self.first_line_ratio, 3),
            "is_imbalanced": self.is_imbalanced,
            "recommended_model": self.recommended_model.value,
            "recommended_imbalance_strategy": self.recommended_imbalance_strategy.value,
        }


def profile_cohort(subjects: Sequence[Subject]) -> CohortProfile:
    total = len(subjects)
    first = sum(1 for s in subjects if s.current_therapy_line == 1)
    second = sum(1 for s in subjects if s.current_therapy_line == 2)
    third_plus = sum(1 for s in subjects if s.current_therapy_line >= 3)
    missing_dx = sum(1 for s in subjects if not s.diagnosis_code or s.diagnosis_code == UNKNOWN)
    
    ratio = first / total if total > 0 else 0.0
    imbalanced = total > 0 and (ratio < IMBALANCE_LOW or ratio > IMBALANCE_HIGH)
    
    if imbalanced:
        model, strategy = ModelType.TREE_ENSEMBLE_SIMULATED, ImbalanceStrategy.CLASS_WEIGHTS
    else:
        model, strategy = ModelType.REASONING_ENGINE, ImbalanceStrategy.NONE
    
    return CohortProfile(
        total=total,
        first_line=first,
        second_line=second,
        third_line_plus=third_plus,
        missing_diagnosis=missing_dx,
        first_line_ratio=ratio,
        is_imbalanced=imbalanced,
        recommended_model=model,
        recommended_imbalance_strategy=strategy,
    )
