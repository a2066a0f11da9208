"""
Validation Metrics

Confusion-matrix metrics over the TEST partition and a per-category risk
summary over the whole scored cohort. Every ratio is zero-guarded.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

from transitionrisk.core.domain import RiskCategory, Split, Subject

# Predicted positive when the score is strictly above this
DECISION_THRESHOLD = 0.5


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


@dataclass
class ValidationMetrics:
    """Confusion counts and derived rates for the TEST split."""
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    tp: int = 0
    fp: int = 0
    tn: int = 0
    fn: int = 0
    
    @property
    def test_size(self) -> int:
        return self.tp + self.fp + self.tn + self.fn
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": round(self.accuracy, 4),
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "tp": self.tp,
            "fp": self.fp,
            "tn": self.tn,
            "fn": self.fn,
            "test_size": self.test_size,
        }


def compute_metrics(subjects: Sequence[Subject]) -> ValidationMetrics:
    """
    Accuracy, precision and recall over subjects with split TEST.
    
    An empty TEST set yields all zeros.
    """
    tp = fp = tn = fn = 0
    for s in subjects:
        if s.split != Split.TEST:
            continue
        predicted = (s.risk_score or 0.0) > DECISION_THRESHOLD
        actual = bool(s.actual_outcome)
        if predicted and actual:
            tp += 1
        elif predicted:
            fp += 1
        elif actual:
            fn += 1
        else:
            tn += 1
    
    return ValidationMetrics(
        accuracy=_ratio(tp + tn, tp + fp + tn + fn),
        precision=_ratio(tp, tp + fp),
        recall=_ratio(tp, tp + fn),
        tp=tp,
        fp=fp,
        tn=tn,
        fn=fn,
    )


@dataclass
class RiskSummary:
    """Cohort-level view of a scored run."""
    total: int = 0
    counts: Dict[RiskCategory, int] = field(default_factory=dict)
    avg_months_by_category: Dict[RiskCategory, float] = field(default_factory=dict)
    train_count: int = 0
    test_count: int = 0
    mean_risk_score: float = 0.0
    
    @property
    def high_risk_share(self) -> float:
        return _ratio(self.counts.get(RiskCategory.HIGH, 0), self.total)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "counts": {c.value: n for c, n in self.counts.items()},
            "avg_months_by_category": {
                c.value: round(m, 1) for c, m in self.avg_months_by_category.items()
            },
            "train_count": self.train_count,
            "test_count": self.test_count,
            "mean_risk_score": round(self.mean_risk_score, 4),
            "high_risk_share": round(self.high_risk_share, 4),
        }


def summarize_risk(subjects: Sequence[Subject]) -> RiskSummary:
    counts = {}
    avg_months = {}
    for category in RiskCategory:
        bucket = [s for s in subjects if s.risk_category == category]
        counts[category] = len(bucket)
        avg_months[category] = _ratio(sum(s.months_on_current_therapy for s in bucket), len(bucket))
    
    scores = [s.risk_score for s in subjects if s.risk_score is not None]
    return RiskSummary(
        total=len(subjects),
        counts=counts,
        avg_months_by_category=avg_months,
        train_count=sum(1 for s in subjects if s.split == Split.TRAIN),
        test_count=sum(1 for s in subjects if s.split == Split.TEST),
        mean_risk_score=_ratio(sum(scores), len(scores)),
    )
