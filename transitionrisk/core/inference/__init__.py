"""
Inference Module

Risk scoring through the reasoning engine with deterministic fallbacks,
scoring strategies and simulated ground truth.
"""
from .risk_engine import (
    RiskInferenceAdapter, InferenceResult, categorize, partial_fallback_score,
    TOTAL_FALLBACK_SCORE,
)
from .strategies import (
    ScoringStrategy, PromptedScoringStrategy, ClinicalReasoningStrategy,
    TreeEnsembleSimulationStrategy, default_strategies,
)
from .ground_truth import simulate_outcome, attach_simulated_outcomes, attach_observed_outcomes

__all__ = [
    "RiskInferenceAdapter",
    "InferenceResult",
    "categorize",
    "partial_fallback_score",
    "TOTAL_FALLBACK_SCORE",
    "ScoringStrategy",
    "PromptedScoringStrategy",
    "ClinicalReasoningStrategy",
    "TreeEnsembleSimulationStrategy",
    "default_strategies",
    "simulate_outcome",
    "attach_simulated_outcomes",
    "attach_observed_outcomes",
]
