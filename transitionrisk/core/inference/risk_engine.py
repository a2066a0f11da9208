"""
Risk Inference Adapter

Scores a cohort through the reasoning engine and fills the gaps
deterministically:

- Total fallback: the engine call fails or returns an unusable payload.
  Every input subject gets a low score, Low category and TRAIN split; the
  eligibility/split computation is discarded.
- Partial fallback: the call succeeds but omits an eligible subject. That
  subject gets a duration-based heuristic score with bounded noise, inside
  the split already computed.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from transitionrisk.config import settings
from transitionrisk.core.cohort.split import split_cohort
from transitionrisk.core.domain import CohortConfig, OntologyMapping, RiskCategory, Split, Subject
from transitionrisk.core.errors import InferenceUnavailableError
from transitionrisk.core.inference.ground_truth import attach_simulated_outcomes
from transitionrisk.core.inference.strategies import ScoringStrategy, default_strategies
from transitionrisk.core.llm.gemini_client import GeminiClient
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

TOTAL_FALLBACK_SCORE = 0.1

# Partial fallback heuristic
LONG_DURATION_BASE = 0.4
SHORT_DURATION_BASE = 0.05
FALLBACK_NOISE = 0.15
MIN_FALLBACK_SCORE = 0.01
MAX_FALLBACK_SCORE = 0.99


def categorize(score: float) -> RiskCategory:
    """High above 0.7, Medium above 0.4, otherwise Low."""
    return RiskCategory.from_score(score)


def with_score(subject: Subject, score: float, **changes: Any) -> Subject:
    """Copy of subject carrying score and its derived category."""
    return replace(subject, risk_score=float(score), risk_category=categorize(score), **changes)


def partial_fallback_score(subject: Subject, config: CohortConfig, rng: np.random.Generator) -> float:
    """Duration heuristic: long time on therapy relative to lookback means higher risk."""
    if subject.months_on_current_therapy > config.lookback_months:
        base = LONG_DURATION_BASE
    else:
        base = SHORT_DURATION_BASE
    noise = rng.uniform(-FALLBACK_NOISE, FALLBACK_NOISE)
    return float(np.clip(base + noise, MIN_FALLBACK_SCORE, MAX_FALLBACK_SCORE))


@dataclass
class InferenceResult:
    """Scored subjects plus how they were scored."""
    subjects: List[Subject] = field(default_factory=list)
    mode: str = "engine"  # engine / total_fallback / skipped
    engine_scored: int = 0
    partial_fallback: int = 0
    batch_size: int = 0
    error: Optional[str] = None
    
    @property
    def used_total_fallback(self) -> bool:
        return self.mode == "total_fallback"
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "engine_scored": self.engine_scored,
            "partial_fallback": self.partial_fallback,
            "batch_size": self.batch_size,
            "error": self.error,
        }


class RiskInferenceAdapter:
    """
    Boundary between the pipeline and the external reasoning engine.
    
    No exception from the engine crosses classify(); the fallbacks above
    are applied instead.
    """
    
    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        strategies: Optional[Mapping[Any, ScoringStrategy]] = None,
        batch_size: Optional[int] = None,
        simulate_outcomes: bool = True,
    ):
        """
        Args:
            client: Engine client shared by the default strategies
            strategies: Strategy per ModelType, overrides the defaults
            batch_size: Max subjects sent to the engine
            simulate_outcomes: Attach simulated ground truth to scored subjects
        """
        self.strategies = dict(strategies) if strategies is not None else default_strategies(client)
        self.batch_size = batch_size or settings.inference_batch_size
        self.simulate_outcomes = simulate_outcomes
    
    def classify(
        self,
        subjects: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
        rng: np.random.Generator,
    ) -> List[Subject]:
        """Score subjects; see classify_with_details."""
        return self.classify_with_details(subjects, ontology, config, rng).subjects
    
    def classify_with_details(
        self,
        subjects: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
        rng: np.random.Generator,
    ) -> InferenceResult:
        """
        Split, score and label a cohort.
        
        Returns the eligible subjects in shuffled order with score, category,
        split and outcome set, or every input subject on total fallback.
        A cohort with no eligible subjects returns an empty result without
        calling the engine.
        """
        if not subjects:
            return InferenceResult(mode="skipped")
        
        eligible, _ = split_cohort(subjects, config, rng)
        if not eligible:
            logger.warning("No eligible subjects - skipping inference")
            return InferenceResult(mode="skipped")
        
        batch = eligible[:self.batch_size]
        strategy = self.strategies.get(config.model_type)
        
        try:
            predictions = self._score(strategy, batch, ontology, config)
        except InferenceUnavailableError as e:
            logger.warning(f"Reasoning engine failed ({e}) - total fallback for {len(subjects)} subjects")
            scored = [with_score(s, TOTAL_FALLBACK_SCORE, split=Split.TRAIN) for s in subjects]
            return InferenceResult(
                subjects=self._label(scored, rng),
                mode="total_fallback",
                batch_size=len(batch),
                error=str(e),
            )
        
        scored = []
        engine_scored = 0
        for subject in eligible:
            if subject.id in predictions:
                score = predictions[subject.id]
                engine_scored += 1
            else:
                score = partial_fallback_score(subject, config, rng)
            scored.append(with_score(subject, score))
        
        partial = len(scored) - engine_scored
        logger.info(
            f"Scored {len(scored)} subjects ({config.model_type.value}): "
            f"{engine_scored} by engine, {partial} by partial fallback"
        )
        return InferenceResult(
            subjects=self._label(scored, rng),
            mode="engine",
            engine_scored=engine_scored,
            partial_fallback=partial,
            batch_size=len(batch),
        )
    
    def _score(
        self,
        strategy: Optional[ScoringStrategy],
        batch: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
    ) -> Dict[str, float]:
        """Run one strategy; every failure surfaces as InferenceUnavailableError."""
        if strategy is None:
            raise InferenceUnavailableError(f"no scoring strategy for {config.model_type.value}")
        try:
            return strategy.score_batch(batch, ontology, config)
        except InferenceUnavailableError:
            raise
        except Exception as e:
            raise InferenceUnavailableError(f"{type(e).__name__}: {e}") from e
    
    def _label(self, subjects: List[Subject], rng: np.random.Generator) -> List[Subject]:
        if not self.simulate_outcomes:
            return subjects
        return attach_simulated_outcomes(subjects, rng)
