"""
Analysis Service - Pipeline Orchestration

Runs ingest → ontology → configure → classify → validate. Each run gets its
own random generator, so runs never share mutable state.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from transitionrisk.config import settings
from transitionrisk.core.cohort import CohortProfile, DiseasePreset, build_cohort_config, profile_cohort
from transitionrisk.core.domain import CohortConfig, OntologyMapping, Subject
from transitionrisk.core.inference import InferenceResult, RiskInferenceAdapter
from transitionrisk.core.ingestion import ColumnKeywords, ProfileGenerator, generate_sample_cohort, parse_csv_text
from transitionrisk.core.llm import AnalystQueryEngine, GeminiClient, GeminiConfig, OntologyResolver
from transitionrisk.core.validation import RiskSummary, ValidationMetrics, compute_metrics, summarize_risk
from transitionrisk.utils import get_logger

logger = get_logger(__name__)


def make_rng(seed: Optional[int] = None) -> Tuple[np.random.Generator, int]:
    """Fresh generator and the seed that reproduces it."""
    if seed is None:
        seed = settings.default_random_seed
    if seed is None:
        seed = int(np.random.SeedSequence().entropy % (2 ** 32))
    return np.random.default_rng(seed), seed


@dataclass
class AnalysisRun:
    """Output of one pipeline run."""
    run_id: str
    seed: int
    ontology: OntologyMapping
    config: CohortConfig
    subjects: List[Subject]
    inference: InferenceResult
    metrics: ValidationMetrics
    summary: RiskSummary
    profile: CohortProfile
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "seed": self.seed,
            "timestamp": self.timestamp,
            "ontology": self.ontology.model_dump(by_alias=True),
            "config": self.config.model_dump(by_alias=True, mode="json"),
            "subjects": [s.to_dict() for s in self.subjects],
            "inference": self.inference.to_dict(),
            "metrics": self.metrics.to_dict(),
            "summary": self.summary.to_dict(),
            "profile": self.profile.to_dict(),
        }


class AnalysisService:
    """
    Service class for the transition risk pipeline.
    Decouples pipeline logic from the FastAPI endpoints.
    """
    
    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        adapter: Optional[RiskInferenceAdapter] = None,
        resolver: Optional[OntologyResolver] = None,
        analyst: Optional[AnalystQueryEngine] = None,
        keywords: Optional[ColumnKeywords] = None,
        presets: Optional[Sequence[DiseasePreset]] = None,
        profile_generator: Optional[ProfileGenerator] = None,
    ):
        json_client = client or GeminiClient(GeminiConfig(response_mime_type="application/json"))
        self.adapter = adapter or RiskInferenceAdapter(client=json_client)
        self.resolver = resolver or OntologyResolver(client=json_client)
        self.analyst = analyst or AnalystQueryEngine(client=client)
        self.keywords = keywords or ColumnKeywords.default()
        self.presets = presets
        self.profile_generator = profile_generator
    
    def ingest(self, text: str, seed: Optional[int] = None) -> List[Subject]:
        """
        Parse a claims extract.
        
        Raises:
            ColumnMappingError: if required columns cannot be resolved
        """
        rng, _ = make_rng(seed)
        subjects = parse_csv_text(text, self.keywords, generator=self.profile_generator, rng=rng)
        logger.info(f"Ingested {len(subjects)} subjects")
        return subjects
    
    def sample(self, n_subjects: int = 200, seed: Optional[int] = None) -> List[Subject]:
        rng, _ = make_rng(seed)
        return generate_sample_cohort(n_subjects, rng)
    
    async def resolve_ontology(self, query: str) -> OntologyMapping:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.resolver.resolve, query))
    
    def configure(
        self,
        ontology: OntologyMapping,
        subjects: Optional[Sequence[Subject]] = None,
        **overrides: Any,
    ) -> CohortConfig:
        """
        CohortConfig from the matching disease preset.
        
        When subjects are given and the cohort is imbalanced, the recommended
        model and imbalance strategy are applied unless overridden.
        """
        recommended: Dict[str, Any] = {}
        if subjects:
            profile = profile_cohort(subjects)
            if profile.is_imbalanced:
                recommended = {
                    "model_type": profile.recommended_model,
                    "imbalance_strategy": profile.recommended_imbalance_strategy,
                }
        recommended.update(overrides)
        return build_cohort_config(ontology, self.presets, **recommended)
    
    async def run_analysis(
        self,
        subjects: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
        seed: Optional[int] = None,
    ) -> AnalysisRun:
        """Classify, label and validate a cohort."""
        rng, seed = make_rng(seed)
        run_id = str(uuid.uuid4())
        logger.info(f"Run {run_id}: {len(subjects)} subjects, model={config.model_type.value}, seed={seed}")
        
        loop = asyncio.get_running_loop()
        inference = await loop.run_in_executor(
            None,
            partial(self.adapter.classify_with_details, list(subjects), ontology, config, rng)
        )
        
        metrics = compute_metrics(inference.subjects)
        logger.info(
            f"Run {run_id} complete ({inference.mode}): accuracy={metrics.accuracy:.3f} "
            f"precision={metrics.precision:.3f} recall={metrics.recall:.3f}"
        )
        return AnalysisRun(
            run_id=run_id,
            seed=seed,
            ontology=ontology,
            config=config,
            subjects=inference.subjects,
            inference=inference,
            metrics=metrics,
            summary=summarize_risk(inference.subjects),
            profile=profile_cohort(subjects),
        )
    
    async def ask(self, question: str, subjects: Sequence[Subject], ontology: OntologyMapping) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self.analyst.ask, question, list(subjects), ontology))
