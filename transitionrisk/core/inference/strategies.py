"""
Scoring Strategies

Each CohortConfig.model_type maps to one ScoringStrategy. The built-in
strategies prompt the reasoning engine with different scripts; a trained
classifier can implement ScoringStrategy directly and plug into the same
adapter.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence
import json

from transitionrisk.core.domain import CohortConfig, ImbalanceStrategy, ModelType, OntologyMapping, Subject
from transitionrisk.core.llm.gemini_client import GeminiClient, GeminiConfig
from transitionrisk.core.llm.validators import parse_risk_predictions


class ScoringStrategy(ABC):
    """Scores a batch of subjects."""
    
    model_type: ModelType
    
    @abstractmethod
    def score_batch(
        self,
        batch: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
    ) -> Dict[str, float]:
        """
        Return {subject id: transition probability} for the subjects scored.
        
        Subjects may be omitted from the result.
        
        Raises:
            InferenceUnavailableError: if the batch could not be scored at all
        """
        pass


def feature_rows(batch: Sequence[Subject]) -> List[Dict[str, object]]:
    """Minimal feature tuple sent to the engine per subject."""
    return [
        {
            "id": s.id,
            "age": s.age,
            "monthsOnTherapy": s.months_on_current_therapy,
            "currentLine": s.current_therapy_line,
            "specialty": s.specialty,
            "doctor": s.provider_name,
        }
        for s in batch
    ]


class PromptedScoringStrategy(ScoringStrategy):
    """Strategy that asks the reasoning engine for a JSON array of scores."""
    
    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or GeminiClient(GeminiConfig(response_mime_type="application/json"))
    
    @abstractmethod
    def strategy_script(self, config: CohortConfig) -> str:
        """Reasoning instructions specific to this strategy."""
        pass
    
    def build_prompt(
        self,
        batch: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
    ) -> str:
        return (
            f"Context: Analyze patients with {ontology.disease_name} to predict transition "
            f"to {ontology.target_line_transition}.\n\n"
            "Cohort Definition / Model Inputs:\n"
            f"- Historical Lookback: Last {config.lookback_months} months.\n"
            f"- Prediction Window: Future {config.prediction_window_months} months.\n"
            f"- Min Claims: {config.min_claims_count}.\n\n"
            f"{self.strategy_script(config)}\n\n"
            "Patient Data (JSON):\n"
            f"{json.dumps(feature_rows(batch))}\n\n"
            "Task:\n"
            "Predict the probability (riskScore) that the patient will transition to the next "
            f"line of therapy WITHIN the next {config.prediction_window_months} months.\n\n"
            'Return a JSON array of objects with "id" and "riskScore" (0.0 to 1.0).'
        )
    
    def score_batch(
        self,
        batch: Sequence[Subject],
        ontology: OntologyMapping,
        config: CohortConfig,
    ) -> Dict[str, float]:
        response = self.client.generate(self.build_prompt(batch, ontology, config))
        return parse_risk_predictions(response)


class ClinicalReasoningStrategy(PromptedScoringStrategy):
    """Guideline-based clinical reasoning."""
    
    model_type = ModelType.REASONING_ENGINE
    
    def strategy_script(self, config: CohortConfig) -> str:
        return (
            "MODE: Standard Clinical Reasoning (LLM).\n"
            "Analyze the clinical narrative and duration to estimate risk based on "
            "standard medical guidelines."
        )


IMBALANCE_GUIDANCE = {
    ImbalanceStrategy.CLASS_WEIGHTS: (
        "Apply `scale_pos_weight` logic: heavily penalize false negatives for the minority "
        "class (Transitioners). Be aggressive in flagging potential risks."
    ),
    ImbalanceStrategy.SMOTE: (
        "Assume Synthetic Minority Over-sampling (SMOTE) was used. Be sensitive to borderline "
        "cases that resemble the minority class distribution."
    ),
    ImbalanceStrategy.NONE: "",
}


class TreeEnsembleSimulationStrategy(PromptedScoringStrategy):
    """Engine asked to behave like a gradient-boosted tree classifier."""
    
    model_type = ModelType.TREE_ENSEMBLE_SIMULATED
    
    def strategy_script(self, config: CohortConfig) -> str:
        lines = [
            "MODE: XGBoost (Gradient Boosted Decision Tree) Simulation.",
            "",
            "You are effectively an XGBoost classifier trained on claims data.",
            "Features: Age, CurrentLine, MonthsOnTherapy, DrugId, Specialty.",
            "",
            f"IMBALANCE STRATEGY: {config.imbalance_strategy.value}",
        ]
        guidance = IMBALANCE_GUIDANCE[config.imbalance_strategy]
        if guidance:
            lines.append(guidance)
        lines += [
            "",
            "Algorithm Logic:",
            "- Look for non-linear interactions (e.g., High duration + Specific Drug).",
            "- Output a probability score (0.0 - 1.0) based on tree leaf weights.",
        ]
        return "\n".join(lines)


def default_strategies(client: Optional[GeminiClient] = None) -> Dict[ModelType, ScoringStrategy]:
    """Built-in strategy per model type, sharing one client."""
    client = client or GeminiClient(GeminiConfig(response_mime_type="application/json"))
    return {
        ModelType.REASONING_ENGINE: ClinicalReasoningStrategy(client),
        ModelType.TREE_ENSEMBLE_SIMULATED: TreeEnsembleSimulationStrategy(client),
    }
