"""
Domain Types

Canonical subject record, ontology context and cohort configuration shared
by every pipeline stage.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RiskCategory(str, Enum):
    """Risk buckets derived from a transition probability."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    
    @classmethod
    def from_score(cls, score: float) -> "RiskCategory":
        """Convert a probability (0-1) to a category."""
        if score > 0.7:
            return cls.HIGH
        elif score > 0.4:
            return cls.MEDIUM
        return cls.LOW


class Split(str, Enum):
    """Cohort partition."""
    TRAIN = "TRAIN"
    TEST = "TEST"


class ModelType(str, Enum):
    """Scoring strategy requested for a run."""
    REASONING_ENGINE = "ReasoningEngine"
    TREE_ENSEMBLE_SIMULATED = "TreeEnsembleSimulated"

    @classmethod
    def from_string(cls, name: str) -> "ModelType":
        """Parse a model type with common aliases."""
        key = name.lower().replace("-", "_").replace(" ", "_")
        mapping = {
            "reasoningengine": cls.REASONING_ENGINE,
            "reasoning_engine": cls.REASONING_ENGINE,
            "genai_reasoning": cls.REASONING_ENGINE,
            "llm": cls.REASONING_ENGINE,
            "treeensemblesimulated": cls.TREE_ENSEMBLE_SIMULATED,
            "tree_ensemble_simulated": cls.TREE_ENSEMBLE_SIMULATED,
            "tree_ensemble": cls.TREE_ENSEMBLE_SIMULATED,
            "xgboost": cls.TREE_ENSEMBLE_SIMULATED,
        }
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown model type: {name}. Valid: {[m.value for m in cls]}")


class ImbalanceStrategy(str, Enum):
    """Class imbalance handling posture for the tree-ensemble strategy."""
    NONE = "None"
    CLASS_WEIGHTS = "ClassWeights"
    SMOTE = "SMOTE"

    @classmethod
    def from_string(cls, name: str) -> "ImbalanceStrategy":
        key = name.lower().replace("-", "_").replace(" ", "_")
        mapping = {
            "none": cls.NONE,
            "classweights": cls.CLASS_WEIGHTS,
            "class_weights": cls.CLASS_WEIGHTS,
            "smote": cls.SMOTE,
        }
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown imbalance strategy: {name}. Valid: {[m.value for m in cls]}")


@dataclass(frozen=True)
class Subject:
    """Canonical patient record flowing through the pipeline."""
    id: str
    age: int
    gender: str
    diagnosis_code: str
    current_therapy_line: int
    months_on_current_therapy: int
    last_visit_date: str
    specialty: str
    drug_id: str
    provider_name: str
    provider_id: str
    
    # Set once by inference / outcome simulation
    risk_score: Optional[float] = None
    risk_category: Optional[RiskCategory] = None
    split: Optional[Split] = None
    actual_outcome: Optional[bool] = None
    
    def to_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys."""
        data = asdict(self)
        data["risk_category"] = self.risk_category.value if self.risk_category else None
        data["split"] = self.split.value if self.split else None
        return {to_camel(k): v for k, v in data.items()}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OntologyMapping(_CamelModel):
    """Disease, code and drug context derived from a research query."""
    disease_name: str
    icd_codes: List[str] = Field(default_factory=list)
    cpt_codes: List[str] = Field(default_factory=list)
    drugs: List[str] = Field(default_factory=list)
    target_line_transition: str = "1L to 2L"

    @classmethod
    def default(cls) -> "OntologyMapping":
        return cls(
            disease_name="Unknown",
            icd_codes=[],
            cpt_codes=[],
            drugs=[],
            target_line_transition="1L to 2L",
        )


class CohortConfig(_CamelModel):
    """Tunable parameters for cohort definition, model strategy and split ratio."""
    lookback_months: int = Field(default=6, gt=0)
    prediction_window_months: int = Field(default=3, gt=0)
    min_claims_count: int = Field(default=1, ge=0)
    model_type: ModelType = ModelType.REASONING_ENGINE
    imbalance_strategy: ImbalanceStrategy = ImbalanceStrategy.NONE
    train_test_split: float = Field(default=0.2, ge=0.1, le=0.5)

    @field_validator("model_type", mode="before")
    @classmethod
    def _parse_model_type(cls, v):
        if isinstance(v, str) and not isinstance(v, ModelType):
            return ModelType.from_string(v)
        return v

    @field_validator("imbalance_strategy", mode="before")
    @classmethod
    def _parse_imbalance(cls, v):
        if isinstance(v, str) and not isinstance(v, ImbalanceStrategy):
            return ImbalanceStrategy.from_string(v)
        return v
