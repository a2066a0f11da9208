"""
Disease Presets

Default cohort windows per disease, matched fuzzily against the ontology's
disease name to pre-fill a CohortConfig.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pydantic.alias_generators import to_camel

from transitionrisk.config import settings
from transitionrisk.core.domain import CohortConfig, OntologyMapping
from transitionrisk.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DiseasePreset:
    disease_name: str
    default_lookback_months: int
    default_prediction_window_months: int
    default_min_claims: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiseasePreset":
        return cls(
            disease_name=data["disease_name"],
            default_lookback_months=int(data["default_lookback_months"]),
            default_prediction_window_months=int(data["default_prediction_window_months"]),
            default_min_claims=int(data["default_min_claims"]),
        )


def load_presets() -> List[DiseasePreset]:
    """Presets configured in settings."""
    return [DiseasePreset.from_dict(p) for p in settings.disease_presets]


def find_preset(disease_name: str, presets: Sequence[DiseasePreset]) -> Optional[DiseasePreset]:
    """First preset whose name contains, or is contained in, the disease name."""
    name = disease_name.strip().lower()
    if not name:
        return None
    for preset in presets:
        candidate = preset.disease_name.strip().lower()
        if candidate and (candidate in name or name in candidate):
            return preset
    return None


def build_cohort_config(
    ontology: OntologyMapping,
    presets: Optional[Sequence[DiseasePreset]] = None,
    **overrides: Any,
) -> CohortConfig:
    """
    CohortConfig for an ontology, with preset windows applied when one matches.
    
    Keyword overrides (snake_case or camelCase) win over preset values.
    """
    presets = load_presets() if presets is None else presets
    values: Dict[str, Any] = {}
    
    preset = find_preset(ontology.disease_name, presets)
    if preset:
        logger.info(f"Applying preset '{preset.disease_name}' for '{ontology.disease_name}'")
        values.update(
            lookback_months=preset.default_lookback_months,
            prediction_window_months=preset.default_prediction_window_months,
            min_claims_count=preset.default_min_claims,
        )
    
    base = CohortConfig(**values)
    if not overrides:
        return base
    merged = base.model_dump()
    for key, value in overrides.items():
        merged[key if key in CohortConfig.model_fields else _field_for_alias(key)] = value
    return CohortConfig(**merged)


def _field_for_alias(alias: str) -> str:
    for name in CohortConfig.model_fields:
        if to_camel(name) == alias:
            return name
    raise TypeError(f"Unknown cohort config field: {alias}")
