"""
LLM Response Validators

Validates reasoning-engine payloads against explicit schemas. Anything that
does not validate is reported as InferenceUnavailableError, the same as a
transport failure.
"""
from typing import Dict, List
import json
import re

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from transitionrisk.core.domain import OntologyMapping
from transitionrisk.core.errors import InferenceUnavailableError
from transitionrisk.core.llm.gemini_client import GeminiResponse

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class RiskPrediction(BaseModel):
    """One scored subject in a batch response."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)
    
    id: str
    risk_score: float = Field(alias="riskScore", ge=0.0, le=1.0)


_PREDICTIONS = TypeAdapter(List[RiskPrediction])


def response_text(response: GeminiResponse) -> str:
    """Usable text of a response, without markdown code fences."""
    if not response.ok:
        raise InferenceUnavailableError(response.error or "reasoning engine unavailable")
    text = _CODE_FENCE.sub("", (response.text or "").strip())
    if not text:
        raise InferenceUnavailableError("empty response from reasoning engine")
    return text


def parse_risk_predictions(response: GeminiResponse) -> Dict[str, float]:
    """
    Parse a batch scoring response into {id: riskScore}.
    
    The first prediction for an id wins.
    
    Raises:
        InferenceUnavailableError: failed call, empty text, invalid JSON or
            a payload that is not a list of {id, riskScore in [0, 1]}
    """
    text = response_text(response)
    try:
        predictions = _PREDICTIONS.validate_json(text)
    except ValidationError as e:
        raise InferenceUnavailableError(f"invalid scoring payload: {e.error_count()} errors") from e
    
    scores: Dict[str, float] = {}
    for p in predictions:
        scores.setdefault(p.id, p.risk_score)
    return scores


def parse_ontology(response: GeminiResponse) -> OntologyMapping:
    """
    Parse an ontology response.
    
    Raises:
        InferenceUnavailableError: on any failure
    """
    text = response_text(response)
    try:
        payload = json.loads(text)
        return OntologyMapping.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        raise InferenceUnavailableError(f"invalid ontology payload: {e}") from e
