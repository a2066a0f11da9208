"""
LLM Module

Gemini client plus the three external engine roles: ontology resolution,
batch risk scoring payload validation and analyst questions.
"""
from .gemini_client import GeminiClient, GeminiConfig, GeminiResponse
from .validators import RiskPrediction, parse_risk_predictions, parse_ontology
from .ontology import OntologyResolver
from .analyst import AnalystQueryEngine, serialize_roster

__all__ = [
    "GeminiClient",
    "GeminiConfig",
    "GeminiResponse",
    "RiskPrediction",
    "parse_risk_predictions",
    "parse_ontology",
    "OntologyResolver",
    "AnalystQueryEngine",
    "serialize_roster",
]
