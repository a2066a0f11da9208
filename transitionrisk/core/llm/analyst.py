"""
Analyst Query Engine

Answers free-text questions about a scored roster. The answer text is
opaque; failures return fixed messages.
"""
from typing import Any, Dict, List, Optional, Sequence
import json

from transitionrisk.core.domain import OntologyMapping, Subject
from transitionrisk.core.llm.gemini_client import GeminiClient, GeminiConfig
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

ERROR_ANSWER = "Sorry, I encountered an error while processing your question."
EMPTY_ANSWER = "I could not generate an answer based on the data."


def serialize_roster(subjects: Sequence[Subject]) -> List[Dict[str, Any]]:
    """Compact per-subject context for the analyst prompt."""
    return [
        {
            "id": s.id,
            "age": s.age,
            "gender": s.gender,
            "line": s.current_therapy_line,
            "months": s.months_on_current_therapy,
            "drug": s.drug_id,
            "risk": s.risk_category.value if s.risk_category else None,
            "score": f"{s.risk_score:.2f}" if s.risk_score is not None else "N/A",
            "doctor": s.provider_name,
            "npi": s.provider_id,
            "split": s.split.value if s.split else None,
        }
        for s in subjects
    ]


class AnalystQueryEngine:
    """Question answering over analysis results."""
    
    SYSTEM_TEMPLATE = (
        "You are a specialized healthcare data analyst.\n"
        "You have access to a dataset of patients with {disease}.\n"
        "The dataset includes predicted risk scores for transitioning to the next line "
        "of therapy ({transition}).\n\n"
        "Your task is to answer the user's question based strictly on the provided dataset.\n"
        "If the user asks about specific doctors or NPIs, map the patients to them accordingly.\n\n"
        "Keep answers concise, professional, and data-driven.\n"
        "Format your response with markdown (lists, bold text) for readability."
    )
    
    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or GeminiClient()
    
    def build_prompt(self, question: str, subjects: Sequence[Subject]) -> str:
        roster = json.dumps(serialize_roster(subjects))
        return f'Dataset (JSON):\n{roster}\n\nUser Question:\n"{question}"'
    
    def ask(self, question: str, subjects: Sequence[Subject], ontology: OntologyMapping) -> str:
        system = self.SYSTEM_TEMPLATE.format(
            disease=ontology.disease_name,
            transition=ontology.target_line_transition,
        )
        response = self.client.generate(self.build_prompt(question, subjects), system_instruction=system)
        if not response.ok:
            logger.warning(f"Analyst query failed: {response.error or 'engine unavailable'}")
            return ERROR_ANSWER
        return response.text.strip() or EMPTY_ANSWER
