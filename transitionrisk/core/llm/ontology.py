"""
Ontology Resolver

Maps a free-text research query to disease, ICD-10, CPT and drug context.
Never raises: any failure yields OntologyMapping.default().
"""
from typing import Optional

from transitionrisk.core.domain import OntologyMapping
from transitionrisk.core.errors import InferenceUnavailableError
from transitionrisk.core.llm.gemini_client import GeminiClient, GeminiConfig
from transitionrisk.core.llm.validators import parse_ontology
from transitionrisk.utils import get_logger

logger = get_logger(__name__)


class OntologyResolver:
    """Research intent → OntologyMapping via the reasoning engine."""
    
    SYSTEM_INSTRUCTION = (
        "You are a medical ontology expert. Extract the disease, relevant ICD-10 codes, "
        "CPT codes, and associated drugs from the user's research query.\n"
        "The user is interested in analyzing patient therapy transitions "
        "(e.g., 1st line to 2nd line).\n"
        "Return a structured JSON object."
    )
    
    PROMPT_TEMPLATE = (
        'User Query: "{query}"\n\n'
        "Please identify:\n"
        "1. The primary Disease.\n"
        "2. A list of relevant ICD-10 codes (wildcards allowed, e.g., C50%).\n"
        "3. A list of relevant CPT codes for procedures/testing.\n"
        "4. Common drugs used for this condition.\n"
        '5. The implied therapy transition (e.g., "1L to 2L" or "2L to 3L").\n\n'
        'Respond with JSON only: {{"diseaseName": string, "icdCodes": [string], '
        '"cptCodes": [string], "drugs": [string], "targetLineTransition": string}}'
    )
    
    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or GeminiClient(GeminiConfig(response_mime_type="application/json"))
    
    def resolve(self, query: str) -> OntologyMapping:
        prompt = self.PROMPT_TEMPLATE.format(query=query)
        try:
            response = self.client.generate(prompt, system_instruction=self.SYSTEM_INSTRUCTION)
            mapping = parse_ontology(response)
        except InferenceUnavailableError as e:
            logger.warning(f"Ontology resolution failed, using default mapping: {e}")
            return OntologyMapping.default()
        
        logger.info(f"Resolved ontology: {mapping.disease_name} ({mapping.target_line_transition})")
        return mapping
