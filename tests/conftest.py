"""
Shared fixtures: fake reasoning engine clients, subject factories and a
seeded random generator.
"""
import json
import re
from typing import List, Optional

import numpy as np
import pytest

from transitionrisk.core.domain import CohortConfig, OntologyMapping, Subject
from transitionrisk.core.llm.gemini_client import GeminiResponse

_ID_PATTERN = re.compile(r'"id": "([^"]+)"')


class FakeLLMClient:
    """Returns canned texts in order (the last one repeats) and records prompts."""
    
    def __init__(self, responses: Optional[List[str]] = None, fail: bool = False):
        self.responses = list(responses or [""])
        self.fail = fail
        self.prompts = []
    
    def generate(self, prompt: str, system_instruction: Optional[str] = None) -> GeminiResponse:
        self.prompts.append((prompt, system_instruction))
        if self.fail:
            return GeminiResponse(text="", model="mock", is_mock=True, error="connection timed out")
        text = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return GeminiResponse(text=text, model="fake")


class ScoringLLMClient(FakeLLMClient):
    """Scores every subject id found in the prompt with a fixed probability."""
    
    def __init__(self, score: float = 0.8):
        super().__init__()
        self.score = score
    
    def generate(self, prompt: str, system_instruction: Optional[str] = None) -> GeminiResponse:
        self.prompts.append((prompt, system_instruction))
        ids = _ID_PATTERN.findall(prompt)
        payload = [{"id": i, "riskScore": self.score} for i in ids]
        return GeminiResponse(text=json.dumps(payload), model="fake")


def make_subject(
    subject_id: str,
    months: int = 6,
    line: int = 1,
    diagnosis: str = "C50.911",
    **extra,
) -> Subject:
    return Subject(
        id=subject_id,
        age=extra.pop("age", 60),
        gender=extra.pop("gender", "F"),
        diagnosis_code=diagnosis,
        current_therapy_line=line,
        months_on_current_therapy=months,
        last_visit_date=extra.pop("last_visit_date", "2024-05-01"),
        specialty=extra.pop("specialty", "Oncology"),
        drug_id=extra.pop("drug_id", "Tamoxifen"),
        provider_name=extra.pop("provider_name", "Dr. Sarah Chen"),
        provider_id=extra.pop("provider_id", "1457890123"),
        **extra,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def subject_factory():
    return make_subject


@pytest.fixture
def fake_client():
    return FakeLLMClient


@pytest.fixture
def scoring_client():
    return ScoringLLMClient


@pytest.fixture
def cohort() -> List[Subject]:
    """20 subjects: 16 eligible (months >= 1), 4 ineligible."""
    subjects = [make_subject(f"P-{1000 + i}", months=(i % 24) + 1) for i in range(16)]
    subjects += [make_subject(f"P-{2000 + i}", months=0) for i in range(4)]
    return subjects


@pytest.fixture
def ontology() -> OntologyMapping:
    return OntologyMapping(
        disease_name="Breast Cancer",
        icd_codes=["C50%"],
        cpt_codes=["96413"],
        drugs=["Tamoxifen", "Letrozole"],
        target_line_transition="1L to 2L",
    )


@pytest.fixture
def config() -> CohortConfig:
    return CohortConfig(lookback_months=6, prediction_window_months=3, min_claims_count=1, train_test_split=0.25)
