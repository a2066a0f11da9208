"""
Unit Tests for LLM Module

Tests for payload validators, ontology resolution, analyst questions and
the Gemini client's mock mode.
"""
import json

import pytest

from transitionrisk.core.domain import OntologyMapping, RiskCategory, Split
from transitionrisk.core.errors import InferenceUnavailableError
from transitionrisk.core.llm import (
    AnalystQueryEngine, GeminiClient, GeminiConfig, GeminiResponse, OntologyResolver,
    parse_ontology, parse_risk_predictions, serialize_roster,
)
from transitionrisk.core.llm.analyst import EMPTY_ANSWER, ERROR_ANSWER


def ok(text: str) -> GeminiResponse:
    return GeminiResponse(text=text, model="fake")


class TestValidators:
    """Tests for scoring and ontology payload validation."""
    
    def test_parse_predictions(self):
        scores = parse_risk_predictions(ok('[{"id": "A", "riskScore": 0.3}, {"id": 17, "riskScore": 1}]'))
        assert scores == {"A": 0.3, "17": 1.0}
    
    def test_first_prediction_wins(self):
        scores = parse_risk_predictions(ok('[{"id": "A", "riskScore": 0.3}, {"id": "A", "riskScore": 0.9}]'))
        assert scores == {"A": 0.3}
    
    def test_mock_response_rejected(self):
        response = GeminiResponse(text="[]", model="mock", is_mock=True)
        with pytest.raises(InferenceUnavailableError):
            parse_risk_predictions(response)
    
    @pytest.mark.parametrize("text", ["", "   ", "[{]", '[{"id": "A", "riskScore": -0.1}]'])
    def test_invalid_predictions(self, text):
        with pytest.raises(InferenceUnavailableError):
            parse_risk_predictions(ok(text))
    
    def test_parse_ontology_camel_case(self):
        payload = {
            "diseaseName": "Non-Small Cell Lung Cancer",
            "icdCodes": ["C34%"],
            "cptCodes": ["96413"],
            "drugs": ["Osimertinib"],
            "targetLineTransition": "1L to 2L",
        }
        mapping = parse_ontology(ok(json.dumps(payload)))
        assert mapping.disease_name == "Non-Small Cell Lung Cancer"
        assert mapping.icd_codes == ["C34%"]
    
    def test_parse_ontology_missing_disease(self):
        with pytest.raises(InferenceUnavailableError):
            parse_ontology(ok('{"icdCodes": []}'))


class TestOntologyResolver:
    
    def test_resolves_fenced_json(self, fake_client):
        payload = {"diseaseName": "Breast Cancer", "icdCodes": ["C50%"], "drugs": ["Tamoxifen"]}
        client = fake_client(["```json\n" + json.dumps(payload) + "\n```"])
        mapping = OntologyResolver(client).resolve("HR+ breast cancer patients moving to CDK4/6")
        
        assert mapping.disease_name == "Breast Cancer"
        assert mapping.target_line_transition == "1L to 2L"
        prompt, system = client.prompts[0]
        assert "HR+ breast cancer patients" in prompt
        assert "ontology" in system
    
    def test_default_on_failure(self, fake_client):
        mapping = OntologyResolver(fake_client(fail=True)).resolve("anything")
        assert mapping == OntologyMapping.default()
    
    def test_default_on_garbage(self, fake_client):
        mapping = OntologyResolver(fake_client(["I think it is breast cancer"])).resolve("q")
        assert mapping.disease_name == "Unknown"
        assert mapping.icd_codes == []


class TestAnalystQueryEngine:
    
    @pytest.fixture
    def roster(self, subject_factory):
        return [
            subject_factory("A", risk_score=0.812, risk_category=RiskCategory.HIGH, split=Split.TEST),
            subject_factory("B"),
        ]
    
    def test_serialize_roster(self, roster):
        rows = serialize_roster(roster)
        assert rows[0]["score"] == "0.81"
        assert rows[0]["risk"] == "High"
        assert rows[0]["split"] == "TEST"
        assert rows[0]["npi"] == "1457890123"
        assert rows[1]["score"] == "N/A"
        assert rows[1]["risk"] is None
    
    def test_answer(self, roster, ontology, fake_client):
        client = fake_client(["  **Dr. Sarah Chen** has 1 high-risk patient.  "])
        answer = AnalystQueryEngine(client).ask("Which doctor has the most high-risk patients?", roster, ontology)
        
        assert answer == "**Dr. Sarah Chen** has 1 high-risk patient."
        prompt, system = client.prompts[0]
        assert "Breast Cancer" in system
        assert '"Which doctor has the most high-risk patients?"' in prompt
    
    def test_error_answer(self, roster, ontology, fake_client):
        assert AnalystQueryEngine(fake_client(fail=True)).ask("q", roster, ontology) == ERROR_ANSWER
    
    def test_empty_answer(self, roster, ontology, fake_client):
        assert AnalystQueryEngine(fake_client(["   "])).ask("q", roster, ontology) == EMPTY_ANSWER


class TestGeminiClient:
    
    def test_mock_mode(self):
        client = GeminiClient(GeminiConfig(api_key="unused", use_mock=True))
        response = client.generate("hello world")
        
        assert not client.is_available
        assert response.is_mock
        assert not response.ok
        assert client.get_stats()["calls"] == 0
    
    def test_no_key_is_mock(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        client = GeminiClient(GeminiConfig(api_key="", use_mock=False))
        assert not client.is_available
        assert client.generate("x").is_mock
