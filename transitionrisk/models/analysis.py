"""
Analysis API Models
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, Any, List, Optional

from transitionrisk.core.domain import CohortConfig, OntologyMapping, RiskCategory, Split, Subject


class SubjectModel(BaseModel):
    """Canonical subject record on the wire (camelCase)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    
    id: str
    age: int
    gender: str
    diagnosis_code: str
    current_therapy_line: int = Field(..., ge=1)
    months_on_current_therapy: int = Field(..., ge=0)
    last_visit_date: str
    specialty: str
    drug_id: str
    provider_name: str
    provider_id: str
    risk_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    risk_category: Optional[RiskCategory] = None
    split: Optional[Split] = None
    actual_outcome: Optional[bool] = None
    
    def to_subject(self) -> Subject:
        return Subject(**self.model_dump())
    
    @classmethod
    def from_subject(cls, subject: Subject) -> "SubjectModel":
        return cls.model_validate(subject.to_dict())


class IngestRequest(BaseModel):
    """Claims extract with a header row."""
    content: str = Field(..., description="Delimited text, first line is the header")
    seed: Optional[int] = None


class IngestResponse(BaseModel):
    count: int
    subjects: List[SubjectModel]
    profile: Dict[str, Any]


class OntologyRequest(BaseModel):
    query: str = Field(..., description="Free-text research question")


class ConfigureRequest(BaseModel):
    ontology: OntologyMapping
    subjects: List[SubjectModel] = Field(default_factory=list)
    overrides: Dict[str, Any] = Field(default_factory=dict)


class AnalysisRequest(BaseModel):
    subjects: List[SubjectModel]
    ontology: OntologyMapping
    config: Optional[CohortConfig] = Field(default=None, description="Preset-derived config when omitted")
    seed: Optional[int] = None


class AnalysisResponse(BaseModel):
    run_id: str
    seed: int
    timestamp: str
    ontology: OntologyMapping
    config: CohortConfig
    subjects: List[SubjectModel]
    inference: Dict[str, Any]
    metrics: Dict[str, Any]
    summary: Dict[str, Any]
    profile: Dict[str, Any]
    status: str = "success"


class QueryRequest(BaseModel):
    question: str
    subjects: List[SubjectModel]
    ontology: OntologyMapping


class QueryResponse(BaseModel):
    answer: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    components: Dict[str, str]
