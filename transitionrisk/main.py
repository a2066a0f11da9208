"""
Transition Risk Pipeline - FastAPI Application

Thin HTTP surface over AnalysisService:
- Claims ingestion and column mapping
- Ontology resolution
- Cohort configuration, risk inference and validation metrics
- Analyst questions over a scored roster
Nothing is persisted between requests.
"""
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
load_dotenv()

from transitionrisk.config import settings
from transitionrisk.core.cohort import profile_cohort
from transitionrisk.core.errors import ColumnMappingError
from transitionrisk.models.analysis import (
    AnalysisRequest, AnalysisResponse, ConfigureRequest, HealthResponse, IngestRequest,
    IngestResponse, OntologyRequest, QueryRequest, QueryResponse, SubjectModel,
)
from transitionrisk.core.domain import CohortConfig, OntologyMapping
from transitionrisk.services.analysis import AnalysisService
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

# ---- FastAPI Application ----

app = FastAPI(
    title="Therapy Transition Risk API",
    description="Claims ingestion, cohort split, risk inference and validation",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[AnalysisService] = None


def get_service() -> AnalysisService:
    """Lazily built service so tests can swap it before the first request."""
    global _service
    if _service is None:
        _service = AnalysisService()
    return _service


def set_service(service: Optional[AnalysisService]) -> None:
    global _service
    _service = service


# ---- API Endpoints ----

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        components={
            "api": "healthy",
            "inference": "mock" if settings.use_mock_llm else "ready",
        }
    )


@app.post(f"{settings.api_prefix}/ingest", response_model=IngestResponse, tags=["Ingestion"])
async def ingest(request: IngestRequest):
    """
    Map and normalize a claims extract.
    
    Returns 422 with every unresolved column when mapping fails.
    """
    try:
        subjects = get_service().ingest(request.content, seed=request.seed)
    except ColumnMappingError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    
    return IngestResponse(
        count=len(subjects),
        subjects=[SubjectModel.from_subject(s) for s in subjects],
        profile=profile_cohort(subjects).to_dict(),
    )


@app.get(f"{settings.api_prefix}/sample", response_model=IngestResponse, tags=["Ingestion"])
async def sample_cohort(
    n: int = Query(default=200, ge=1, le=5000),
    seed: Optional[int] = None,
):
    """Synthetic demonstration cohort."""
    subjects = get_service().sample(n, seed=seed)
    return IngestResponse(
        count=len(subjects),
        subjects=[SubjectModel.from_subject(s) for s in subjects],
        profile=profile_cohort(subjects).to_dict(),
    )


@app.post(f"{settings.api_prefix}/ontology", response_model=OntologyMapping, tags=["Ontology"])
async def resolve_ontology(request: OntologyRequest):
    """Resolve a research query; falls back to the default mapping."""
    return await get_service().resolve_ontology(request.query)


@app.post(f"{settings.api_prefix}/configure", response_model=CohortConfig, tags=["Analysis"])
async def configure(request: ConfigureRequest):
    """Preset-derived cohort configuration."""
    subjects = [s.to_subject() for s in request.subjects]
    try:
        return get_service().configure(request.ontology, subjects, **request.overrides)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post(f"{settings.api_prefix}/analysis", response_model=AnalysisResponse, tags=["Analysis"])
async def run_analysis(request: AnalysisRequest):
    """Split, score and validate a cohort."""
    service = get_service()
    subjects = [s.to_subject() for s in request.subjects]
    config = request.config or service.configure(request.ontology, subjects)
    
    run = await service.run_analysis(subjects, request.ontology, config, seed=request.seed)
    return AnalysisResponse(
        run_id=run.run_id,
        seed=run.seed,
        timestamp=run.timestamp,
        ontology=run.ontology,
        config=run.config,
        subjects=[SubjectModel.from_subject(s) for s in run.subjects],
        inference=run.inference.to_dict(),
        metrics=run.metrics.to_dict(),
        summary=run.summary.to_dict(),
        profile=run.profile.to_dict(),
    )


@app.post(f"{settings.api_prefix}/query", response_model=QueryResponse, tags=["Analysis"])
async def ask_question(request: QueryRequest):
    """Free-text question over a scored roster."""
    subjects = [s.to_subject() for s in request.subjects]
    answer = await get_service().ask(request.question, subjects, request.ontology)
    return QueryResponse(answer=answer)


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
