"""
Configuration Management for the Transition Risk Pipeline

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List, Dict, Any
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from functools import lru_cache


DEFAULT_COLUMN_KEYWORDS: Dict[str, List[str]] = {
    "id": ["patient", "member", "subject", "bene", "subscriber", "mrn", "id", "pid", "pat"],
    "diagnosis": ["diagnosis", "dx", "icd", "diag", "condition", "problem"],
    "prescription": ["drug", "rx", "ndc", "medication", "product", "pharmacy"],
    "procedure": ["cpt", "hcpcs", "procedure", "proc", "px", "service", "code"],
    "date": ["date", "dos", "time", "day", "dt", "service", "admit"],
}

DEFAULT_DISEASE_PRESETS: List[Dict[str, Any]] = [
    {"disease_name": "Breast Cancer", "default_lookback_months": 12,
     "default_prediction_window_months": 6, "default_min_claims": 2},
    {"disease_name": "Diabetes", "default_lookback_months": 24,
     "default_prediction_window_months": 12, "default_min_claims": 4},
    {"disease_name": "Lung Cancer", "default_lookback_months": 6,
     "default_prediction_window_months": 3, "default_min_claims": 1},
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env file
    )
    
    # Application
    app_name: str = "Therapy Transition Risk Pipeline"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root level for package loggers")
    
    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]
    
    # LLM Configuration
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    gemini_model: str = "gemini-2.5-flash"
    use_mock_llm: bool = Field(default=True, description="Use mock LLM for testing")
    llm_temperature: float = 0.2
    llm_timeout_seconds: int = Field(default=30, description="Per-call timeout; a timeout counts as a transport failure")
    llm_max_retries: int = 0
    
    # Inference
    inference_batch_size: int = Field(default=30, description="Max subjects sent to the reasoning engine per run")
    default_random_seed: Optional[int] = Field(default=None, description="Seed used when a run does not supply one")
    
    # Ingestion
    column_keywords: Dict[str, List[str]] = Field(default_factory=lambda: {
        k: list(v) for k, v in DEFAULT_COLUMN_KEYWORDS.items()
    })
    disease_presets: List[Dict[str, Any]] = Field(default_factory=lambda: [
        dict(p) for p in DEFAULT_DISEASE_PRESETS
    ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
