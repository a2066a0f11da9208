from .analysis import AnalysisService, AnalysisRun, make_rng

__all__ = ["AnalysisService", "AnalysisRun", "make_rng"]
