"""
Cohort Module

Eligibility, TRAIN/TEST partitioning, disease presets and cohort profiling.
"""
from .split import CohortSplit, split_cohort, is_eligible, split_index, MIN_MONTHS_ON_THERAPY
from .presets import DiseasePreset, find_preset, build_cohort_config, load_presets
from .profiling import CohortProfile, profile_cohort

__all__ = [
    "CohortSplit",
    "split_cohort",
    "is_eligible",
    "split_index",
    "MIN_MONTHS_ON_THERAPY",
    "DiseasePreset",
    "find_preset",
    "build_cohort_config",
    "load_presets",
    "CohortProfile",
    "profile_cohort",
]
