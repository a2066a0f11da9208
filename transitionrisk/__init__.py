"""
Therapy Transition Risk Pipeline

Claims ingestion, cohort splitting, risk inference and validation metrics
for therapy line transition studies.
"""
__version__ = "0.1.0"
