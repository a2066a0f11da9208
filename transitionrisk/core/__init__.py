"""
Core pipeline: ingestion, cohort split, risk inference and validation.
"""
