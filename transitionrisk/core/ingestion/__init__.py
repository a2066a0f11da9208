"""
Ingestion Module

Resolves claims headers to canonical fields and normalizes rows into
Subject records.
"""
from .column_mapper import ColumnKeywords, ColumnMapping, resolve_columns, find_column_index, normalize_header
from .normalizer import (
    ProfileGenerator, SyntheticProfileGenerator, SubjectProfile,
    normalize_rows, parse_csv_text, split_row,
)
from .sample_data import generate_sample_cohort

__all__ = [
    "ColumnKeywords",
    "ColumnMapping",
    "resolve_columns",
    "find_column_index",
    "normalize_header",
    "ProfileGenerator",
    "SyntheticProfileGenerator",
    "SubjectProfile",
    "normalize_rows",
    "parse_csv_text",
    "split_row",
    "generate_sample_cohort",
]
