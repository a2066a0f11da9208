"""
Pipeline Exceptions

Column resolution is the only failure that reaches callers; the inference
errors below are caught at the adapter boundary and turned into fallbacks.
"""
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class MissingColumn:
    """A canonical field that could not be mapped to any header."""
    field: str
    label: str
    keywords: List[str] = field(default_factory=list)

    def describe(self) -> str:
        return f"{self.label} (keywords: {', '.join(self.keywords)}...)"

    def to_dict(self):
        return {"field": self.field, "label": self.label, "keywords": list(self.keywords)}


class IngestionError(Exception):
    """Base class for ingestion failures."""


class ColumnMappingError(IngestionError):
    """Raised when required canonical columns cannot be resolved from the headers."""

    def __init__(self, missing: List[MissingColumn]):
        self.missing = list(missing)
        lines = "\n".join(m.describe() for m in self.missing)
        super().__init__(f"Could not identify columns for:\n{lines}")

    @property
    def fields(self) -> List[str]:
        return [m.field for m in self.missing]

    def to_dict(self):
        return {"error": "column_mapping", "missing": [m.to_dict() for m in self.missing]}


class InferenceUnavailableError(Exception):
    """The reasoning engine could not be reached or returned an unusable payload."""
