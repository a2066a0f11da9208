"""
Column Mapper

Resolves raw claims headers to the canonical fields the normalizer needs,
using configurable synonym keywords per field.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import re

from transitionrisk.config import settings
from transitionrisk.core.errors import ColumnMappingError, MissingColumn
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class ColumnKeywords:
    """Ordered synonym keywords for each canonical column category."""
    id: List[str] = field(default_factory=list)
    diagnosis: List[str] = field(default_factory=list)
    prescription: List[str] = field(default_factory=list)
    procedure: List[str] = field(default_factory=list)
    date: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Sequence[str]]) -> "ColumnKeywords":
        return cls(**{name: list(data.get(name, [])) for name in cls.__dataclass_fields__})

    @classmethod
    def default(cls) -> "ColumnKeywords":
        """Keywords from settings (env-overridable)."""
        return cls.from_dict(settings.column_keywords)


@dataclass(frozen=True)
class ColumnMapping:
    """Resolved header index for each required canonical field."""
    id: int
    diagnosis: int
    prescription: int
    date: int
    drug_source: str = "prescription"  # or "procedure"

    @property
    def max_index(self) -> int:
        return max(self.id, self.diagnosis, self.prescription, self.date)

    def as_dict(self) -> Dict[str, int]:
        return {
            "id": self.id,
            "diagnosis": self.diagnosis,
            "prescription": self.prescription,
            "date": self.date,
        }


def normalize_header(text: str) -> str:
    """Lowercase and strip every non-alphanumeric character."""
    return _NON_ALNUM.sub("", text.lower())


def find_column_index(headers: Sequence[str], keywords: Sequence[str]) -> Optional[int]:
    """
    Find the header matching any keyword.
    
    Tiers are tried in order across all keywords: exact match, prefix match,
    substring match. Returns None when nothing matches.
    """
    normalized = [normalize_header(h) for h in headers]
    terms = [k for k in (normalize_header(k) for k in keywords) if k]
    
    tiers = (
        lambda h, k: h == k,
        lambda h, k: h.startswith(k),
        lambda h, k: k in h,
    )
    for matches in tiers:
        for keyword in terms:
            for idx, header in enumerate(normalized):
                if matches(header, keyword):
                    return idx
    return None


def resolve_columns(headers: Sequence[str], keywords: Optional[ColumnKeywords] = None) -> ColumnMapping:
    """
    Resolve id, diagnosis, drug and date columns.
    
    The drug column is searched with the prescription keywords first and
    then the procedure keywords, since oncology claims often carry therapy
    as a procedure code.
    
    Raises:
        ColumnMappingError: listing every unresolved field with its first
            three keywords. No partial mapping is returned.
    """
    keywords = keywords or ColumnKeywords.default()
    
    id_idx = find_column_index(headers, keywords.id)
    dx_idx = find_column_index(headers, keywords.diagnosis)
    rx_idx = find_column_index(headers, keywords.prescription)
    drug_source = "prescription"
    if rx_idx is None:
        rx_idx = find_column_index(headers, keywords.procedure)
        drug_source = "procedure"
    date_idx = find_column_index(headers, keywords.date)
    
    missing = []
    if id_idx is None:
        missing.append(MissingColumn("id", "Patient ID", keywords.id[:3]))
    if dx_idx is None:
        missing.append(MissingColumn("diagnosis", "Diagnosis", keywords.diagnosis[:3]))
    if rx_idx is None:
        missing.append(MissingColumn("drug", "Drug/Procedure", keywords.prescription[:3]))
    if date_idx is None:
        missing.append(MissingColumn("date", "Date", keywords.date[:3]))
    
    if missing:
        logger.warning(f"Column mapping failed for {[m.field for m in missing]} (headers={list(headers)})")
        raise ColumnMappingError(missing)
    
    return ColumnMapping(
        id=id_idx,
        diagnosis=dx_idx,
        prescription=rx_idx,
        date=date_idx,
        drug_source=drug_source,
    )
