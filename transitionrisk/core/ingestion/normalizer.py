"""
Record Normalizer

Parses delimited claims rows into canonical Subject records using a resolved
ColumnMapping. Fields the claims extract does not carry (demographics,
therapy line, provider) come from a replaceable ProfileGenerator.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import re

import numpy as np

from transitionrisk.core.domain import Subject
from transitionrisk.core.ingestion.column_mapper import ColumnKeywords, ColumnMapping, resolve_columns
from transitionrisk.utils import get_logger

logger = get_logger(__name__)

# Commas followed by an even number of quotes are outside a quoted value
_FIELD_SPLIT = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')
_OUTER_QUOTES = re.compile(r'^"|"$')

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class SubjectProfile:
    """Demographic and clinical fields not present in the claims extract."""
    age: int
    gender: str
    current_therapy_line: int
    months_on_current_therapy: int
    specialty: str
    provider_name: str
    provider_id: str


class ProfileGenerator(ABC):
    """Supplies the profile fields for one parsed row."""
    
    @abstractmethod
    def generate(self, values: Sequence[str], rng: np.random.Generator) -> SubjectProfile:
        """
        Produce profile fields for a row.
        
        Args:
            values: The row's split values, for generators that read real columns
            rng: Random source for synthetic policies
        """
        pass


class SyntheticProfileGenerator(ProfileGenerator):
    """
    Demonstration policy: age 30-84, binary gender, therapy line weighted
    toward first line, 0-23 months on therapy, fixed oncology provider.
    """
    
    def __init__(
        self,
        specialty: str = "Oncology",
        provider_name: str = "External Provider",
        provider_id: str = "9999999999",
    ):
        self.specialty = specialty
        self.provider_name = provider_name
        self.provider_id = provider_id
    
    def generate(self, values: Sequence[str], rng: np.random.Generator) -> SubjectProfile:
        return SubjectProfile(
            age=int(rng.integers(30, 85)),
            gender="F" if rng.random() > 0.5 else "M",
            current_therapy_line=2 if rng.random() > 0.7 else 1,
            months_on_current_therapy=int(rng.integers(0, 24)),
            specialty=self.specialty,
            provider_name=self.provider_name,
            provider_id=self.provider_id,
        )


def split_row(line: str) -> List[str]:
    """Split on commas outside quote pairs, trim, and drop one outer quote on each side."""
    return [_OUTER_QUOTES.sub("", v.strip()) for v in _FIELD_SPLIT.split(line)]


def normalize_rows(
    rows: Sequence[str],
    mapping: ColumnMapping,
    generator: Optional[ProfileGenerator] = None,
    rng: Optional[np.random.Generator] = None,
    now: Optional[str] = None,
) -> List[Subject]:
    """
    Convert raw data lines (header excluded) into Subjects.
    
    Blank lines are skipped before rows are numbered. Rows too short to
    contain every mapped column are dropped; the rest are kept.
    
    Args:
        rows: Raw text lines
        mapping: Resolved column indexes
        generator: Profile policy, synthetic by default
        rng: Random source for the profile policy
        now: Timestamp used for rows without a date
    """
    generator = generator or SyntheticProfileGenerator()
    rng = rng if rng is not None else np.random.default_rng()
    now = now or datetime.now(timezone.utc).isoformat()
    
    subjects = []
    dropped = 0
    lines = [line for line in rows if line.strip()]
    for i, line in enumerate(lines):
        values = split_row(line)
        if len(values) <= mapping.max_index:
            dropped += 1
            logger.debug(f"Dropping row {i}: {len(values)} values, need {mapping.max_index + 1}")
            continue
        
        profile = generator.generate(values, rng)
        subjects.append(Subject(
            id=values[mapping.id] or f"P-{1000 + i}",
            age=profile.age,
            gender=profile.gender,
            diagnosis_code=values[mapping.diagnosis] or UNKNOWN,
            current_therapy_line=profile.current_therapy_line,
            months_on_current_therapy=profile.months_on_current_therapy,
            last_visit_date=values[mapping.date] or now,
            specialty=profile.specialty,
            drug_id=values[mapping.prescription] or UNKNOWN,
            provider_name=profile.provider_name,
            provider_id=profile.provider_id,
        ))
    
    if dropped:
        logger.info(f"Normalized {len(subjects)} rows, dropped {dropped} short rows")
    return subjects


def parse_csv_text(
    text: str,
    keywords: Optional[ColumnKeywords] = None,
    generator: Optional[ProfileGenerator] = None,
    rng: Optional[np.random.Generator] = None,
    now: Optional[str] = None,
) -> List[Subject]:
    """
    Ingest a claims extract with a header row.
    
    Raises:
        ColumnMappingError: if required columns cannot be resolved
    """
    lines = text.splitlines()
    header_line = lines[0].lstrip("\ufeff") if lines else ""
    headers = [h.strip() for h in header_line.split(",")] if header_line.strip() else []
    
    mapping = resolve_columns(headers, keywords)
    logger.info(f"Resolved columns {mapping.as_dict()} (drug from {mapping.drug_source})")
    return normalize_rows(lines[1:], mapping, generator=generator, rng=rng, now=now)
