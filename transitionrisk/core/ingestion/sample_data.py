"""
Sample Cohort Generator

Seeded synthetic breast-cancer claims cohort for demos and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from transitionrisk.core.domain import Subject

SAMPLE_PROVIDERS = [
    ("Dr. Sarah Chen", "1457890123"),
    ("Dr. Michael Ross", "1890234567"),
    ("Dr. Emily Wei", "1678901234"),
    ("Dr. James Wilson", "1234567890"),
    ("Dr. Lisa Patel", "1567890123"),
]

# Visit dates fall within this many milliseconds before "today"
_VISIT_SPREAD_MS = 10_000_000_000


def generate_sample_cohort(
    n_subjects: int = 200,
    rng: Optional[np.random.Generator] = None,
    today: Optional[datetime] = None,
) -> List[Subject]:
    """
    Generate a synthetic cohort.
    
    Args:
        n_subjects: Number of subjects
        rng: Random source
        today: Reference date for visit dates
        
    Returns:
        Subjects with ids P-1000 onwards
    """
    rng = rng if rng is not None else np.random.default_rng()
    today = today or datetime.now(timezone.utc)
    
    subjects = []
    for i in range(n_subjects):
        name, npi = SAMPLE_PROVIDERS[int(rng.integers(0, len(SAMPLE_PROVIDERS)))]
        if rng.random() > 0.8:
            line = 2
        elif rng.random() > 0.9:
            line = 3
        else:
            line = 1
        visit = today - timedelta(milliseconds=int(rng.random() * _VISIT_SPREAD_MS))
        
        subjects.append(Subject(
            id=f"P-{1000 + i}",
            age=int(rng.integers(30, 85)),
            gender="F" if rng.random() > 0.5 else "M",
            diagnosis_code="C50.911",
            current_therapy_line=line,
            months_on_current_therapy=int(rng.integers(0, 24)),
            last_visit_date=visit.date().isoformat(),
            specialty="Oncology" if rng.random() > 0.3 else "Internal Medicine",
            drug_id="Tamoxifen" if rng.random() > 0.5 else "Letrozole",
            provider_name=name,
            provider_id=npi,
        ))
    return subjects
