"""
Unit Tests for Ingestion Module

Tests for column mapping, row normalization and the sample cohort.
"""
import pytest
import numpy as np

from transitionrisk.core.errors import ColumnMappingError
from transitionrisk.core.ingestion import (
    ColumnKeywords, ProfileGenerator, SubjectProfile, SyntheticProfileGenerator,
    find_column_index, generate_sample_cohort, normalize_header, normalize_rows,
    parse_csv_text, resolve_columns, split_row,
)
from transitionrisk.core.ingestion.column_mapper import ColumnMapping


@pytest.fixture
def keywords() -> ColumnKeywords:
    return ColumnKeywords.default()


class TestColumnMapper:
    """Tests for header resolution."""
    
    def test_normalize_header(self):
        assert normalize_header(" Patient_ID ") == "patientid"
        assert normalize_header("ICD-10 Code") == "icd10code"
    
    def test_resolves_claims_headers(self, keywords):
        mapping = resolve_columns(["Patient_ID", "ICD10", "NDC", "DOS"], keywords)
        assert mapping.as_dict() == {"id": 0, "diagnosis": 1, "prescription": 2, "date": 3}
        assert mapping.drug_source == "prescription"
    
    def test_exact_match_beats_earlier_prefix_match(self):
        # "pat" prefix-matches column 0, but "member" matches column 1 exactly
        assert find_column_index(["pat_id_x", "Member"], ["patient", "member", "pat"]) == 1
    
    def test_prefix_tier_before_substring_tier(self):
        assert find_column_index(["claim_dx", "dx_primary"], ["dx"]) == 1
    
    def test_substring_match(self):
        assert find_column_index(["primary_icd_code"], ["icd"]) == 0
    
    def test_unresolved_returns_none(self):
        assert find_column_index(["amount"], ["drug", "rx"]) is None
    
    def test_procedure_fallback_for_drug(self, keywords):
        mapping = resolve_columns(["member_id", "dx_code", "cpt_code", "service_date"], keywords)
        assert mapping.prescription == 2
        assert mapping.drug_source == "procedure"
        assert mapping.id == 0
        assert mapping.diagnosis == 1
        assert mapping.date == 3
    
    def test_failure_lists_every_missing_field(self, keywords):
        with pytest.raises(ColumnMappingError) as exc_info:
            resolve_columns(["Patient_ID", "Amount"], keywords)
        
        err = exc_info.value
        assert err.fields == ["diagnosis", "drug", "date"]
        assert err.missing[0].keywords == ["diagnosis", "dx", "icd"]
        assert err.missing[1].keywords == ["drug", "rx", "ndc"]
        assert "Drug/Procedure" in str(err)
    
    def test_failure_with_no_headers(self, keywords):
        with pytest.raises(ColumnMappingError) as exc_info:
            resolve_columns([], keywords)
        assert exc_info.value.fields == ["id", "diagnosis", "drug", "date"]
        assert exc_info.value.missing[0].keywords == ["patient", "member", "subject"]
    
    def test_resolution_is_idempotent(self, keywords):
        headers = ["Member Number", "Primary Dx", "Rx Name", "Fill Date"]
        assert resolve_columns(headers, keywords) == resolve_columns(headers, keywords)
    
    def test_custom_keywords_are_normalized(self):
        keywords = ColumnKeywords(
            id=["Enrollee ID"], diagnosis=["Dx"], prescription=["Therapy"],
            procedure=[], date=["Claim Date"],
        )
        mapping = resolve_columns(["enrollee_id", "dx", "therapy", "claim_date"], keywords)
        assert mapping.as_dict() == {"id": 0, "diagnosis": 1, "prescription": 2, "date": 3}


class TestSplitRow:
    
    def test_quoted_comma_kept(self):
        assert split_row('A1,"Letrozole, 2.5mg",2024-01-01') == ["A1", "Letrozole, 2.5mg", "2024-01-01"]
    
    def test_values_trimmed(self):
        assert split_row(' A1 , C50 ,"x" ') == ["A1", "C50", "x"]


class FixedProfileGenerator(ProfileGenerator):
    def generate(self, values, rng):
        return SubjectProfile(
            age=70, gender="F", current_therapy_line=2, months_on_current_therapy=9,
            specialty="Hematology", provider_name="Dr. Real", provider_id="1112223334",
        )


class TestNormalizer:
    
    @pytest.fixture
    def mapping(self) -> ColumnMapping:
        return ColumnMapping(id=0, diagnosis=1, prescription=2, date=3)
    
    def test_placeholders_and_defaults(self, mapping, rng):
        rows = [
            "A1,C50.911,Tamoxifen,2024-01-01",
            "",
            ',C50.1,"Letrozole, 2.5mg",2024-02-01',
            "A3,,,",
        ]
        subjects = normalize_rows(rows, mapping, rng=rng, now="2025-01-01T00:00:00+00:00")
        
        assert [s.id for s in subjects] == ["A1", "P-1001", "A3"]
        assert subjects[1].drug_id == "Letrozole, 2.5mg"
        assert subjects[2].diagnosis_code == "Unknown"
        assert subjects[2].drug_id == "Unknown"
        assert subjects[2].last_visit_date == "2025-01-01T00:00:00+00:00"
    
    def test_short_rows_dropped(self, mapping, rng):
        subjects = normalize_rows(["A1,C50,Tamoxifen,2024-01-01", "A2,C50", "A3,C50,X"], mapping, rng=rng)
        assert [s.id for s in subjects] == ["A1"]
    
    def test_synthetic_profile_ranges(self, mapping, rng):
        rows = [f"A{i},C50,Tamoxifen,2024-01-01" for i in range(300)]
        subjects = normalize_rows(rows, mapping, rng=rng)
        
        assert all(30 <= s.age <= 84 for s in subjects)
        assert all(0 <= s.months_on_current_therapy <= 23 for s in subjects)
        assert {s.current_therapy_line for s in subjects} == {1, 2}
        assert {s.gender for s in subjects} == {"F", "M"}
        assert all(s.specialty == "Oncology" for s in subjects)
        assert all(s.provider_id == "9999999999" for s in subjects)
    
    def test_generator_is_replaceable(self, mapping, rng):
        subjects = normalize_rows(["A1,C50,Tamoxifen,2024-01-01"], mapping,
                                  generator=FixedProfileGenerator(), rng=rng)
        assert subjects[0].provider_name == "Dr. Real"
        assert subjects[0].months_on_current_therapy == 9
    
    def test_seeded_generation_is_reproducible(self, mapping):
        rows = [f"A{i},C50,Tamoxifen,2024-01-01" for i in range(20)]
        first = normalize_rows(rows, mapping, rng=np.random.default_rng(3), now="t")
        second = normalize_rows(rows, mapping, rng=np.random.default_rng(3), now="t")
        assert first == second


class TestParseCsvText:
    
    def test_parses_with_bom_header(self, keywords, rng):
        text = "\ufeffPatient_ID,ICD10,NDC,DOS\nA1,C50.911,Tamoxifen,2024-01-01\nA2,C50.912,Letrozole,2024-01-02\n"
        subjects = parse_csv_text(text, keywords, rng=rng)
        assert [s.id for s in subjects] == ["A1", "A2"]
        assert subjects[1].drug_id == "Letrozole"
    
    def test_header_only(self, keywords, rng):
        assert parse_csv_text("Patient_ID,ICD10,NDC,DOS\n", keywords, rng=rng) == []
    
    def test_empty_text_fails_mapping(self, keywords):
        with pytest.raises(ColumnMappingError):
            parse_csv_text("", keywords)


class TestSampleCohort:
    
    def test_sample_cohort_shape(self, rng):
        subjects = generate_sample_cohort(200, rng)
        assert len(subjects) == 200
        assert subjects[0].id == "P-1000"
        assert subjects[-1].id == "P-1199"
        assert {s.drug_id for s in subjects} <= {"Tamoxifen", "Letrozole"}
        assert {s.current_therapy_line for s in subjects} <= {1, 2, 3}
        assert all(s.diagnosis_code == "C50.911" for s in subjects)
    
    def test_sample_cohort_seeded(self):
        a = generate_sample_cohort(10, np.random.default_rng(1))
        b = generate_sample_cohort(10, np.random.default_rng(1))
        assert [s.provider_name for s in a] == [s.provider_name for s in b]
