"""
Tests for alternative scoring. The penalty weights are clinical policy and
are pinned here on purpose.
"""

import random

import pytest

from app.services.alternatives import scoring
from app.services.alternatives.equivalence import EquivalenceTable
from app.services.alternatives.models import AlternativeCandidate
from app.services.alternatives.scoring import AlternativeScorer, clamp_score, rank_candidates
from app.services.alternatives.suitability import OrganFunction, PatientFactors
from app.services.interactions.models import DrugRef, EvidenceLevel
from app.services.pharmacogenomics.adjuster import PhenotypeAdjuster
from app.services.pharmacogenomics.cpic_guidelines import GeneDrugTable, GuidelineRow
from app.services.pharmacogenomics.models import Phenotype


class TestScoringPolicy:
    """Pinned scoring constants"""

    def test_penalties(self):
        assert scoring.CONTRAINDICATED_PENALTY == 60
        assert scoring.MAJOR_PENALTY == 40
        assert scoring.MODERATE_PENALTY == 20
        assert scoring.MINOR_PENALTY == 5
        assert scoring.PGX_UNFAVORABLE_PENALTY == 15
        assert scoring.PATIENT_CONTRAINDICATION_PENALTY == 100

    def test_thresholds(self):
        assert scoring.RECOMMENDATION_THRESHOLD == 80
        assert scoring.NEUTRAL_EFFICACY_SCORE == 85
        assert (scoring.SCORE_FLOOR, scoring.SCORE_CEILING) == (0, 100)

    @pytest.mark.parametrize("value,expected", [(-20, 0), (0, 0), (55, 55), (100, 100), (150, 100)])
    def test_clamp(self, value, expected):
        assert clamp_score(value) == expected


class TestAlternativeScorer:
    """Test suite for AlternativeScorer.score"""

    @pytest.fixture
    def scorer(self, catalog):
        return AlternativeScorer(
            EquivalenceTable(catalog=catalog),
            PhenotypeAdjuster(GeneDrugTable(catalog=catalog)),
        )

    def test_clean_candidate(self, scorer, drug):
        result = scorer.score(drug("dabigatran"), drug("warfarin"), [], class_label="Oral anticoagulants")

        assert result.safety_score == 100
        assert result.efficacy_score == 85
        assert result.recommended is True
        assert result.adjustments == ()
        assert result.rationale == (
            "Dabigatran replaces Warfarin (Oral anticoagulants); no interactions with the "
            "current regimen and no unfavorable pharmacogenomic findings."
        )

    def test_worst_interaction_only(self, scorer, make_record, drug):
        """Test that only the worst interaction counts towards the penalty"""
        records = [
            make_record("apixaban", "aspirin", "major", "A"),
            make_record("apixaban", "ibuprofen", "moderate", "B"),
        ]

        result = scorer.score(drug("apixaban"), drug("warfarin"), records)

        assert result.safety_score == 60
        assert [a.points for a in result.adjustments] == [-40]
        assert result.adjustments[0].reason == "Major interaction with Aspirin"
        assert "safety driven by major interaction with Aspirin (-40)" in result.rationale

    @pytest.mark.parametrize("severity,expected", [
        ("contraindicated", 40),
        ("major", 60),
        ("moderate", 80),
        ("minor", 95),
    ])
    def test_severity_penalties(self, scorer, make_record, drug, severity, expected):
        records = [make_record("apixaban", "aspirin", severity, "A")]
        assert scorer.score(drug("apixaban"), drug("warfarin"), records).safety_score == expected

    def test_unrelated_records_ignored(self, scorer, make_record, drug):
        records = [make_record("warfarin", "aspirin", "major", "A")]
        assert scorer.score(drug("dabigatran"), drug("warfarin"), records).safety_score == 100

    def test_pharmacogenomic_penalty(self, scorer, drug):
        result = scorer.score(drug("pantoprazole"), drug("omeprazole"), [], {"CYP2C19": Phenotype.UM})

        assert result.safety_score == 85
        assert result.adjustments[0].points == -15
        assert any(c.url and "proton-pump-inhibitors" in c.url for c in result.citations)

    def test_intermediate_metabolizer_not_penalised(self, scorer, drug):
        result = scorer.score(drug("warfarin"), drug("apixaban"), [], {"CYP2C9": Phenotype.IM})
        assert result.safety_score == 100

    def test_non_actionable_not_penalised(self, scorer, drug):
        result = scorer.score(drug("aspirin"), drug("clopidogrel"), [], {"CYP2D6": Phenotype.PM})
        assert result.safety_score == 100

    def test_floor(self, catalog, make_record, drug):
        """Test that stacked penalties never push safety below zero"""
        rows = [
            GuidelineRow(gene, "apixaban", Phenotype.PM, "Avoid", EvidenceLevel.A)
            for gene in ("CYP2C9", "CYP2C19", "CYP2D6", "CYP3A4")
        ]
        scorer = AlternativeScorer(
            EquivalenceTable(catalog=catalog),
            PhenotypeAdjuster(GeneDrugTable(rows, catalog)),
        )
        profile = {gene: Phenotype.PM for gene in ("CYP2C9", "CYP2C19", "CYP2D6", "CYP3A4")}
        records = [make_record("apixaban", "aspirin", "contraindicated", "A")]

        result = scorer.score(drug("apixaban"), drug("warfarin"), records, profile)

        assert result.safety_score == 0
        assert len(result.adjustments) == 5

    def test_efficacy_ceiling(self, catalog):
        scorer = AlternativeScorer(EquivalenceTable({"wonderdrug": 150}, catalog))
        wonder = DrugRef(id="w-1", display_name="Wonderdrug", generic_name="wonderdrug")
        assert scorer.efficacy_score(wonder) == 100

    def test_neutral_efficacy(self, scorer):
        unknown = DrugRef(id="u-1", display_name="Unknown", generic_name="unknown")
        assert scorer.efficacy_score(unknown) == 85

    def test_interaction_citations(self, scorer, make_record, drug):
        record = make_record("apixaban", "aspirin", "major", "A", sources=("DRUGBANK", "LOCAL"))
        record = record.model_copy(update={"references": ("FDA label",)})

        result = scorer.score(drug("apixaban"), drug("warfarin"), [record])

        labels = [c.label for c in result.citations]
        assert labels == ["DRUGBANK, LOCAL: Apixaban + Aspirin (major)", "FDA label"]

    def test_allergy_contraindication_floors_safety(self, scorer, drug):
        """Test that a cross-reacting allergy drives safety to the floor and blocks the recommendation"""
        result = scorer.score(drug("naproxen"), drug("ibuprofen"), [], patient=PatientFactors(allergies=["NSAID"]))

        assert result.safety_score == 0
        assert result.recommended is False
        assert result.contraindications == ("Contraindicated due to nsaid allergy",)
        assert result.adjustments[-1].points == -100
        assert "contraindicated due to nsaid allergy (-100)" in result.rationale

    def test_dosage_notes_do_not_penalise(self, scorer, drug):
        patient = PatientFactors(hepatic_function=OrganFunction.IMPAIRED)

        result = scorer.score(drug("atorvastatin"), drug("simvastatin"), [], patient=patient)

        assert result.safety_score == 100
        assert result.dosage_adjustments == ("Caution with hepatic impairment",)
        assert result.recommended is True

    def test_monitoring_requirements(self, scorer, drug):
        assert scorer.score(drug("atorvastatin"), drug("simvastatin"), []).monitoring_requirements == (
            "Lipid panel", "Liver function",
        )
        assert scorer.score(drug("rosuvastatin"), drug("simvastatin"), []).monitoring_requirements == (
            "Clinical response", "Adverse effects",
        )


class TestRecommended:
    """Test suite for the recommendation threshold"""

    def _candidate(self, drug, safety, efficacy):
        return AlternativeCandidate(
            drug=drug("apixaban"), for_drug=drug("warfarin"),
            safety_score=safety, efficacy_score=efficacy, rationale="",
        )

    def test_both_at_threshold(self, drug):
        assert self._candidate(drug, 80, 80).recommended is True

    def test_below_threshold(self, drug):
        assert self._candidate(drug, 79, 100).recommended is False
        assert self._candidate(drug, 100, 79).recommended is False

    def test_contraindicated_never_recommended(self, drug):
        candidate = self._candidate(drug, 100, 100).model_copy(update={"contraindications": ("Avoid",)})
        assert candidate.recommended is False

    def test_score_bounds(self, drug):
        with pytest.raises(ValueError):
            self._candidate(drug, 101, 80)


class TestRankCandidates:
    """Test suite for deterministic ranking"""

    def _candidate(self, drug, name, target, safety, efficacy):
        return AlternativeCandidate(
            drug=drug(name), for_drug=drug(target),
            safety_score=safety, efficacy_score=efficacy, rationale="",
        )

    def test_order(self, drug):
        candidates = [
            self._candidate(drug, "apixaban", "warfarin", 60, 95),
            self._candidate(drug, "edoxaban", "warfarin", 100, 85),
            self._candidate(drug, "dabigatran", "warfarin", 100, 85),
            self._candidate(drug, "esomeprazole", "omeprazole", 100, 90),
        ]

        ranked = rank_candidates(candidates)

        assert [c.drug.generic_name for c in ranked] == ["esomeprazole", "dabigatran", "edoxaban", "apixaban"]

    def test_input_order_irrelevant(self, drug):
        candidates = [
            self._candidate(drug, "apixaban", "warfarin", 60, 95),
            self._candidate(drug, "rivaroxaban", "warfarin", 60, 90),
            self._candidate(drug, "prasugrel", "clopidogrel", 100, 90),
            self._candidate(drug, "ticagrelor", "clopidogrel", 100, 95),
            self._candidate(drug, "naproxen", "ibuprofen", 80, 85),
        ]
        expected = rank_candidates(candidates)

        shuffled = list(candidates)
        random.Random(7).shuffle(shuffled)

        assert rank_candidates(shuffled) == expected
