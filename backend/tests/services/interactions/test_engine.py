"""
End-to-end tests for the interaction engine over the curated store, with
scripted external sources where provenance matters.
"""

import pytest

from app.services.alternatives.suitability import PatientFactors
from app.services.interactions.adapters import LocalCuratedStoreAdapter
from app.services.interactions.config import InteractionEngineConfig
from app.services.interactions.engine import create_interaction_engine
from app.services.interactions.errors import SourceUnavailableError, ValidationCode, ValidationError
from app.services.interactions.models import DrugRef, Severity


class TestCheckInteractions:
    """Test suite for InteractionEngine.check_interactions"""

    @pytest.mark.asyncio
    async def test_warfarin_aspirin(self, engine):
        """Test the classic anticoagulant plus antiplatelet combination"""
        response = await engine.check_interactions(["11289", "1191"])

        assert response.pair_count == 1
        assert response.interaction_count == 1
        assert response.highest_severity == Severity.MAJOR
        (record,) = response.interactions.stored
        assert record.severity == Severity.MAJOR
        assert record.effect == "Increased bleeding risk"
        assert response.sources.stored == 1
        assert response.sources.external == 0
        assert response.unavailable_sources == []

    @pytest.mark.asyncio
    async def test_names_and_ids_equivalent(self, engine):
        by_id = await engine.check_interactions(["11289", "1191"])
        by_name = await engine.check_interactions(["Warfarin", "aspirin"])
        assert by_name.pairs == by_id.pairs

    @pytest.mark.asyncio
    async def test_ibuprofen_aspirin(self, engine):
        response = await engine.check_interactions(["5640", "1191"])

        (record,) = response.pairs
        assert record.severity == Severity.MODERATE
        assert "antiplatelet" in record.mechanism

    @pytest.mark.asyncio
    async def test_order_does_not_matter(self, engine):
        """Test that check(a, b) and check(b, a) give identical records"""
        forward = await engine.check_interactions(["warfarin", "aspirin", "ibuprofen"])
        reverse = await engine.check_interactions(["ibuprofen", "aspirin", "warfarin"])

        assert forward.pairs == reverse.pairs
        assert forward.highest_severity == reverse.highest_severity

    @pytest.mark.asyncio
    async def test_single_drug_rejected(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            await engine.check_interactions(["161"])
        assert exc_info.value.code == ValidationCode.TOO_FEW_DRUGS

    @pytest.mark.asyncio
    async def test_repeated_drug_rejected(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            await engine.check_interactions(["161", " 161 "])
        assert exc_info.value.code == ValidationCode.TOO_FEW_DRUGS

    @pytest.mark.asyncio
    async def test_too_many_drugs_rejected(self, engine):
        drugs = [str(1000 + i) for i in range(11)]
        with pytest.raises(ValidationError) as exc_info:
            await engine.check_interactions(drugs)
        assert exc_info.value.code == ValidationCode.TOO_MANY_DRUGS

    @pytest.mark.asyncio
    async def test_maximum_drug_count(self, engine):
        drugs = ["warfarin", "aspirin", "ibuprofen", "naproxen", "diclofenac",
                 "celecoxib", "amiodarone", "fluconazole", "acetaminophen", "amoxicillin"]

        response = await engine.check_interactions(drugs)

        assert response.pair_count == 45
        assert response.highest_severity == Severity.MAJOR
        ranks = [r.severity.rank for r in response.pairs]
        assert ranks == sorted(ranks, reverse=True)

    @pytest.mark.asyncio
    async def test_no_interactions(self, engine):
        response = await engine.check_interactions(["metformin", "amoxicillin"])
        assert response.interaction_count == 0
        assert response.highest_severity is None
        assert response.source_counts == {}

    @pytest.mark.asyncio
    async def test_unresolved_ids_listed(self, engine):
        """Test that unknown drugs degrade instead of failing the request"""
        response = await engine.check_interactions(["11289", "999999"])

        assert response.unresolved_drugs == ["999999"]
        assert response.pair_count == 1
        assert response.interaction_count == 0

    @pytest.mark.asyncio
    async def test_phenotype_annotations_reported_separately(self, engine):
        """Test that phenotypes annotate drugs without changing severity"""
        plain = await engine.check_interactions(["clopidogrel", "omeprazole"])
        annotated = await engine.check_interactions(
            ["clopidogrel", "omeprazole"], {"cyp2c19": "Poor Metabolizer"}
        )

        assert annotated.pairs == plain.pairs
        (annotation,) = annotated.phenotype_annotations["32968"]
        assert annotation.gene == "CYP2C19"
        assert annotation.unfavorable is True
        assert "7646" not in annotated.phenotype_annotations

    @pytest.mark.asyncio
    async def test_unknown_phenotype_rejected(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            await engine.check_interactions(["warfarin", "aspirin"], {"CYP2C9": "sluggish"})
        assert exc_info.value.code == ValidationCode.UNKNOWN_PHENOTYPE


class TestCheckWithExternalSources:
    """Test suite for provenance across curated and external sources"""

    @pytest.mark.asyncio
    async def test_provenance_union(self, offline_config, fake_adapter, make_record):
        external = fake_adapter("DRUGBANK", [
            make_record("warfarin", "aspirin", "moderate", None, sources=("DRUGBANK",), effect="external"),
        ])
        engine = create_interaction_engine(offline_config, adapters=[LocalCuratedStoreAdapter(), external])

        response = await engine.check_interactions(["warfarin", "aspirin"])

        (record,) = response.pairs
        assert record.severity == Severity.MAJOR
        assert record.effect == "Increased bleeding risk"
        assert record.sources == ("DRUGBANK", "LOCAL")
        assert response.interactions.stored == [record]
        assert response.interactions.external == [record]
        assert response.source_counts == {"DRUGBANK": 1, "LOCAL": 1}

    @pytest.mark.asyncio
    async def test_external_only_finding(self, offline_config, fake_adapter, make_record):
        external = fake_adapter("ONCHIGH", [
            make_record("metformin", "amoxicillin", "minor", None, sources=("ONCHIGH",)),
        ])
        engine = create_interaction_engine(offline_config, adapters=[LocalCuratedStoreAdapter(), external])

        response = await engine.check_interactions(["metformin", "amoxicillin"])

        assert response.sources.stored == 0
        assert response.sources.external == 1

    @pytest.mark.asyncio
    async def test_failed_source_listed(self, offline_config, fake_adapter):
        failing = fake_adapter("RXNAV", error=SourceUnavailableError("RXNAV", "HTTP 503"))
        engine = create_interaction_engine(offline_config, adapters=[LocalCuratedStoreAdapter(), failing])

        response = await engine.check_interactions(["warfarin", "aspirin"])

        assert response.interaction_count == 1
        (entry,) = response.unavailable_sources
        assert (entry.drug_a, entry.drug_b) == ("11289", "1191")
        assert entry.source == "RXNAV"
        assert entry.reason == "HTTP 503"


class TestFindAlternatives:
    """Test suite for InteractionEngine.find_alternatives"""

    @pytest.mark.asyncio
    async def test_unknown_class_yields_nothing(self, engine):
        """Test that a drug without a class contributes no candidates"""
        response = await engine.find_alternatives([
            DrugRef(id="mystery-1", display_name="Mystery", generic_name="mystery"),
        ])

        assert response.success is True
        assert response.data.alternatives == []
        assert response.data.total_alternatives == 0

    @pytest.mark.asyncio
    async def test_warfarin_with_aspirin(self, engine, drug):
        """Test scoring anticoagulant alternatives against the rest of the regimen"""
        response = await engine.find_alternatives([drug("warfarin"), drug("aspirin")])

        alternatives = response.data.alternatives
        assert [a.drug.generic_name for a in alternatives] == [
            "dabigatran", "edoxaban", "apixaban", "rivaroxaban",
        ]
        assert [a.safety_score for a in alternatives] == [100, 100, 60, 60]
        assert all(a.for_drug.generic_name == "warfarin" for a in alternatives)
        assert response.data.total_alternatives == 4
        assert response.data.high_safety_alternatives == 2
        assert response.data.recommended_alternatives == 2

        apixaban = alternatives[2]
        assert apixaban.efficacy_score == 95
        assert apixaban.recommended is False
        assert apixaban.adjustments[0].points == -40
        assert "Oral anticoagulants" in apixaban.rationale
        assert "major interaction with Aspirin" in apixaban.rationale

    @pytest.mark.asyncio
    async def test_pharmacogenomic_penalty(self, engine, drug):
        response = await engine.find_alternatives([drug("omeprazole")], {"CYP2C19": "UM"})

        scores = [(a.drug.generic_name, a.safety_score, a.efficacy_score) for a in response.data.alternatives]
        assert scores == [
            ("esomeprazole", 100, 90),
            ("rabeprazole", 100, 85),
            ("pantoprazole", 85, 90),
            ("lansoprazole", 85, 85),
        ]
        assert response.data.patient_profile == {"CYP2C19": "UM"}
        assert "7646" in response.data.phenotype_annotations

    @pytest.mark.asyncio
    async def test_caller_refs_canonicalised(self, engine):
        response = await engine.find_alternatives([
            DrugRef(id="Coumadin", display_name="Coumadin", generic_name="warfarin"),
        ])
        assert response.data.original_drugs[0].id == "11289"
        assert response.data.total_alternatives == 4

    @pytest.mark.asyncio
    async def test_empty_regimen_rejected(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            await engine.find_alternatives([])
        assert exc_info.value.code == ValidationCode.TOO_FEW_DRUGS

    @pytest.mark.asyncio
    async def test_deterministic(self, engine, drug):
        """Test that identical requests give byte-identical results"""
        first = await engine.find_alternatives([drug("warfarin"), drug("aspirin")])
        engine.clear_cache()
        second = await engine.find_alternatives([drug("aspirin"), drug("warfarin")])

        assert [a.drug.id for a in first.data.alternatives] == [a.drug.id for a in second.data.alternatives]
        assert first.data.alternatives == second.data.alternatives

    @pytest.mark.asyncio
    async def test_served_from_cache(self, engine, drug):
        first = await engine.find_alternatives([drug("warfarin"), drug("aspirin")])
        second = await engine.find_alternatives([drug("aspirin"), drug("warfarin")])
        assert second is first

    @pytest.mark.asyncio
    async def test_partial_coverage_not_cached(self, offline_config, fake_adapter, drug):
        failing = fake_adapter("RXNAV", error=SourceUnavailableError("RXNAV", "HTTP 503"))
        engine = create_interaction_engine(offline_config, adapters=[LocalCuratedStoreAdapter(), failing])

        first = await engine.find_alternatives([drug("warfarin"), drug("aspirin")])
        second = await engine.find_alternatives([drug("warfarin"), drug("aspirin")])

        assert second is not first
        assert first.data.unavailable_sources

    @pytest.mark.asyncio
    async def test_cached_answer_keyed_by_caller_class(self, engine):
        """Test that a class given by the caller does not leak into a later request without one"""
        classed = await engine.find_alternatives([
            DrugRef(id="foo", display_name="Foo", generic_name="foo", drug_class="NSAIDS"),
        ])
        unclassed = await engine.find_alternatives([
            DrugRef(id="foo", display_name="Foo", generic_name="foo"),
        ])

        assert classed.data.total_alternatives == 4
        assert unclassed.data.alternatives == []

    @pytest.mark.asyncio
    async def test_class_override_not_reused(self, engine, drug):
        overridden = await engine.find_alternatives([
            drug("ibuprofen").model_copy(update={"drug_class": "NON_OPIOID_ANALGESICS"}),
        ])
        default = await engine.find_alternatives([drug("ibuprofen")])

        assert [a.drug.generic_name for a in overridden.data.alternatives] == ["acetaminophen"]
        assert {a.drug.generic_name for a in default.data.alternatives} == {"naproxen", "diclofenac", "celecoxib"}

    @pytest.mark.asyncio
    async def test_cached_answer_keyed_by_patient_factors(self, engine, drug):
        adult = await engine.find_alternatives([drug("morphine")])
        child = await engine.find_alternatives([drug("morphine")], patient=PatientFactors(age=10))

        assert child is not adult
        assert not any(a.contraindications for a in adult.data.alternatives)
        assert sum(1 for a in child.data.alternatives if a.contraindications) == 2


class TestFindAlternativesForPatient:
    """Test suite for clinical factors in find_alternatives"""

    @pytest.mark.asyncio
    async def test_pediatric_contraindications(self, engine, drug):
        response = await engine.find_alternatives([drug("morphine")], patient=PatientFactors(age=10))

        by_name = {a.drug.generic_name: a for a in response.data.alternatives}
        assert set(by_name) == {"codeine", "tramadol", "oxycodone", "hydromorphone"}
        assert by_name["codeine"].safety_score == 0
        assert by_name["codeine"].contraindications == ("Contraindicated in pediatric patients",)
        assert by_name["tramadol"].recommended is False
        assert by_name["oxycodone"].safety_score == 100
        assert by_name["oxycodone"].contraindications == ()

        # Contraindicated candidates rank last
        assert [a.safety_score for a in response.data.alternatives] == [100, 100, 0, 0]
        assert response.data.patient_factors.age == 10

    @pytest.mark.asyncio
    async def test_allergy_contraindications(self, engine, drug):
        response = await engine.find_alternatives([drug("ibuprofen")], patient=PatientFactors(allergies=["nsaid"]))

        assert response.data.total_alternatives == 3
        assert response.data.recommended_alternatives == 0
        assert all(a.contraindications == ("Contraindicated due to nsaid allergy",)
                   for a in response.data.alternatives)

    @pytest.mark.asyncio
    async def test_organ_function_dose_notes(self, engine, drug):
        patient = PatientFactors(renal_function="impaired", hepatic_function="impaired")

        anticoagulants = await engine.find_alternatives([drug("warfarin")], patient=patient)
        statins = await engine.find_alternatives([drug("simvastatin")], patient=patient)

        dabigatran = next(a for a in anticoagulants.data.alternatives if a.drug.generic_name == "dabigatran")
        assert dabigatran.dosage_adjustments == ("Dose reduction required for renal impairment",)
        assert dabigatran.safety_score == 100
        assert all(a.dosage_adjustments == ("Caution with hepatic impairment",)
                   for a in statins.data.alternatives)

    @pytest.mark.asyncio
    async def test_monitoring_listed(self, engine, drug):
        response = await engine.find_alternatives([drug("simvastatin")])

        atorvastatin = next(a for a in response.data.alternatives if a.drug.generic_name == "atorvastatin")
        assert atorvastatin.monitoring_requirements == ("Lipid panel", "Liver function")
        assert response.data.patient_factors is None


class TestStoreViews:
    """Test suite for interaction rows, known interactions and cache control"""

    def test_interaction_row(self, engine):
        row = engine.interaction_row("warfarin")

        assert row.data.drug.id == "11289"
        assert row.data.total_interactions == len(row.data.interactions)
        assert sum(row.data.breakdown.values()) == row.data.total_interactions
        for entry in row.data.interactions:
            assert entry.risk_score == entry.severity.rank

    def test_unknown_drug_row_empty(self, engine):
        row = engine.interaction_row("unobtainium")
        assert row.success is True
        assert row.data.total_interactions == 0

    def test_known_interactions_filtered(self, engine):
        response = engine.known_interactions(severity="contraindicated")
        assert response.count == response.total > 0
        assert all(r.severity == Severity.CONTRAINDICATED for r in response.interactions)
        assert response.filters["severity"] == "contraindicated"

    def test_known_interactions_drug_and_limit(self, engine):
        response = engine.known_interactions(drug="warfarin", limit=3)
        assert response.count == 3
        assert response.total > 3
        assert all(r.involves("11289") for r in response.interactions)

    def test_known_interactions_bad_severity(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            engine.known_interactions(severity="bogus")
        assert exc_info.value.code == ValidationCode.UNKNOWN_SEVERITY

    @pytest.mark.asyncio
    async def test_clear_cache_idempotent(self, engine):
        await engine.check_interactions(["warfarin", "aspirin"])

        first = engine.clear_cache()
        second = engine.clear_cache()

        assert first.success is True
        assert second.success is True
        assert second.message == "Cache cleared (0 entries)"

    def test_clear_cache_without_cache(self):
        engine = create_interaction_engine(
            InteractionEngineConfig(external_reference_enabled=False, cache_enabled=False)
        )
        assert engine.clear_cache().success is True
