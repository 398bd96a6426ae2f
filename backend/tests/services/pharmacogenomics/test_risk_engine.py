"""
Unit tests for risk engine.
Tests drug-specific risk assessment, fallbacks and result assembly.
"""

import random
import re
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from pharmarisk.services.pharmacogenomics.cpic_tables import (
    ALTERNATIVE_DRUGS,
    DEFAULT_RISK_RULE,
    DRUG_GENE_MAP,
    PHENOTYPE_MAP,
    RISK_RULES,
    SUPPORTED_DRUGS,
)
from pharmarisk.services.pharmacogenomics.models import (
    LLMExplanation,
    Phenotype,
    RiskLabel,
    Severity,
)
from pharmarisk.services.pharmacogenomics.recommendation_engine import build_recommendation
from pharmarisk.services.pharmacogenomics.risk_engine import (
    RiskEngine,
    create_risk_engine,
    gene_for_drug,
    lookup_risk,
    resolve_drug,
    run_rule_engine,
    with_explanation,
)
from pharmarisk.services.vcf.parser import parse_vcf


def _table_cases():
    """(drug, gene, diplotype, phenotype) for every diplotype listed for each drug's gene."""
    cases = []
    for drug, gene in DRUG_GENE_MAP.items():
        for diplotype, phenotype in PHENOTYPE_MAP[gene].items():
            cases.append((drug, gene, diplotype, phenotype))
    return cases


class TestRiskEngine:
    """Test RiskEngine risk assessment logic."""

    # ===== Codeine - CYP2D6 =====

    def test_codeine_poor_metabolizer(self, engine, make_variant):
        variants = [
            make_variant(gene="CYP2D6", star="*4", rsid="rs3892097"),
            make_variant(gene="CYP2D6", star="*4", rsid="rs1065852"),
        ]

        result = engine.assess(variants, "CODEINE")

        profile = result.pharmacogenomic_profile
        assert profile.primary_gene == "CYP2D6"
        assert profile.diplotype == "*4/*4"
        assert profile.phenotype == Phenotype.PM
        assert result.risk_assessment.risk_label == RiskLabel.INEFFECTIVE
        assert result.risk_assessment.severity == Severity.HIGH
        assert result.risk_assessment.confidence_score == 0.95
        assert result.clinical_recommendation.alternative_options == list(ALTERNATIVE_DRUGS["CODEINE"])

    def test_codeine_intermediate_metabolizer(self, engine, make_variant):
        variants = [make_variant(gene="CYP2D6", star="*1"), make_variant(gene="CYP2D6", star="*4")]

        result = engine.assess(variants, "codeine")

        assert result.pharmacogenomic_profile.diplotype == "*1/*4"
        assert result.pharmacogenomic_profile.phenotype == Phenotype.IM
        assert result.risk_assessment.risk_label == RiskLabel.ADJUST_DOSAGE
        assert result.risk_assessment.severity == Severity.MODERATE

    def test_codeine_ultrarapid_metabolizer(self, engine, make_variant):
        variants = [make_variant(gene="CYP2D6", star="*1"), make_variant(gene="CYP2D6", star="*1xN")]

        result = engine.assess(variants, "CODEINE")

        assert result.pharmacogenomic_profile.phenotype == Phenotype.URM
        assert result.risk_assessment.risk_label == RiskLabel.TOXIC
        assert result.risk_assessment.severity == Severity.CRITICAL
        assert result.clinical_recommendation.recommendation_text == (
            "CRITICAL: URM metabolizer — CODEINE may cause severe toxicity. "
            "Consider alternative therapy. Consult clinical pharmacogenomics specialist."
        )

    def test_ineffective_recommendation_text(self):
        recommendation = build_recommendation("CLOPIDOGREL", Phenotype.PM, RiskLabel.INEFFECTIVE)

        assert recommendation.recommendation_text == (
            "PM metabolizer — CLOPIDOGREL is likely ineffective due to impaired metabolism. "
            "Switch to alternative agent per CPIC guidelines."
        )

    # ===== Warfarin - CYP2C9 =====

    def test_warfarin_without_cyp2c9_variants(self, engine, make_variant):
        variants = [make_variant(gene="CYP2D6", star="*4")]

        result = engine.assess(variants, "WARFARIN")

        profile = result.pharmacogenomic_profile
        assert profile.diplotype == "*1/*1"
        assert profile.phenotype == Phenotype.NM
        assert result.risk_assessment.risk_label == RiskLabel.SAFE
        assert result.risk_assessment.severity == Severity.NONE
        assert result.clinical_recommendation.alternative_options == []
        assert [v.rsid for v in profile.detected_variants] == ["none_detected"]
        assert profile.detected_variants[0].gene == "CYP2C9"
        assert result.quality_metrics.annotation_completeness == 0.3

    def test_warfarin_poor_metabolizer_is_toxic(self, engine, make_variant):
        variants = [make_variant(gene="CYP2C9", star="*3"), make_variant(gene="CYP2C9", star="*3")]

        result = engine.assess(variants, "warfarin")

        assert result.risk_assessment.risk_label == RiskLabel.TOXIC
        assert result.risk_assessment.severity == Severity.CRITICAL

    # ===== Clopidogrel - CYP2C19 =====

    def test_clopidogrel_rapid_metabolizer_is_safe(self, engine, make_variant):
        variants = [make_variant(gene="CYP2C19", star="*1"), make_variant(gene="CYP2C19", star="*17")]

        result = engine.assess(variants, "Clopidogrel")

        assert result.pharmacogenomic_profile.phenotype == Phenotype.RM
        assert result.risk_assessment.risk_label == RiskLabel.SAFE
        assert result.clinical_recommendation.alternative_options == []

    # ===== Single allele and ordering =====

    def test_single_variant_pairs_with_wildtype(self, engine, make_variant):
        result = engine.assess([make_variant(gene="CYP2D6", star="*4")], "CODEINE")

        # "*4/*1" is not a listed ordering
        assert result.pharmacogenomic_profile.diplotype == "*4/*1"
        assert result.pharmacogenomic_profile.phenotype == Phenotype.UNKNOWN
        assert result.risk_assessment.risk_label == RiskLabel.UNKNOWN
        assert result.risk_assessment.severity == Severity.MODERATE
        assert result.risk_assessment.confidence_score == 0.5
        assert result.clinical_recommendation.alternative_options == list(ALTERNATIVE_DRUGS["CODEINE"])
        assert "uncertain" in result.clinical_recommendation.recommendation_text

    def test_swapped_alleles_are_distinct_keys(self, engine, make_variant):
        forward = engine.assess(
            [make_variant(gene="CYP2C9", star="*1"), make_variant(gene="CYP2C9", star="*2")], "WARFARIN"
        )
        reverse = engine.assess(
            [make_variant(gene="CYP2C9", star="*2"), make_variant(gene="CYP2C9", star="*1")], "WARFARIN"
        )

        assert forward.pharmacogenomic_profile.phenotype == Phenotype.IM
        assert reverse.pharmacogenomic_profile.phenotype == Phenotype.UNKNOWN

    def test_extra_variants_are_carried_but_not_in_diplotype(self, engine, make_variant):
        variants = [
            make_variant(gene="CYP2C19", star="*2", rsid="rs4244285"),
            make_variant(gene="CYP2C19", star="*3", rsid="rs4986893"),
            make_variant(gene="CYP2C19", star="*17", rsid="rs12248560"),
        ]

        result = engine.assess(variants, "CLOPIDOGREL")

        profile = result.pharmacogenomic_profile
        assert profile.diplotype == "*2/*3"
        assert profile.phenotype == Phenotype.PM
        assert [v.star_allele for v in profile.detected_variants] == ["*2", "*3", "*17"]
        assert result.risk_assessment.risk_label == RiskLabel.INEFFECTIVE

    def test_missing_star_defaults_to_wildtype(self, engine, make_variant):
        variants = [make_variant(gene="TPMT", star=None), make_variant(gene="TPMT", star="*3A")]

        result = engine.assess(variants, "AZATHIOPRINE")

        assert result.pharmacogenomic_profile.diplotype == "*1/*3A"
        assert result.pharmacogenomic_profile.phenotype == Phenotype.IM

    # ===== Unknown drugs =====

    def test_unknown_drug_degrades_gracefully(self, engine, make_variant):
        result = engine.assess([make_variant(gene="CYP2D6", star="*4")], "ibuprofen")

        profile = result.pharmacogenomic_profile
        assert result.drug == "IBUPROFEN"
        assert profile.primary_gene == "Unknown"
        assert profile.diplotype == "*1/*1"
        assert profile.phenotype == Phenotype.UNKNOWN
        assert profile.detected_variants[0].rsid == "none_detected"
        assert result.risk_assessment.risk_label == RiskLabel.UNKNOWN
        assert result.risk_assessment.confidence_score == 0.5
        assert result.clinical_recommendation.alternative_options == []

    def test_empty_drug_name(self, engine):
        result = engine.assess([], "")

        assert result.risk_assessment.risk_label == RiskLabel.UNKNOWN

    def test_fluorouracil_spellings(self, engine, make_variant):
        variants = [make_variant(gene="DPYD", star="*2A"), make_variant(gene="DPYD", star="*2A")]

        for spelling in ("FLUOROURACIL", "fluorouacil", "5-Fluorouracil"):
            result = engine.assess(variants, spelling)
            assert result.drug == "FLUOROURACIL"
            assert result.pharmacogenomic_profile.primary_gene == "DPYD"
            assert result.risk_assessment.risk_label == RiskLabel.TOXIC

    # ===== Result assembly =====

    def test_result_metadata(self, engine, make_variant):
        result = engine.assess([make_variant(gene="CYP2D6", star="*4")], "CODEINE")

        assert re.fullmatch(r"PATIENT_\d{3}", result.patient_id)
        assert 100 <= int(result.patient_id.split("_")[1]) <= 999
        assert result.timestamp == "2026-03-14T09:26:53+00:00"
        assert result.clinical_recommendation.guideline_source == "CPIC"
        assert result.llm_generated_explanation is None

    def test_completeness_with_detected_variants(self, engine, make_variant):
        for _ in range(20):
            result = engine.assess([make_variant(gene="CYP2D6", star="*4")], "CODEINE")
            completeness = result.quality_metrics.annotation_completeness
            assert 0.85 <= completeness <= 1.0
            assert completeness == round(completeness, 2)

    def test_quality_metrics(self, engine, make_variant):
        result = engine.assess(
            [make_variant(gene="TPMT", star="*3A"), make_variant(gene="TPMT", star="*3A")],
            "AZATHIOPRINE",
            vcf_parsing_success=False,
        )

        assert result.quality_metrics.vcf_parsing_success is False
        assert result.quality_metrics.rule_engine_confidence == 0.97

    def test_seeded_engines_are_reproducible(self, make_variant):
        variants = [make_variant(gene="CYP2D6", star="*4")]

        first = RiskEngine(rng=random.Random(7)).assess(variants, "CODEINE")
        second = RiskEngine(rng=random.Random(7)).assess(variants, "CODEINE")

        assert first.patient_id == second.patient_id
        assert first.quality_metrics == second.quality_metrics

    def test_activity_score(self, engine, make_variant):
        variants = [make_variant(gene="CYP2D6", star="*4"), make_variant(gene="CYP2D6", star="*4")]

        assert engine.assess(variants, "CODEINE").pharmacogenomic_profile.activity_score == 0.0
        assert engine.assess([], "SIMVASTATIN").pharmacogenomic_profile.activity_score is None

    def test_result_is_immutable(self, engine):
        result = engine.assess([], "WARFARIN")

        with pytest.raises(ValidationError):
            result.drug = "CODEINE"

    def test_with_explanation_returns_copy(self, engine):
        result = engine.assess([], "WARFARIN")
        explanation = LLMExplanation(
            summary="s", mechanism="m", clinical_impact="c", patient_friendly_explanation="p"
        )

        explained = with_explanation(result, explanation)

        assert explained.llm_generated_explanation == explanation
        assert result.llm_generated_explanation is None
        assert explained.risk_assessment == result.risk_assessment

    def test_run_rule_engine_and_factory(self, make_variant):
        assert run_rule_engine([], "WARFARIN").risk_assessment.risk_label == RiskLabel.SAFE
        assert create_risk_engine(seed=3).assess([], "CODEINE").pharmacogenomic_profile.phenotype == Phenotype.NM

    def test_concurrent_calls_match_sequential(self, sample_vcf):
        variants = parse_vcf(sample_vcf).variants
        engine = RiskEngine()

        sequential = [engine.assess(variants, d) for d in SUPPORTED_DRUGS]
        with ThreadPoolExecutor(max_workers=len(SUPPORTED_DRUGS)) as pool:
            concurrent = list(pool.map(lambda d: engine.assess(variants, d), SUPPORTED_DRUGS))

        for a, b in zip(sequential, concurrent):
            assert a.risk_assessment == b.risk_assessment
            assert a.pharmacogenomic_profile == b.pharmacogenomic_profile
            assert a.clinical_recommendation == b.clinical_recommendation


class TestRuleTables:
    """Every table entry resolves exactly as listed."""

    @pytest.mark.parametrize("drug,phenotype", [
        (drug, phenotype) for drug, rules in RISK_RULES.items() for phenotype in rules
    ])
    def test_risk_rules_and_alternatives(self, drug, phenotype):
        rule = lookup_risk(drug, phenotype)
        recommendation = build_recommendation(drug, phenotype, rule.label)

        assert rule == RISK_RULES[drug][phenotype]
        assert (len(recommendation.alternative_options) > 0) == (rule.label != RiskLabel.SAFE)

    @pytest.mark.parametrize("drug,gene,diplotype,phenotype", _table_cases())
    def test_end_to_end_table_diplotypes(self, engine, make_variant, drug, gene, diplotype, phenotype):
        first, second = diplotype.split("/")
        variants = [make_variant(gene=gene, star=first), make_variant(gene=gene, star=second)]

        result = engine.assess(variants, drug)

        expected = RISK_RULES[drug].get(phenotype, DEFAULT_RISK_RULE)
        assert result.pharmacogenomic_profile.diplotype == diplotype
        assert result.pharmacogenomic_profile.phenotype == phenotype
        assert result.risk_assessment.risk_label == expected.label
        assert result.risk_assessment.severity == expected.severity
        assert result.risk_assessment.confidence_score == expected.confidence
        has_alternatives = len(result.clinical_recommendation.alternative_options) > 0
        assert has_alternatives == (expected.label != RiskLabel.SAFE)

    def test_missing_phenotype_uses_default_rule(self):
        assert lookup_risk("WARFARIN", Phenotype.URM) == DEFAULT_RISK_RULE
        assert lookup_risk("NOT_A_DRUG", Phenotype.PM) == DEFAULT_RISK_RULE

    def test_drug_resolution(self):
        assert resolve_drug("  codeine ") == "CODEINE"
        assert gene_for_drug("Simvastatin") == "SLCO1B1"
        assert gene_for_drug("aspirin") == "Unknown"

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            RISK_RULES["CODEINE"] = {}
        with pytest.raises(TypeError):
            PHENOTYPE_MAP["CYP2D6"]["*1/*1"] = Phenotype.PM
