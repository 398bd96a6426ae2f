"""
Risk Engine - Evaluates pharmacogenomic risk for one drug against a parsed variant set.

Pipeline per call:
  drug -> primary gene -> matching variants -> diplotype -> phenotype
  -> risk rule -> recommendation -> assembled result

Every input resolves to a fully populated result. Lookup misses fall back to
Unknown / moderate / 0.5 instead of raising. Patient id, completeness jitter
and timestamp come from an injected random source and clock.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from pharmarisk.services.vcf.parser import VcfVariant

from .cpic_tables import (
    DEFAULT_RISK_RULE,
    DRUG_ALIASES,
    DRUG_GENE_MAP,
    RISK_RULES,
    UNKNOWN_GENE,
    RiskRule,
)
from .models import (
    LLMExplanation,
    Phenotype,
    PharmaGuardResult,
    PharmacogenomicProfile,
    QualityMetrics,
    RiskAssessment,
)
from .phenotype_mapper import (
    build_diplotype,
    lookup_phenotype,
    score_diplotype,
    select_gene_variants,
    sentinel_variant,
    to_detected_variants,
)
from .recommendation_engine import build_recommendation

logger = logging.getLogger(__name__)

# Annotation completeness reported when at least one gene variant matched,
# plus up to COMPLETENESS_JITTER of random spread.
DETECTED_COMPLETENESS = 0.85
COMPLETENESS_JITTER = 0.15
UNDETECTED_COMPLETENESS = 0.3


def resolve_drug(drug: str) -> str:
    """Uppercase the drug name and resolve alternate spellings."""
    d = (drug or "").strip().upper()
    return DRUG_ALIASES.get(d, d)


def gene_for_drug(drug: str) -> str:
    return DRUG_GENE_MAP.get(resolve_drug(drug), UNKNOWN_GENE)


def lookup_risk(drug: str, phenotype: Phenotype) -> RiskRule:
    rule = RISK_RULES.get(drug, {}).get(phenotype)
    if rule is None:
        logger.info("No risk rule for %s / %s, using default", drug, Phenotype(phenotype).value)
        return DEFAULT_RISK_RULE
    return rule


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskEngine:
    """
    Rule-based pharmacogenomic risk engine.

    Stateless across calls: ``assess`` only reads the shared static tables and
    its inputs, so one engine may serve concurrent callers. Pass a seeded
    ``random.Random`` and a fixed ``clock`` for reproducible output.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.rng = rng or random.Random()
        self.clock = clock or _utc_now

    def assess(
        self,
        variants: Sequence[VcfVariant],
        drug: str,
        *,
        vcf_parsing_success: bool = True,
    ) -> PharmaGuardResult:
        drug_upper = resolve_drug(drug)
        gene = DRUG_GENE_MAP.get(drug_upper, UNKNOWN_GENE)
        if gene == UNKNOWN_GENE:
            logger.warning("Drug %s has no known primary gene", drug_upper)

        gene_variants = select_gene_variants(variants, gene)
        detected = to_detected_variants(gene_variants, gene)

        diplotype = build_diplotype([v.star_allele for v in detected])
        phenotype = lookup_phenotype(gene, diplotype)
        rule = lookup_risk(drug_upper, phenotype)

        logger.info(
            "Assessed %s: gene=%s diplotype=%s phenotype=%s risk=%s",
            drug_upper, gene, diplotype, phenotype.value, rule.label.value,
        )

        return PharmaGuardResult(
            patient_id=self._patient_id(),
            drug=drug_upper,
            timestamp=self.clock().isoformat(),
            risk_assessment=RiskAssessment(
                risk_label=rule.label,
                confidence_score=rule.confidence,
                severity=rule.severity,
            ),
            pharmacogenomic_profile=PharmacogenomicProfile(
                primary_gene=gene,
                diplotype=diplotype,
                phenotype=phenotype,
                detected_variants=detected or [sentinel_variant(gene)],
                activity_score=score_diplotype(gene, diplotype),
            ),
            clinical_recommendation=build_recommendation(drug_upper, phenotype, rule.label),
            quality_metrics=QualityMetrics(
                vcf_parsing_success=vcf_parsing_success,
                annotation_completeness=self._annotation_completeness(bool(detected)),
                rule_engine_confidence=rule.confidence,
            ),
        )

    def _patient_id(self) -> str:
        return f"PATIENT_{self.rng.randint(100, 999)}"

    def _annotation_completeness(self, detected: bool) -> float:
        if not detected:
            return UNDETECTED_COMPLETENESS
        return round(DETECTED_COMPLETENESS + self.rng.uniform(0, COMPLETENESS_JITTER), 2)


def create_risk_engine(seed: Optional[int] = None) -> RiskEngine:
    """Factory for a RiskEngine; a seed makes ids and jitter reproducible."""
    return RiskEngine(rng=random.Random(seed) if seed is not None else None)


_default_engine = RiskEngine()


def run_rule_engine(variants: Sequence[VcfVariant], drug: str) -> PharmaGuardResult:
    return _default_engine.assess(variants, drug)


def with_explanation(result: PharmaGuardResult, explanation: LLMExplanation) -> PharmaGuardResult:
    """Return a copy of ``result`` carrying ``explanation``."""
    return result.model_copy(update={"llm_generated_explanation": explanation})
