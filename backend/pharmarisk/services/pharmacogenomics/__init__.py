"""
Pharmacogenomics Service

CPIC-aligned rule engine for drug risk assessment.
Provides deterministic table-driven diplotype, phenotype and risk resolution.
"""

from .models import (
    DetectedVariant,
    RiskAssessment,
    PharmacogenomicProfile,
    ClinicalRecommendation,
    QualityMetrics,
    LLMExplanation,
    PharmaGuardResult,
    Phenotype,
    RiskLabel,
    Severity,
)
from .cpic_tables import SUPPORTED_DRUGS, DRUG_GENE_MAP
from .phenotype_mapper import build_diplotype, lookup_phenotype
from .risk_engine import (
    RiskEngine,
    create_risk_engine,
    run_rule_engine,
    with_explanation,
    resolve_drug,
    gene_for_drug,
    lookup_risk,
)

__all__ = [
    # Models
    'DetectedVariant',
    'RiskAssessment',
    'PharmacogenomicProfile',
    'ClinicalRecommendation',
    'QualityMetrics',
    'LLMExplanation',
    'PharmaGuardResult',
    'Phenotype',
    'RiskLabel',
    'Severity',

    # Tables
    'SUPPORTED_DRUGS',
    'DRUG_GENE_MAP',

    # Phenotype Mapping
    'build_diplotype',
    'lookup_phenotype',

    # Risk Engine
    'RiskEngine',
    'create_risk_engine',
    'run_rule_engine',
    'with_explanation',
    'resolve_drug',
    'gene_for_drug',
    'lookup_risk',
]
