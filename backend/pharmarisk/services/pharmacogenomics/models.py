"""
Data models for the pharmacogenomics rule engine.
These models make up the per-drug result handed back to the caller and,
optionally, enriched with an LLM explanation.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Phenotype(str, Enum):
    """Predicted drug-metabolizing capacity."""
    PM = "PM"  # Poor metabolizer
    IM = "IM"  # Intermediate metabolizer
    NM = "NM"  # Normal metabolizer
    RM = "RM"  # Rapid metabolizer
    URM = "URM"  # Ultra-rapid metabolizer
    UNKNOWN = "Unknown"


class RiskLabel(str, Enum):
    SAFE = "Safe"
    ADJUST_DOSAGE = "Adjust Dosage"
    TOXIC = "Toxic"
    INEFFECTIVE = "Ineffective"
    UNKNOWN = "Unknown"


class Severity(str, Enum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class DetectedVariant(_Frozen):
    """A parsed variant projected onto the gene under assessment."""
    rsid: str = Field(..., description="dbSNP reference ID, 'unknown' or 'none_detected'")
    gene: str = Field(..., description="Gene symbol")
    star_allele: str = Field("*1", description="Star allele annotation, '*1' when absent")


class RiskAssessment(_Frozen):
    """Risk classification for a drug-phenotype combination."""
    risk_label: RiskLabel = Field(..., description="Risk classification label")
    confidence_score: float = Field(..., ge=0.0, le=1.0, description="Fixed rule confidence (0-1)")
    severity: Severity = Field(..., description="Severity: none, low, moderate, high, critical")


class PharmacogenomicProfile(_Frozen):
    primary_gene: str = Field(..., description="Gene symbol, 'Unknown' for unsupported drugs")
    diplotype: str = Field(..., description="Diplotype in '<allele1>/<allele2>' form")
    phenotype: Phenotype = Field(..., description="Metabolizer phenotype")
    detected_variants: List[DetectedVariant] = Field(
        ..., min_length=1, description="Matched variants, or a single 'none_detected' sentinel"
    )
    activity_score: Optional[float] = Field(
        None, description="Summed allele activity values (descriptive only)"
    )


class ClinicalRecommendation(_Frozen):
    guideline_source: str = Field("CPIC", description="Guideline authority")
    recommendation_text: str = Field(..., description="Templated recommendation")
    alternative_options: List[str] = Field(
        default_factory=list, description="Substitute therapies; empty when risk is Safe"
    )


class QualityMetrics(_Frozen):
    vcf_parsing_success: bool = True
    annotation_completeness: float = Field(..., ge=0.0, le=1.0)
    rule_engine_confidence: float = Field(..., ge=0.0, le=1.0)


class LLMExplanation(_Frozen):
    summary: str
    mechanism: str
    clinical_impact: str
    patient_friendly_explanation: str


class PharmaGuardResult(_Frozen):
    """Complete assessment for one (variant set, drug) pair."""
    patient_id: str = Field(..., description="Engine-generated patient identifier")
    drug: str = Field(..., description="Canonical uppercase drug name")
    timestamp: str = Field(..., description="ISO 8601 timestamp (UTC)")
    risk_assessment: RiskAssessment
    pharmacogenomic_profile: PharmacogenomicProfile
    clinical_recommendation: ClinicalRecommendation
    quality_metrics: QualityMetrics
    llm_generated_explanation: Optional[LLMExplanation] = None
