from pydantic import BaseModel, Field

from pharmarisk.services.pharmacogenomics.models import PharmaGuardResult


class ExplanationRequest(BaseModel):
    """
    Contract between the rule engine and the explanation collaborator.
    Carries only the fields an explanation may be grounded on; the fallback
    template is built from these same fields.
    """
    drug: str = Field(..., description="Canonical drug name (e.g., CODEINE)")
    gene: str = Field(..., description="The gene symbol (e.g., CYP2D6)")
    diplotype: str = Field(..., description="The detected diplotype (e.g., *4/*4)")
    phenotype: str = Field(..., description="Metabolizer phenotype code (e.g., PM)")
    risk_label: str = Field(..., description="Risk classification (e.g., Ineffective)")
    severity: str = Field(..., description="Severity level (e.g., high)")

    @classmethod
    def from_result(cls, result: PharmaGuardResult) -> "ExplanationRequest":
        profile = result.pharmacogenomic_profile
        risk = result.risk_assessment
        return cls(
            drug=result.drug,
            gene=profile.primary_gene,
            diplotype=profile.diplotype,
            phenotype=profile.phenotype.value,
            risk_label=risk.risk_label.value,
            severity=risk.severity.value,
        )
