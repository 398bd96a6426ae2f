"""
Recommendation Engine - Templated CPIC-style clinical recommendations.

Recommendation text is chosen by risk label and interpolates the drug and
phenotype. Alternatives are offered for every label except Safe.
"""

from typing import List

from .cpic_tables import ALTERNATIVE_DRUGS
from .models import ClinicalRecommendation, Phenotype, RiskLabel

GUIDELINE_SOURCE = "CPIC"

_TEMPLATES = {
    RiskLabel.SAFE: (
        "Standard dosing of {drug} is appropriate for {phenotype} metabolizers. "
        "Monitor as per standard clinical practice."
    ),
    RiskLabel.ADJUST_DOSAGE: (
        "{phenotype} metabolizer status detected. Consider dose adjustment for {drug} "
        "per CPIC guidelines. Close monitoring recommended."
    ),
    RiskLabel.TOXIC: (
        "CRITICAL: {phenotype} metabolizer — {drug} may cause severe toxicity. "
        "Consider alternative therapy. Consult clinical pharmacogenomics specialist."
    ),
    RiskLabel.INEFFECTIVE: (
        "{phenotype} metabolizer — {drug} is likely ineffective due to impaired metabolism. "
        "Switch to alternative agent per CPIC guidelines."
    ),
}

_UNCERTAIN_TEMPLATE = (
    "Pharmacogenomic status uncertain. Consider clinical pharmacogenomic "
    "consultation before prescribing {drug}."
)


def recommendation_text(drug: str, phenotype: Phenotype, risk_label: RiskLabel) -> str:
    template = _TEMPLATES.get(risk_label, _UNCERTAIN_TEMPLATE)
    return template.format(drug=drug, phenotype=Phenotype(phenotype).value)


def alternative_options(drug: str, risk_label: RiskLabel) -> List[str]:
    if risk_label == RiskLabel.SAFE:
        return []
    return list(ALTERNATIVE_DRUGS.get(drug, ()))


def build_recommendation(drug: str, phenotype: Phenotype, risk_label: RiskLabel) -> ClinicalRecommendation:
    return ClinicalRecommendation(
        guideline_source=GUIDELINE_SOURCE,
        recommendation_text=recommendation_text(drug, phenotype, risk_label),
        alternative_options=alternative_options(drug, risk_label),
    )
