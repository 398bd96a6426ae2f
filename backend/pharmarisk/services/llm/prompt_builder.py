from pharmarisk.schemas.internal_contracts import ExplanationRequest

SYSTEM_PROMPT = (
    "You are a clinical pharmacogenomics expert. "
    "Return ONLY valid JSON, no markdown."
)


def build_explanation_prompt(request: ExplanationRequest) -> str:
    """
    Constructs the user prompt asking for a four-field JSON explanation.

    Args:
        request: Rule engine findings for one drug.

    Returns:
        A formatted prompt string.
    """
    return (
        "You are a clinical pharmacogenomics expert. Generate a JSON object with "
        "exactly these 4 fields for a patient assessment:\n\n"
        f"Drug: {request.drug}\n"
        f"Gene: {request.gene}\n"
        f"Diplotype: {request.diplotype}\n"
        f"Phenotype: {request.phenotype}\n"
        f"Risk: {request.risk_label} (Severity: {request.severity})\n\n"
        "Return ONLY a valid JSON object with these exact fields:\n"
        "{\n"
        '  "summary": "2-3 sentence clinical summary",\n'
        '  "mechanism": "How the gene variant affects drug metabolism, 2-3 sentences",\n'
        '  "clinical_impact": "Clinical consequences and what clinicians should know, 2-3 sentences",\n'
        '  "patient_friendly_explanation": "Simple explanation a patient can understand, 2-3 sentences"\n'
        "}"
    )
