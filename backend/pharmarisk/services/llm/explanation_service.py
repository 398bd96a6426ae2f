import json
import logging
import re
import time
from typing import Optional

from pydantic import ValidationError

from pharmarisk.core.config import get_explanation_config
from pharmarisk.schemas.internal_contracts import ExplanationRequest
from pharmarisk.services.llm.groq_client import GroqClient
from pharmarisk.services.llm.prompt_builder import build_explanation_prompt
from pharmarisk.services.pharmacogenomics.models import LLMExplanation

logger = logging.getLogger(__name__)

# Models sometimes wrap the object in a markdown code block
_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")


def fallback_explanation(request: ExplanationRequest) -> LLMExplanation:
    """Deterministic explanation built only from the request fields."""
    drug, gene, diplotype = request.drug, request.gene, request.diplotype
    phenotype, risk_label, severity = request.phenotype, request.risk_label, request.severity
    return LLMExplanation(
        summary=(
            f"{drug} risk assessment: {risk_label} for {phenotype} metabolizer "
            f"({gene} {diplotype})."
        ),
        mechanism=(
            f"The {gene} {diplotype} diplotype results in {phenotype} metabolizer status, "
            f"affecting {drug} processing."
        ),
        clinical_impact=(
            f"{severity} severity — {risk_label}. Clinical monitoring and possible dose "
            f"adjustment recommended."
        ),
        patient_friendly_explanation=(
            f"Your body processes {drug} differently than average due to your genetic makeup. "
            f"Your doctor may need to adjust your treatment."
        ),
    )


def parse_explanation(text: Optional[str]) -> Optional[LLMExplanation]:
    """Extract and validate the JSON explanation object; None if unusable."""
    if not text:
        return None
    match = _JSON_BLOCK_RE.search(text)
    candidate = match.group(0) if match else text
    try:
        return LLMExplanation.model_validate(json.loads(candidate))
    except (ValueError, ValidationError) as e:
        logger.warning("Discarding malformed explanation: %s", str(e))
        return None


async def generate_explanation(
    request: ExplanationRequest,
    client: Optional[GroqClient] = None,
) -> LLMExplanation:
    """
    Generates a clinical explanation for one rule engine result.

    Never raises: when the collaborator is disabled, unreachable or returns
    unparseable content the templated explanation is returned instead.
    """
    if not get_explanation_config().enabled:
        return fallback_explanation(request)

    logger.info("Generating clinical explanation for %s / %s", request.drug, request.gene)
    start = time.time()
    client = client or GroqClient()

    try:
        text = await client.generate_text(build_explanation_prompt(request))
    except Exception as e:
        logger.error(f"Unexpected error in explanation service: {str(e)}")
        return fallback_explanation(request)

    explanation = parse_explanation(text)
    if explanation is None:
        logger.warning("LLM fallback triggered for %s", request.drug)
        return fallback_explanation(request)

    logger.info("LLM generation time: %.2f seconds", time.time() - start)
    return explanation
