"""
Analysis Pipeline - Orchestrates VCF -> Risk -> LLM -> Report.

The file is parsed once; the rule engine then runs once per requested drug
against the full variant list. Explanations are requested concurrently and
each one is bounded by the configured timeout. A missing or late explanation
is replaced by the templated one, so every result is complete.
"""
import asyncio
import logging
import time
from typing import Iterable, List, Optional, Union

from pharmarisk.core.config import get_explanation_config
from pharmarisk.schemas.internal_contracts import ExplanationRequest
from pharmarisk.schemas.pharma_schema import AnalysisReport
from pharmarisk.services.llm.explanation_service import fallback_explanation, generate_explanation
from pharmarisk.services.pharmacogenomics.cpic_tables import SUPPORTED_DRUGS
from pharmarisk.services.pharmacogenomics.models import LLMExplanation, PharmaGuardResult
from pharmarisk.services.pharmacogenomics.risk_engine import (
    RiskEngine,
    resolve_drug,
    with_explanation,
)
from pharmarisk.services.vcf.parser import parse_vcf

logger = logging.getLogger(__name__)


class VcfRejectedError(ValueError):
    """The file parsed with errors or produced no variants."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "No variants found in VCF")


class UnsupportedDrugError(ValueError):
    def __init__(self, unsupported: List[str]):
        self.unsupported = list(unsupported)
        prefix = f"Unsupported: {', '.join(self.unsupported)}" if self.unsupported else "No drug specified"
        super().__init__(f"{prefix}. Supported: {', '.join(SUPPORTED_DRUGS)}")


def parse_drug_list(drugs: Union[str, Iterable[str]]) -> List[str]:
    """
    Normalize a comma-separated string (or list of strings) into canonical drug names.

    Raises UnsupportedDrugError if any name is outside the supported vocabulary,
    or if no drug was given at all.
    """
    if isinstance(drugs, str):
        drugs = [drugs]

    names: List[str] = []
    for chunk in drugs:
        for raw in (chunk or "").split(","):
            name = resolve_drug(raw)
            if name and name not in names:
                names.append(name)

    if not names:
        raise UnsupportedDrugError([])

    unsupported = [d for d in names if d not in SUPPORTED_DRUGS]
    if unsupported:
        raise UnsupportedDrugError(unsupported)
    return names


async def _explain(result: PharmaGuardResult, timeout: float) -> LLMExplanation:
    request = ExplanationRequest.from_result(result)
    try:
        return await asyncio.wait_for(generate_explanation(request), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Explanation for %s timed out after %.1fs", result.drug, timeout)
        return fallback_explanation(request)


async def run_analysis(
    content: Union[str, bytes],
    drugs: Union[str, Iterable[str]],
    *,
    engine: Optional[RiskEngine] = None,
    explain: bool = True,
) -> AnalysisReport:
    """
    Full pipeline: VCF -> parse -> per-drug risk -> explanations -> report.
    """
    start_time = time.time()
    drug_names = parse_drug_list(drugs)
    engine = engine or RiskEngine()

    parsed = parse_vcf(content)
    if not parsed.success:
        raise VcfRejectedError(parsed.errors)

    results = [
        engine.assess(parsed.variants, drug, vcf_parsing_success=parsed.success)
        for drug in drug_names
    ]

    if explain:
        timeout = get_explanation_config().timeout_seconds
        explanations = await asyncio.gather(*(_explain(r, timeout) for r in results))
        results = [with_explanation(r, e) for r, e in zip(results, explanations)]

    logger.info(
        "Pipeline assessed %d drug(s) over %d variants in %.2fs",
        len(results), len(parsed.variants), time.time() - start_time,
    )
    return AnalysisReport(
        variant_count=len(parsed.variants),
        meta=parsed.meta,
        results=results,
    )
