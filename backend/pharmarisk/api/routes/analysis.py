import logging
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from pharmarisk.api.routes.upload import read_vcf_upload
from pharmarisk.schemas.internal_contracts import ExplanationRequest
from pharmarisk.schemas.pharma_schema import AnalysisReport, SupportedDrug
from pharmarisk.services.llm.explanation_service import generate_explanation
from pharmarisk.services.pharmacogenomics.cpic_tables import DRUG_GENE_MAP
from pharmarisk.services.pharmacogenomics.models import LLMExplanation
from pharmarisk.services.pipeline.analysis_pipeline import (
    UnsupportedDrugError,
    VcfRejectedError,
    run_analysis,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/drugs", response_model=List[SupportedDrug])
async def list_supported_drugs() -> List[SupportedDrug]:
    """Drugs the rule engine can assess, with their primary gene."""
    return [SupportedDrug(drug=d, gene=g) for d, g in DRUG_GENE_MAP.items()]


@router.post(
    "/analyze",
    response_model=AnalysisReport,
    status_code=status.HTTP_200_OK,
    summary="Analyze Pharmacogenomic Risk",
    description="Upload a VCF file and list drugs to receive one risk assessment per drug."
)
async def analyze_pharmacogenomics(
    drugs: str = Form(..., description="Comma-separated drug names (e.g., Codeine, Warfarin)"),
    vcf: UploadFile = File(..., description="Patient's VCF file containing genetic variants"),
    explain: bool = Form(True, description="Attach an LLM explanation to each result"),
) -> AnalysisReport:
    """
    Endpoint to trigger the pharmacogenomic analysis pipeline.

    - **drugs**: Target drug names
    - **vcf**: Genetic data file
    - **explain**: Whether to request explanations
    """
    content = await read_vcf_upload(vcf)

    try:
        return await run_analysis(content, drugs, explain=explain)

    except UnsupportedDrugError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except VcfRejectedError as e:
        logger.info("Rejected VCF upload %s: %s", vcf.filename, str(e))
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "VCF parsing failed", "errors": e.errors},
        )
    except Exception as e:
        logger.exception(f"Unexpected error in analysis pipeline: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred during the analysis pipeline."
        )


@router.post("/explain", response_model=LLMExplanation)
async def explain_result(req: ExplanationRequest) -> LLMExplanation:
    """Explanation for one rule engine result; falls back to a template on any LLM failure."""
    return await generate_explanation(req)
