from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from pharmarisk.services.pharmacogenomics.models import PharmaGuardResult
from pharmarisk.services.vcf.parser import VcfParseResult


class VariantRecordOut(BaseModel):
    chrom: str
    pos: int
    id: str
    ref: str
    alt: str
    qual: str
    filter: str
    info: Dict[str, str] = {}
    rsid: Optional[str] = None
    gene: Optional[str] = None
    star_allele: Optional[str] = None


class ParseResponse(BaseModel):
    success: bool
    variant_count: int
    variants: List[VariantRecordOut] = []
    errors: List[str] = []
    meta: Dict[str, str] = {}

    @classmethod
    def from_parse_result(cls, parsed: VcfParseResult) -> "ParseResponse":
        return cls(
            success=parsed.success,
            variant_count=len(parsed.variants),
            variants=[
                VariantRecordOut(
                    chrom=v.chrom, pos=v.pos, id=v.id, ref=v.ref, alt=v.alt,
                    qual=v.qual, filter=v.filter, info=dict(v.info),
                    rsid=v.rsid, gene=v.gene, star_allele=v.star_allele,
                )
                for v in parsed.variants
            ],
            errors=list(parsed.errors),
            meta=dict(parsed.meta),
        )


class SupportedDrug(BaseModel):
    drug: str
    gene: str


class AnalysisReport(BaseModel):
    """One parsed file assessed against one or more drugs."""
    variant_count: int = Field(..., description="Variants parsed from the file")
    meta: Dict[str, str] = Field(default_factory=dict, description="##key=value file metadata")
    results: List[PharmaGuardResult] = Field(default_factory=list, description="One result per drug, in request order")
