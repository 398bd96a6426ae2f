"""
Phenotype Mapper - Gene variant selection, diplotype construction and phenotype lookup.

Diplotypes are built from the star alleles of the first two matched variants in
encounter order and are not canonicalized, so "*4/*1" and "*1/*4" are distinct
lookup keys. Unlisted orderings resolve to Unknown.
"""

import logging
from typing import List, Optional, Sequence

from pharmarisk.services.vcf.parser import VcfVariant

from .cpic_tables import (
    ALLELE_ACTIVITY,
    PHENOTYPE_MAP,
    UNLISTED_ALLELE_ACTIVITY,
)
from .models import DetectedVariant, Phenotype

logger = logging.getLogger(__name__)

WILDTYPE_ALLELE = "*1"
NONE_DETECTED = "none_detected"
UNKNOWN_RSID = "unknown"


def select_gene_variants(variants: Sequence[VcfVariant], gene: str) -> List[VcfVariant]:
    """Variants whose GENE annotation matches ``gene`` (case-insensitive)."""
    target = gene.upper()
    return [v for v in variants if v.gene and v.gene.upper() == target]


def to_detected_variants(variants: Sequence[VcfVariant], gene: str) -> List[DetectedVariant]:
    return [
        DetectedVariant(
            rsid=v.rsid or UNKNOWN_RSID,
            gene=v.gene or gene,
            star_allele=v.star_allele or WILDTYPE_ALLELE,
        )
        for v in variants
    ]


def build_diplotype(star_alleles: Sequence[str]) -> str:
    """
    Pair star alleles into a diplotype string.

    No alleles gives the wildtype "*1/*1", a single allele is paired with "*1",
    and with two or more only the first two are used.
    """
    if len(star_alleles) >= 2:
        return f"{star_alleles[0]}/{star_alleles[1]}"
    if len(star_alleles) == 1:
        return f"{star_alleles[0]}/{WILDTYPE_ALLELE}"
    return f"{WILDTYPE_ALLELE}/{WILDTYPE_ALLELE}"


def lookup_phenotype(gene: str, diplotype: str) -> Phenotype:
    phenotype = PHENOTYPE_MAP.get(gene, {}).get(diplotype)
    if phenotype is None:
        logger.info("No phenotype listed for %s %s, using Unknown", gene, diplotype)
        return Phenotype.UNKNOWN
    return phenotype


def score_diplotype(gene: str, diplotype: str) -> Optional[float]:
    """Sum of allele activity values, or None for genes without an activity table."""
    table = ALLELE_ACTIVITY.get(gene)
    if table is None:
        return None
    alleles = diplotype.split("/")
    if len(alleles) != 2:
        return None
    return round(sum(table.get(a, UNLISTED_ALLELE_ACTIVITY) for a in alleles), 2)


def sentinel_variant(gene: str) -> DetectedVariant:
    return DetectedVariant(rsid=NONE_DETECTED, gene=gene, star_allele=WILDTYPE_ALLELE)
