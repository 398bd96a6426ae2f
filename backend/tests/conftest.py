"""
Shared fixtures for the PharmaRisk test suite.
"""

import random
from datetime import datetime, timezone

import pytest

from pharmarisk.core.config import reset_config, update_config
from pharmarisk.services.pharmacogenomics.risk_engine import RiskEngine
from pharmarisk.services.vcf.parser import VcfVariant

FIXED_NOW = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)

HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO"

SAMPLE_VCF = "\n".join([
    "##fileformat=VCFv4.2",
    "##source=PharmaRiskTest",
    "##reference=GRCh38",
    HEADER,
    "chr22\t42128945\trs3892097\tC\tT\t99\tPASS\tGENE=CYP2D6;STAR=*4",
    "chr22\t42130692\trs1065852\tG\tA\t99\tPASS\tGENE=CYP2D6;STAR=*4",
    "chr10\t94781859\t.\tG\tA\t80\tPASS\tRS=4244285;GENE=CYP2C19;STAR=*2",
    "chr10\t94761900\trs12248560\tC\tT\t75\tPASS\tGENE=CYP2C19;STAR=*17",
    "chr6\t18130918\trs1142345\tT\tC\t60\tPASS\tGENE=TPMT;STAR=*3C",
    "chr1\t97450058\trs3918290\tC\tT\t90\tPASS\tGENE=DPYD;STAR=*2A;DB",
    "",
])


@pytest.fixture(autouse=True)
def isolated_config():
    """Fresh configuration per test; no API key so nothing reaches the network."""
    reset_config()
    update_config(**{"explanation.api_key": ""})
    yield
    reset_config()


@pytest.fixture
def sample_vcf():
    return SAMPLE_VCF


@pytest.fixture
def engine():
    """RiskEngine with seeded randomness and a fixed clock."""
    return RiskEngine(rng=random.Random(1234), clock=lambda: FIXED_NOW)


@pytest.fixture
def make_variant():
    """Factory for VcfVariant records tagged with gene / star allele."""
    def _make(gene=None, star=None, rsid="rs0", pos=100, chrom="chr1"):
        return VcfVariant(
            chrom=chrom,
            pos=pos,
            id=rsid or ".",
            ref="A",
            alt="G",
            qual="50",
            filter="PASS",
            info={},
            rsid=rsid,
            gene=gene,
            star_allele=star,
        )
    return _make
