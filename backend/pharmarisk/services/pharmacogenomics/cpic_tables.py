"""
cpic_tables.py
==============
Static CPIC-derived lookup tables for the six supported drug-gene pairs.

Tables are built once at import and exposed as read-only mappings, so
concurrent callers can share them without locking.

  DRUG_GENE_MAP      drug -> primary gene
  PHENOTYPE_MAP      gene -> diplotype -> phenotype
  RISK_RULES         drug -> phenotype -> RiskRule
  ALTERNATIVE_DRUGS  drug -> substitute therapies
  ALLELE_ACTIVITY    gene -> star allele -> activity value

Sources: CPIC guidelines (https://cpicpgx.org/genes-drugs/)
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

from .models import Phenotype, RiskLabel, Severity

PM, IM, NM, RM, URM = Phenotype.PM, Phenotype.IM, Phenotype.NM, Phenotype.RM, Phenotype.URM


@dataclass(frozen=True)
class RiskRule:
    label: RiskLabel
    severity: Severity
    confidence: float


DEFAULT_RISK_RULE = RiskRule(RiskLabel.UNKNOWN, Severity.MODERATE, 0.5)

UNKNOWN_GENE = "Unknown"


def _freeze(table: dict) -> Mapping:
    return MappingProxyType({
        k: _freeze(v) if isinstance(v, dict) else v for k, v in table.items()
    })


# ---------------------------------------------------------------------------
# Drug -> gene
# ---------------------------------------------------------------------------

DRUG_GENE_MAP: Mapping[str, str] = _freeze({
    "CODEINE":      "CYP2D6",
    "WARFARIN":     "CYP2C9",
    "CLOPIDOGREL":  "CYP2C19",
    "SIMVASTATIN":  "SLCO1B1",
    "AZATHIOPRINE": "TPMT",
    "FLUOROURACIL": "DPYD",
})

SUPPORTED_DRUGS: Tuple[str, ...] = tuple(DRUG_GENE_MAP)

# Alternate spellings resolved before lookup. Never map to a different drug.
DRUG_ALIASES: Mapping[str, str] = _freeze({
    "FLUOROUACIL":    "FLUOROURACIL",
    "5-FLUOROURACIL": "FLUOROURACIL",
    "5-FU":           "FLUOROURACIL",
})


# ---------------------------------------------------------------------------
# Gene + diplotype -> phenotype
# ---------------------------------------------------------------------------
# One allele ordering per pair; "*4/*1" is not listed and resolves to Unknown.

PHENOTYPE_MAP: Mapping[str, Mapping[str, Phenotype]] = _freeze({
    "CYP2D6": {
        "*1/*1": NM, "*1/*2": NM, "*2/*2": NM,
        "*1/*4": IM, "*1/*5": IM, "*2/*4": IM,
        "*4/*4": PM, "*4/*5": PM, "*5/*5": PM,
        "*1/*1xN": URM, "*2/*2xN": URM,
    },
    "CYP2C9": {
        "*1/*1": NM, "*1/*2": IM, "*1/*3": IM,
        "*2/*2": PM, "*2/*3": PM, "*3/*3": PM,
    },
    "CYP2C19": {
        "*1/*1": NM, "*1/*2": IM, "*1/*3": IM,
        "*2/*2": PM, "*2/*3": PM, "*3/*3": PM,
        "*1/*17": RM, "*17/*17": URM,
    },
    "SLCO1B1": {
        "*1a/*1a": NM, "*1a/*5": IM, "*1a/*15": IM,
        "*5/*5": PM, "*5/*15": PM, "*15/*15": PM,
    },
    "TPMT": {
        "*1/*1": NM, "*1/*2": IM, "*1/*3A": IM, "*1/*3B": IM, "*1/*3C": IM,
        "*2/*2": PM, "*3A/*3A": PM, "*3A/*3C": PM,
    },
    "DPYD": {
        "*1/*1": NM, "*1/*2A": IM, "*1/*13": IM,
        "*2A/*2A": PM, "*2A/*13": PM, "*13/*13": PM,
    },
})


# ---------------------------------------------------------------------------
# Drug + phenotype -> risk
# ---------------------------------------------------------------------------

_SAFE, _ADJUST = RiskLabel.SAFE, RiskLabel.ADJUST_DOSAGE
_TOXIC, _INEFFECTIVE = RiskLabel.TOXIC, RiskLabel.INEFFECTIVE

RISK_RULES: Mapping[str, Mapping[Phenotype, RiskRule]] = _freeze({
    "CODEINE": {
        PM:  RiskRule(_INEFFECTIVE, Severity.HIGH, 0.95),
        IM:  RiskRule(_ADJUST, Severity.MODERATE, 0.88),
        NM:  RiskRule(_SAFE, Severity.NONE, 0.92),
        RM:  RiskRule(_SAFE, Severity.LOW, 0.85),
        URM: RiskRule(_TOXIC, Severity.CRITICAL, 0.93),
    },
    "WARFARIN": {
        PM: RiskRule(_TOXIC, Severity.CRITICAL, 0.94),
        IM: RiskRule(_ADJUST, Severity.HIGH, 0.90),
        NM: RiskRule(_SAFE, Severity.NONE, 0.91),
    },
    "CLOPIDOGREL": {
        PM:  RiskRule(_INEFFECTIVE, Severity.CRITICAL, 0.96),
        IM:  RiskRule(_ADJUST, Severity.HIGH, 0.89),
        NM:  RiskRule(_SAFE, Severity.NONE, 0.92),
        RM:  RiskRule(_SAFE, Severity.NONE, 0.88),
        URM: RiskRule(_SAFE, Severity.NONE, 0.85),
    },
    "SIMVASTATIN": {
        PM: RiskRule(_TOXIC, Severity.HIGH, 0.91),
        IM: RiskRule(_ADJUST, Severity.MODERATE, 0.87),
        NM: RiskRule(_SAFE, Severity.NONE, 0.93),
    },
    "AZATHIOPRINE": {
        PM: RiskRule(_TOXIC, Severity.CRITICAL, 0.97),
        IM: RiskRule(_ADJUST, Severity.HIGH, 0.92),
        NM: RiskRule(_SAFE, Severity.NONE, 0.94),
    },
    "FLUOROURACIL": {
        PM: RiskRule(_TOXIC, Severity.CRITICAL, 0.96),
        IM: RiskRule(_ADJUST, Severity.HIGH, 0.90),
        NM: RiskRule(_SAFE, Severity.NONE, 0.93),
    },
})


# ---------------------------------------------------------------------------
# Substitute therapies (used only when the risk label is not Safe)
# ---------------------------------------------------------------------------

ALTERNATIVE_DRUGS: Mapping[str, Tuple[str, ...]] = _freeze({
    "CODEINE":      ("Morphine (with monitoring)", "Acetaminophen", "NSAIDs"),
    "WARFARIN":     ("Direct oral anticoagulants (DOACs)", "Apixaban", "Rivaroxaban"),
    "CLOPIDOGREL":  ("Prasugrel", "Ticagrelor"),
    "SIMVASTATIN":  ("Pravastatin", "Rosuvastatin (low dose)"),
    "AZATHIOPRINE": ("Mycophenolate mofetil",),
    "FLUOROURACIL": ("Capecitabine (with caution)", "Alternative chemotherapy regimen"),
})


# ---------------------------------------------------------------------------
# Star allele activity values
# ---------------------------------------------------------------------------
# 0 = no function, 0.5 = decreased, 1 = normal, 1.5 = increased.
# Descriptive only; phenotype comes from PHENOTYPE_MAP.

ALLELE_ACTIVITY: Mapping[str, Mapping[str, float]] = _freeze({
    "CYP2D6":  {"*1": 1.0, "*2": 1.0, "*4": 0.0, "*5": 0.0, "*10": 0.25, "*41": 0.5},
    "CYP2C9":  {"*1": 1.0, "*2": 0.5, "*3": 0.1},
    "CYP2C19": {"*1": 1.0, "*2": 0.0, "*3": 0.0, "*17": 1.5},
    "TPMT":    {"*1": 1.0, "*3A": 0.0, "*3C": 0.0},
})

# Activity assumed for an allele missing from its gene's table
UNLISTED_ALLELE_ACTIVITY = 0.5
