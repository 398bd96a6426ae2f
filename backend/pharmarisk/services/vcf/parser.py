from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from pharmarisk.core.config import get_upload_policy

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Constants & Configuration
# ----------------------------------------------------------------------

MIN_DATA_FIELDS = 8
ERROR_SNIPPET_LENGTH = 50

MISSING_HEADER_LINE = "Missing VCF header line (#CHROM...)"
NO_HEADER_FOUND = "No valid VCF header found"
BAD_FORMAT_VERSION = "VCF file format version not v4.x"

_META_RE = re.compile(r"^##([A-Za-z0-9_]+)=(.+)")


@dataclass(frozen=True)
class VcfVariant:
    chrom: str
    pos: int
    id: str
    ref: str
    alt: str
    qual: str
    filter: str
    info: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    rsid: Optional[str] = None
    gene: Optional[str] = None
    star_allele: Optional[str] = None


@dataclass
class VcfParseResult:
    variants: List[VcfVariant] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    meta: Dict[str, str] = field(default_factory=dict)
    header_fields: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors and bool(self.variants)


@dataclass(frozen=True)
class FileValidation:
    valid: bool
    error: Optional[str] = None


def parse_vcf(content: Union[str, bytes]) -> VcfParseResult:
    """
    Parse VCF text into variant records, file metadata and accumulated errors.

    Never raises. Malformed lines are reported in ``errors`` and skipped so one
    bad line does not abort the file. ``success`` is true only when no error was
    recorded and at least one variant was produced.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")

    result = VcfParseResult()
    has_header = False

    for line in _split_lines(content):
        if line.startswith("##"):
            match = _META_RE.match(line)
            if match:
                result.meta[match.group(1)] = match.group(2)
            continue

        if line.startswith("#CHROM"):
            has_header = True
            result.header_fields = line[1:].split("\t")
            continue

        if not has_header:
            result.errors.append(MISSING_HEADER_LINE)
            continue

        variant = _parse_data_line(line, result.errors)
        if variant is not None:
            result.variants.append(variant)

    if not has_header:
        result.errors.append(NO_HEADER_FOUND)

    if not result.meta.get("fileformat", "").startswith("VCFv4"):
        result.errors.append(BAD_FORMAT_VERSION)

    logger.info(
        "Parsed VCF: %d variants, %d errors, %d metadata keys",
        len(result.variants), len(result.errors), len(result.meta),
    )
    return result


def validate_vcf_file(filename: str, size: int) -> FileValidation:
    """Apply the upload acceptance policy before any parsing is attempted."""
    policy = get_upload_policy()
    if not (filename or "").endswith(policy.allowed_extension):
        return FileValidation(False, f"File must have {policy.allowed_extension} extension")
    if size > policy.max_file_bytes:
        limit_mb = policy.max_file_bytes // (1024 * 1024)
        return FileValidation(False, f"File size exceeds {limit_mb}MB limit")
    return FileValidation(True)


def _split_lines(content: str) -> List[str]:
    return [line for line in (raw.strip() for raw in content.split("\n")) if line]


def _parse_data_line(line: str, errors: List[str]) -> Optional[VcfVariant]:
    cols = line.split("\t")
    if len(cols) < MIN_DATA_FIELDS:
        errors.append(
            f"Invalid line (expected >={MIN_DATA_FIELDS} fields): {line[:ERROR_SNIPPET_LENGTH]}"
        )
        return None

    chrom, pos_s, vid, ref, alt, qual, flt, info_s = cols[:MIN_DATA_FIELDS]

    try:
        pos = int(pos_s)
    except ValueError:
        pos = -1
    if pos < 0:
        errors.append(f"Invalid position '{pos_s}': {line[:ERROR_SNIPPET_LENGTH]}")
        return None

    info = _parse_info_field(info_s)

    return VcfVariant(
        chrom=chrom,
        pos=pos,
        id=vid,
        ref=ref,
        alt=alt,
        qual=qual,
        filter=flt,
        info=MappingProxyType(info),
        rsid=_derive_rsid(vid, info),
        gene=info.get("GENE"),
        star_allele=info.get("STAR"),
    )


def _parse_info_field(info: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    if info == ".":
        return out
    for item in info.split(";"):
        if not item:
            continue
        key, _, value = item.partition("=")
        # Bare flags and empty values both read as "true"
        out[key] = value or "true"
    return out


def _derive_rsid(vid: str, info: Mapping[str, str]) -> Optional[str]:
    if vid != ".":
        return vid
    rs = info.get("RS")
    if rs:
        return f"rs{rs}"
    return None
