from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from pharmarisk.core.logging import configure_logging
from pharmarisk.services.pipeline.analysis_pipeline import UnsupportedDrugError, run_analysis

from .parser import parse_vcf, validate_vcf_file

USAGE = "Usage: python -m pharmarisk.services.vcf <path-to.vcf> [--drug NAME ...] [--no-explain]"


def main(argv: list[str]) -> int:
    if len(argv) < 2 or "--help" in argv:
        print(USAGE)
        return 0

    path = Path(argv[1])
    if not path.exists():
        print(f"File not found: {path}")
        return 2

    drugs: list[str] = []
    rest = argv[2:]
    for i, arg in enumerate(rest):
        if arg == "--drug":
            if i + 1 >= len(rest) or rest[i + 1].startswith("--"):
                print("Error: --drug requires a drug name")
                return 2
            drugs.append(rest[i + 1])
    explain = "--no-explain" not in rest

    validation = validate_vcf_file(path.name, path.stat().st_size)
    if not validation.valid:
        print(f"Rejected: {validation.error}")
        return 2

    content = path.read_bytes()
    parsed = parse_vcf(content)
    payload = {
        "success": parsed.success,
        "variant_count": len(parsed.variants),
        "errors": parsed.errors,
        "meta": parsed.meta,
        "genes": sorted({v.gene for v in parsed.variants if v.gene}),
    }

    if parsed.success and drugs:
        try:
            report = asyncio.run(run_analysis(content, drugs, explain=explain))
        except UnsupportedDrugError as e:
            print(f"Error: {e}")
            return 2
        payload["results"] = [r.model_dump(mode="json") for r in report.results]

    print(json.dumps(payload, indent=2))
    return 0 if parsed.success else 1


if __name__ == "__main__":
    configure_logging("WARNING")
    raise SystemExit(main(sys.argv))
