from .parser import FileValidation, VcfParseResult, VcfVariant, parse_vcf, validate_vcf_file

__all__ = [
    "FileValidation",
    "VcfParseResult",
    "VcfVariant",
    "parse_vcf",
    "validate_vcf_file",
]
