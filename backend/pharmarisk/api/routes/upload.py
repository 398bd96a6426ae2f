from fastapi import APIRouter, File, HTTPException, UploadFile

from pharmarisk.schemas.pharma_schema import ParseResponse
from pharmarisk.services.vcf.parser import parse_vcf, validate_vcf_file

router = APIRouter()


async def read_vcf_upload(file: UploadFile) -> bytes:
    """
    Apply the upload policy and return the file body.

    When the multipart parser already knows the size, oversized files are
    rejected before the body is read into memory.
    """
    filename = file.filename or ""
    if file.size is not None:
        validation = validate_vcf_file(filename, file.size)
        if not validation.valid:
            raise HTTPException(status_code=400, detail=validation.error)

    content = await file.read()

    validation = validate_vcf_file(filename, len(content))
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)
    return content


@router.post("/", response_model=ParseResponse)
async def upload_vcf(file: UploadFile = File(...)) -> ParseResponse:
    """
    Upload a VCF file and return the parsed variants, metadata and parse errors.

    - **file**: The .vcf file (at most 5 MB) containing variant data.

    Malformed lines do not fail the request; they are listed in `errors`
    and `success` is false.
    """
    content = await read_vcf_upload(file)
    return ParseResponse.from_parse_result(parse_vcf(content))
