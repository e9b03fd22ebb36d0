from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile

from wedding_kb.exception.custom_exception import ValidationError
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.utils.document_ops import extract_pdf_text
from wedding_kb.utils.file_io import PDF_MIME_TYPES, read_uploaded_files
from wedding_kb.utils.thread_pool import run_sync

router = APIRouter()


@router.post("/extract-pdf-content")
async def extract_pdf_content(
    file: Optional[UploadFile] = File(None),
    pdfParser: str = Form("pymupdf"),
):
    """Extract text from a single PDF without storing anything."""
    if file is None:
        raise ValidationError("No PDF file provided")
    if file.content_type not in PDF_MIME_TYPES:
        raise ValidationError("File must be a PDF")

    (upload,) = await read_uploaded_files([file])
    extracted = await run_sync(extract_pdf_text, upload.data, upload.filename, pdfParser)

    content = extracted.text.strip()
    if not content:
        raise ValidationError("No text content could be extracted from this PDF")

    log.info("PDF content extracted", file=upload.filename, chars=len(content))
    return {
        "success": True,
        "content": content,
        "metadata": {
            "filename": upload.filename,
            "fileSize": upload.size,
            "extractedLength": len(extracted.text),
            "parserUsed": extracted.method,
            "parseTime": extracted.duration_seconds,
        },
    }
