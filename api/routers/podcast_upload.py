from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import get_podcast_ingestor
from wedding_kb.exception.custom_exception import KnowledgeBaseException, ValidationError
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.src.document_ingestion.data_ingestion import PodcastIngestor
from wedding_kb.src.document_ingestion.models import PodcastIngestionOptions
from wedding_kb.utils.config_loader import get_config
from wedding_kb.utils.file_io import is_pdf, read_uploaded_files

router = APIRouter()


def _podcast_defaults() -> dict:
    return get_config().get("ingestion", {}).get("podcast", {})


@router.post("/upload-wedding-podcasts")
async def upload_wedding_podcasts(
    files: Optional[List[UploadFile]] = File(None),
    splitterType: Optional[str] = Form(None),
    chunkSize: Optional[int] = Form(None),
    chunkOverlap: Optional[int] = Form(None),
    pdfParser: Optional[str] = Form(None),
    ingestor: PodcastIngestor = Depends(get_podcast_ingestor),
):
    """
    Podcast transcript upload:
      - extract text from each PDF
      - generate AI metadata from the transcript
      - chunk, embed and store every chunk, then one parent record per file
    """
    if not files:
        raise ValidationError("No files provided")

    defaults = _podcast_defaults()
    try:
        options = PodcastIngestionOptions(
            splitter_type=splitterType or defaults.get("splitter_type", "recursive"),
            chunk_size=chunkSize if chunkSize is not None else defaults.get("chunk_size", 5000),
            chunk_overlap=chunkOverlap if chunkOverlap is not None else defaults.get("chunk_overlap", 500),
            pdf_parser=pdfParser or defaults.get("pdf_parser", "pymupdf"),
        )
    except PydanticValidationError as e:
        raise ValidationError("Invalid chunking parameters", e) from e

    uploads = await read_uploaded_files(files)
    pdfs = [f for f in uploads if is_pdf(f)]
    if not pdfs:
        raise ValidationError("Please provide valid PDF files")

    log.info(
        "Wedding podcast upload request",
        files=len(pdfs),
        splitter=options.splitter_type,
        chunk_size=options.chunk_size,
        chunk_overlap=options.chunk_overlap,
        parser=options.pdf_parser,
    )

    results = await ingestor.ingest_files(pdfs, options)

    done = [r for r in results if r.status == "done"]
    skipped = [r for r in results if r.status == "skipped"]
    failed = [r for r in results if r.status == "failed"]

    if not done and failed:
        raise KnowledgeBaseException(
            f"Failed to process wedding podcast files: {'; '.join(f'{r.filename}: {r.error}' for r in failed)}"
        )
    if not done:
        raise ValidationError("No text content could be extracted from the uploaded PDF files")

    chunks_count = sum(r.chunks_stored for r in done)
    log.info("Wedding podcast upload completed", documents=len(done), chunks=chunks_count)

    return {
        "success": True,
        "documentsCount": len(done),
        "chunksCount": chunks_count,
        "message": f"Successfully processed {len(done)} wedding podcast(s) with {chunks_count} chunks",
        "processingInfo": {
            "aiMetadataGenerated": any(r.ai_metadata for r in done),
            "contentType": "wedding_podcasts",
            "totalFiles": len(uploads),
            "successfulFiles": len(done),
            "skippedFiles": [{"filename": r.filename, "reason": r.error} for r in skipped],
            "failedFiles": [
                {"filename": r.filename, "stage": r.failed_stage, "error": r.error} for r in failed
            ],
            "splitterType": options.splitter_type,
            "chunkSize": options.chunk_size,
            "chunkOverlap": options.chunk_overlap,
            "pdfParser": options.pdf_parser,
        },
    }
