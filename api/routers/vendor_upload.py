from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_vendor_ingestor
from wedding_kb.exception.custom_exception import KnowledgeBaseException, ValidationError
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.src.document_ingestion.data_ingestion import VendorIngestor
from wedding_kb.utils.file_io import is_csv, read_uploaded_files

router = APIRouter()


@router.post("/upload-csv-vendors")
async def upload_csv_vendors(
    files: Optional[List[UploadFile]] = File(None),
    ingestor: VendorIngestor = Depends(get_vendor_ingestor),
):
    if not files:
        raise ValidationError("No CSV files provided")

    uploads = await read_uploaded_files(files)
    csv_files = [f for f in uploads if is_csv(f)]
    if not csv_files:
        raise ValidationError("Please provide valid CSV files")

    log.info("Wedding vendor upload request", files=len(csv_files))
    results = await ingestor.ingest_files(csv_files)

    done = [r for r in results if r.status == "done"]
    skipped = [r for r in results if r.status == "skipped"]
    failed = [r for r in results if r.status == "failed"]

    if failed and not done:
        raise KnowledgeBaseException(
            f"Failed to process vendor files: {'; '.join(f'{r.filename}: {r.error}' for r in failed)}"
        )

    total_processed = sum(r.rows_processed for r in done)
    total_stored = sum(r.vendors_stored for r in done)
    success_rate = f"{round(total_stored / total_processed * 100)}%" if total_processed else "0%"

    log.info(
        "Wedding vendor upload completed",
        processed=total_processed,
        stored=total_stored,
        success_rate=success_rate,
    )

    return {
        "success": True,
        "documentsCount": len(done),
        "vendorsCount": total_stored,
        "message": f"Successfully uploaded {total_stored} wedding vendors",
        "processingInfo": {
            "contentType": "wedding_vendors",
            "totalProcessed": total_processed,
            "totalStored": total_stored,
            "filesProcessed": len(csv_files),
            "successRate": success_rate,
            "skippedFiles": [{"filename": r.filename, "reason": r.error} for r in skipped],
            "failedFiles": [{"filename": r.filename, "error": r.error} for r in failed],
        },
    }
