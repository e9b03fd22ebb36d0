from __future__ import annotations
from pathlib import Path
from typing import Iterable, List

from fastapi import UploadFile

from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.src.document_ingestion.models import UploadedFile

PDF_MIME_TYPES = {"application/pdf"}
CSV_MIME_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


async def read_uploaded_files(uploaded_files: Iterable[UploadFile]) -> List[UploadedFile]:
    """Read every multipart upload fully into memory."""
    out: List[UploadedFile] = []
    for uf in uploaded_files:
        data = await uf.read()
        name = uf.filename or "file"
        out.append(
            UploadedFile(
                filename=name,
                content_type=uf.content_type,
                size=len(data),
                data=data,
            )
        )
        log.info(
            "Upload received",
            file=name,
            content_type=uf.content_type,
            size_kb=round(len(data) / 1024, 1),
        )
    return out


def is_pdf(f: UploadedFile) -> bool:
    return f.content_type in PDF_MIME_TYPES or Path(f.filename).suffix.lower() == ".pdf"


def is_csv(f: UploadedFile) -> bool:
    return f.content_type in CSV_MIME_TYPES or Path(f.filename).suffix.lower() == ".csv"
