from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from typing_extensions import Literal

SplitterType = Literal["recursive", "character"]
ParserType = Literal["pymupdf", "pypdf"]


class ContentType(str, Enum):
    PODCAST = "podcast"
    VENDOR = "vendor"


class IngestionStage(str, Enum):
    RECEIVED = "received"
    EXTRACTED = "extracted"
    METADATA_READY = "metadata_ready"
    CHUNKED = "chunked"
    STORING = "storing"
    PARENT_RECORD_STORED = "parent_record_stored"
    DONE = "done"
    ERROR = "error"


class UploadedFile(BaseModel):
    """Raw upload held in memory for the duration of one request."""

    filename: str
    content_type: Optional[str] = None
    size: int
    data: bytes


class ExtractedContent(BaseModel):
    text: str
    source_filename: str
    method: str
    duration_seconds: float
    page_count: Optional[int] = None


class MetadataRecord(BaseModel):
    title: str
    author: str
    summary: str
    tags: str
    tone: str
    audience: str
    category: str


class MetadataResult(BaseModel):
    metadata: MetadataRecord
    transcript_length: int
    truncated: bool
    ai_generated: bool


class Chunk(BaseModel):
    index: int
    text: str


class PodcastIngestionOptions(BaseModel):
    splitter_type: SplitterType = "recursive"
    chunk_size: int = Field(5000, gt=0)
    chunk_overlap: int = Field(500, ge=0)
    pdf_parser: ParserType = "pymupdf"


class FileIngestionResult(BaseModel):
    filename: str
    stage: IngestionStage = IngestionStage.RECEIVED
    status: Literal["done", "skipped", "failed"] = "failed"
    document_id: Optional[str] = None
    chunks_stored: int = 0
    total_chunks: int = 0
    parent_stored: bool = False
    ai_metadata: bool = False
    failed_stage: Optional[str] = None
    error: Optional[str] = None


class VendorFileResult(BaseModel):
    filename: str
    status: Literal["done", "skipped", "failed"] = "failed"
    rows_processed: int = 0
    vendors_stored: int = 0
    error: Optional[str] = None
