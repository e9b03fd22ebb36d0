from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from wedding_kb.exception.custom_exception import (
    EmbeddingError,
    KnowledgeBaseException,
    PersistenceError,
)
from wedding_kb.logger import GLOBAL_LOGGER
from wedding_kb.src.document_ingestion.embedder import Embedder
from wedding_kb.src.document_ingestion.models import (
    Chunk,
    ExtractedContent,
    FileIngestionResult,
    IngestionStage,
    MetadataResult,
    PodcastIngestionOptions,
    UploadedFile,
    VendorFileResult,
)
from wedding_kb.src.document_ingestion.text_splitter import TextChunker
from wedding_kb.src.metadata.metadata_generator import MetadataGenerator
from wedding_kb.utils.document_ops import extract_csv_rows, extract_pdf_text
from wedding_kb.utils.thread_pool import run_sync

BATCH_SIZE = 20

PODCAST_DOC_TYPE = "Wedding Podcast"
PODCAST_GENRE = "Wedding Planning"
PODCAST_SOURCE_TYPE = "pdf_podcasts"

T = TypeVar("T")


def generate_document_id() -> str:
    """Shared identifier for a parent record and all of its chunk rows."""
    return f"wedding_podcast_{int(time.time() * 1000)}_{uuid.uuid4().hex[:10]}"


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[bool]],
    batch_size: int = BATCH_SIZE,
    logger=None,
) -> int:
    """
    Run `worker` over `items` in fixed-size batches and return how many succeeded.

    Batches run one after another; items inside a batch run concurrently and
    every one of them settles before the next batch starts. A worker that
    returns False or raises counts as a failure and does not affect its
    siblings.
    """
    log = logger or GLOBAL_LOGGER
    succeeded = 0
    total_batches = (len(items) + batch_size - 1) // batch_size

    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        batch_num = start // batch_size + 1

        results = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)

        batch_ok = 0
        for offset, outcome in enumerate(results):
            if isinstance(outcome, BaseException):
                log.error(
                    "Batch item raised",
                    item=start + offset,
                    error=f"{type(outcome).__name__}: {outcome}",
                )
            elif outcome is True:
                batch_ok += 1

        succeeded += batch_ok
        log.info(
            "Batch settled",
            batch=f"{batch_num}/{total_batches}",
            succeeded=batch_ok,
            failed=len(batch) - batch_ok,
        )

    return succeeded


def podcast_embedding_text(meta: MetadataResult, chunk: Chunk) -> str:
    m = meta.metadata
    return (
        f"Wedding Podcast: {m.title}\n"
        f"Host/Expert: {m.author}\n"
        f"Category: {m.category}\n"
        f"Audience: {m.audience}\n"
        f"Content: {chunk.text}"
    )


def build_chunk_row(
    document_id: str,
    filename: str,
    chunk: Chunk,
    total_chunks: int,
    meta: MetadataResult,
    extracted: ExtractedContent,
    embedding: List[float],
) -> Dict[str, Any]:
    m = meta.metadata
    return {
        "document_id": document_id,
        "content": chunk.text,
        "doc_metadata": {
            **m.model_dump(),
            "chunk_index": chunk.index,
            "total_chunks": total_chunks,
            "filename": filename,
            "parser_used": extracted.method,
            "parse_time": extracted.duration_seconds,
            "page_count": extracted.page_count,
            "ai_generated": meta.ai_generated,
            "transcript_length": len(extracted.text),
        },
        "embedding": embedding,
        "title": m.title,
        "author": m.author,
        "doc_type": PODCAST_DOC_TYPE,
        "genre": PODCAST_GENRE,
        "topic": m.category,
        "difficulty": "General",
        "tags": m.tags,
        "source_type": PODCAST_SOURCE_TYPE,
        "summary": m.summary,
        "chunk_id": chunk.index + 1,
        "total_chunks": total_chunks,
        "source": filename,
        "category": m.category,
    }


def build_parent_row(
    document_id: str,
    filename: str,
    total_chunks: int,
    meta: MetadataResult,
    extracted: ExtractedContent,
) -> Dict[str, Any]:
    m = meta.metadata
    return {
        "id": document_id,
        "document_id": document_id,
        "content": f"{PODCAST_DOC_TYPE}: {m.title} - {total_chunks} chunks",
        "doc_metadata": {
            **m.model_dump(),
            "is_parent_document": True,
            "chunk_count": total_chunks,
            "processing_time": extracted.duration_seconds,
            "text_length": len(extracted.text),
            "ai_generated_metadata": meta.ai_generated,
            "original_filename": filename,
        },
        "embedding": None,
        "title": m.title,
        "author": m.author,
        "doc_type": PODCAST_DOC_TYPE,
        "genre": PODCAST_GENRE,
        "topic": m.category,
        "difficulty": "General",
        "tags": m.tags,
        "source_type": PODCAST_SOURCE_TYPE,
        "summary": m.summary,
        "chunk_id": 0,
        "total_chunks": total_chunks,
        "source": f"{m.title} ({PODCAST_DOC_TYPE})",
        "category": m.category,
    }


class PodcastIngestor:
    """
    Ingest podcast transcript PDFs into `documents_enhanced`.

    Per file: received -> extracted -> metadata_ready -> chunked -> storing
    -> parent_record_stored -> done. Any stage may end in `error`, which
    stops that file only. Empty text or zero chunks end the file as skipped.
    """

    def __init__(
        self,
        embedder: Embedder,
        metadata_generator: MetadataGenerator,
        repository,
        batch_size: int = BATCH_SIZE,
        logger=None,
    ):
        self.embedder = embedder
        self.metadata_generator = metadata_generator
        self.repository = repository
        self.batch_size = batch_size
        self.log = logger or GLOBAL_LOGGER

    def _advance(self, result: FileIngestionResult, stage: IngestionStage, **fields) -> None:
        result.stage = stage
        self.log.info("Stage transition", file=result.filename, stage=stage.value, **fields)

    async def ingest_file(
        self, upload: UploadedFile, options: PodcastIngestionOptions, chunker: Optional[TextChunker] = None
    ) -> FileIngestionResult:
        chunker = chunker or TextChunker(options.splitter_type, options.chunk_size, options.chunk_overlap)
        result = FileIngestionResult(filename=upload.filename)
        self._advance(result, IngestionStage.RECEIVED, size=upload.size)

        try:
            extracted: ExtractedContent = await run_sync(
                extract_pdf_text, upload.data, upload.filename, options.pdf_parser
            )
            if not extracted.text.strip():
                self.log.warning("No text extracted, skipping file", file=upload.filename)
                result.status = "skipped"
                result.error = "No text content could be extracted"
                return result
            self._advance(result, IngestionStage.EXTRACTED, chars=len(extracted.text))

            meta = await self.metadata_generator.generate(extracted.text, upload.filename)
            result.ai_metadata = meta.ai_generated
            self._advance(result, IngestionStage.METADATA_READY, title=meta.metadata.title)

            chunks = await run_sync(chunker.split, extracted.text)
            if not chunks:
                self.log.warning("No chunks created, skipping file", file=upload.filename)
                result.status = "skipped"
                result.error = "No chunks could be created"
                return result
            result.total_chunks = len(chunks)
            self._advance(result, IngestionStage.CHUNKED, chunks=len(chunks))

            document_id = generate_document_id()
            result.document_id = document_id
            self._advance(result, IngestionStage.STORING, document_id=document_id)

            async def store_chunk(chunk: Chunk) -> bool:
                try:
                    embedding = await self.embedder.embed(podcast_embedding_text(meta, chunk))
                    await self.repository.insert_chunk(
                        build_chunk_row(
                            document_id, upload.filename, chunk, len(chunks), meta, extracted, embedding
                        )
                    )
                    return True
                except (EmbeddingError, PersistenceError) as e:
                    self.log.warning(
                        "Chunk skipped",
                        file=upload.filename,
                        chunk=chunk.index,
                        error=e.error_message,
                    )
                    return False

            result.chunks_stored = await run_in_batches(chunks, store_chunk, self.batch_size, self.log)

            try:
                await self.repository.insert_parent(
                    build_parent_row(document_id, upload.filename, len(chunks), meta, extracted)
                )
                result.parent_stored = True
                self._advance(result, IngestionStage.PARENT_RECORD_STORED)
            except PersistenceError as e:
                # stored chunk rows are kept; there is no cross-row transaction
                self.log.error(
                    "Failed to store parent document record",
                    file=upload.filename,
                    document_id=document_id,
                    error=e.error_message,
                )

            result.status = "done"
            self._advance(
                result,
                IngestionStage.DONE,
                chunks_stored=result.chunks_stored,
                total_chunks=result.total_chunks,
            )
            return result

        except KnowledgeBaseException as e:
            return self._fail(result, e.error_message)
        except Exception as e:
            self.log.exception("Unexpected error processing file", file=upload.filename)
            return self._fail(result, str(e))

    def _fail(self, result: FileIngestionResult, message: str) -> FileIngestionResult:
        result.status = "failed"
        result.error = message
        result.failed_stage = result.stage.value
        self.log.error(
            "File ingestion failed",
            file=result.filename,
            failed_stage=result.failed_stage,
            error=message,
        )
        result.stage = IngestionStage.ERROR
        return result

    async def ingest_files(
        self, uploads: Sequence[UploadedFile], options: PodcastIngestionOptions
    ) -> List[FileIngestionResult]:
        # built up front so bad parameters fail the request before any file work
        chunker = TextChunker(options.splitter_type, options.chunk_size, options.chunk_overlap)
        results = []
        for upload in uploads:
            results.append(await self.ingest_file(upload, options, chunker))
        return results


def vendor_embedding_text(row: Dict[str, str]) -> str:
    return (
        f"Wedding Vendor: {row.get('supplier name')}\n"
        f"Category: {row.get('category')}\n"
        f"Location: {row.get('counties') or 'Available'}\n"
        f"Email: {row.get('contact mail') or 'Available on request'}\n"
        f"Website: {row.get('website') or 'Contact for details'}\n"
        f"Status: {row.get('status') or 'Active'}"
    )


class VendorIngestor:
    """Ingest CSV vendor lists into `wedding_vendors`, one row per valid CSV line."""

    REQUIRED_COLUMNS = ("supplier name", "category")

    def __init__(self, embedder: Embedder, repository, batch_size: int = BATCH_SIZE, logger=None):
        self.embedder = embedder
        self.repository = repository
        self.batch_size = batch_size
        self.log = logger or GLOBAL_LOGGER

    async def ingest_file(self, upload: UploadedFile) -> VendorFileResult:
        result = VendorFileResult(filename=upload.filename)
        try:
            rows = await run_sync(extract_csv_rows, upload.data, upload.filename)
        except KnowledgeBaseException as e:
            result.error = e.error_message
            self.log.error("Vendor file failed", file=upload.filename, error=e.error_message)
            return result

        if not rows:
            result.status = "skipped"
            result.error = "No vendor rows found"
            self.log.warning("No valid vendor rows, skipping file", file=upload.filename)
            return result

        async def store_vendor(item: tuple[int, Dict[str, str]]) -> bool:
            row_index, row = item
            missing = [c for c in self.REQUIRED_COLUMNS if not row.get(c)]
            if missing:
                self.log.warning(
                    "Skipping vendor row: missing required fields",
                    file=upload.filename,
                    row=row_index,
                    missing=", ".join(missing),
                )
                return False
            try:
                embedding = await self.embedder.embed(vendor_embedding_text(row))
                await self.repository.insert_vendor(
                    {
                        "supplier": row["supplier name"],
                        "category": row["category"],
                        "county": row.get("counties") or None,
                        "email": row.get("contact mail") or None,
                        "website": row.get("website") or None,
                        "status": row.get("status") or None,
                        "rmw_url": row.get("rmw url") or None,
                        "embedding": embedding,
                        "source_file": upload.filename,
                        "row_index": row_index,
                    }
                )
            except (EmbeddingError, PersistenceError) as e:
                self.log.warning(
                    "Vendor row skipped", file=upload.filename, row=row_index, error=e.error_message
                )
                return False
            self.log.debug(
                "Stored vendor", supplier=row["supplier name"], category=row["category"]
            )
            return True

        result.rows_processed = len(rows)
        result.vendors_stored = await run_in_batches(
            list(enumerate(rows)), store_vendor, self.batch_size, self.log
        )
        result.status = "done"

        if result.vendors_stored == 0:
            self.log.warning(
                "No vendors were stored. Check CSV format and data.", file=upload.filename
            )
        self.log.info(
            "Vendor file processed",
            file=upload.filename,
            processed=result.rows_processed,
            stored=result.vendors_stored,
        )
        return result

    async def ingest_files(self, uploads: Sequence[UploadedFile]) -> List[VendorFileResult]:
        results = []
        for upload in uploads:
            results.append(await self.ingest_file(upload))
        return results
