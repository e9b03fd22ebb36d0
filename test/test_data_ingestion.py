import asyncio

import pytest

import wedding_kb.src.document_ingestion.data_ingestion as ingestion_mod
from fakes import (
    InMemoryRepository,
    make_embedder,
    make_generator,
    make_pdf,
)
from wedding_kb.exception.custom_exception import ExtractionError
from wedding_kb.src.document_ingestion.data_ingestion import (
    PodcastIngestor,
    VendorIngestor,
    run_in_batches,
)
from wedding_kb.src.document_ingestion.models import (
    ExtractedContent,
    IngestionStage,
    PodcastIngestionOptions,
    UploadedFile,
)

# 25 fixed-width segments -> 25 chunks with chunk_size=10, overlap=0
SEGMENTED_TEXT = "".join(f"seg{i:06d}|" for i in range(25))
CHARACTER_OPTIONS = PodcastIngestionOptions(splitter_type="character", chunk_size=10, chunk_overlap=0)


def _upload(name="ep1.pdf", data=b"%PDF-fake"):
    return UploadedFile(filename=name, content_type="application/pdf", size=len(data), data=data)


@pytest.fixture
def fixed_text(monkeypatch):
    """Replace PDF parsing with a fixed transcript, per filename."""
    texts = {}

    def fake_extract(data, filename, parser="pymupdf"):
        if filename not in texts:
            raise ExtractionError(f"Could not parse {filename} as PDF")
        return ExtractedContent(
            text=texts[filename], source_filename=filename, method=parser, duration_seconds=0.01
        )

    monkeypatch.setattr(ingestion_mod, "extract_pdf_text", fake_extract)
    return texts


# --- run_in_batches -------------------------------------------------------------


def test_run_in_batches_settles_each_batch_before_the_next():
    finished = set()
    active = 0
    peak = 0

    async def worker(i):
        nonlocal active, peak
        batch_start = (i // 3) * 3
        assert all(j in finished for j in range(batch_start))
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.001 * (3 - i % 3))
        active -= 1
        finished.add(i)
        return True

    ok = asyncio.run(run_in_batches(list(range(10)), worker, batch_size=3))

    assert ok == 10
    assert peak <= 3


def test_run_in_batches_counts_failures_without_stopping_siblings():
    seen = []

    async def worker(i):
        seen.append(i)
        if i == 1:
            raise RuntimeError("boom")
        return i != 4

    ok = asyncio.run(run_in_batches(list(range(6)), worker, batch_size=4))

    assert ok == 4
    assert sorted(seen) == list(range(6))


# --- PodcastIngestor ------------------------------------------------------------


def test_podcast_ingest_stores_chunks_and_one_parent(fixed_text):
    fixed_text["ep1.pdf"] = SEGMENTED_TEXT
    repo = InMemoryRepository()
    ingestor = PodcastIngestor(make_embedder(), make_generator(), repo, batch_size=20)

    result = asyncio.run(ingestor.ingest_file(_upload(), CHARACTER_OPTIONS))

    assert result.status == "done"
    assert result.stage == IngestionStage.DONE
    assert result.total_chunks == 25
    assert result.chunks_stored == 25
    assert result.parent_stored is True
    assert len(repo.chunks) == 25
    assert len(repo.parents) == 1

    parent = repo.parents[0]
    assert parent["chunk_id"] == 0
    assert parent["id"] == result.document_id
    assert parent["embedding"] is None
    assert parent["doc_metadata"]["is_parent_document"] is True
    assert parent["source"] == "Venue Secrets With Jane (Wedding Podcast)"

    assert {r["document_id"] for r in repo.chunks} == {result.document_id}
    assert sorted(r["chunk_id"] for r in repo.chunks) == list(range(1, 26))
    first = next(r for r in repo.chunks if r["chunk_id"] == 1)
    assert first["content"] == "seg000000|"
    assert first["title"] == "Venue Secrets With Jane"
    assert first["topic"] == "venue planning"
    assert first["source_type"] == "pdf_podcasts"
    assert first["doc_metadata"]["chunk_index"] == 0
    assert first["doc_metadata"]["total_chunks"] == 25


def test_embedding_text_carries_metadata_context(fixed_text):
    fixed_text["ep1.pdf"] = "seg000000|"
    embedder = make_embedder()
    ingestor = PodcastIngestor(embedder, make_generator(), InMemoryRepository())

    asyncio.run(ingestor.ingest_file(_upload(), CHARACTER_OPTIONS))

    (sent,) = embedder.model.calls
    assert sent.startswith("Wedding Podcast: Venue Secrets With Jane")
    assert "Host/Expert: Jane Host" in sent
    assert sent.endswith("Content: seg000000|")


def test_failed_embeddings_skip_only_those_chunks(fixed_text):
    fixed_text["ep1.pdf"] = SEGMENTED_TEXT
    failing = {"seg000003|", "seg000019|", "seg000022|"}
    embedder = make_embedder(fail_when=lambda text: any(text.endswith(s) for s in failing))
    repo = InMemoryRepository()
    ingestor = PodcastIngestor(embedder, make_generator(), repo, batch_size=20)

    result = asyncio.run(ingestor.ingest_file(_upload(), CHARACTER_OPTIONS))

    assert result.status == "done"
    assert result.chunks_stored == 22
    assert len(repo.chunks) == 22
    assert len(repo.parents) == 1
    assert {r["chunk_id"] for r in repo.chunks} == set(range(1, 26)) - {4, 20, 23}
    # every chunk was attempted, in both batches
    assert len(embedder.model.calls) == 25


def test_failed_inserts_are_counted_like_failed_embeddings(fixed_text):
    fixed_text["ep1.pdf"] = SEGMENTED_TEXT
    repo = InMemoryRepository(fail_chunk_when=lambda row: row["chunk_id"] % 5 == 0)
    ingestor = PodcastIngestor(make_embedder(), make_generator(), repo)

    result = asyncio.run(ingestor.ingest_file(_upload(), CHARACTER_OPTIONS))

    assert result.chunks_stored == 20
    assert len(repo.parents) == 1


def test_parent_failure_keeps_chunk_rows(fixed_text):
    fixed_text["ep1.pdf"] = SEGMENTED_TEXT
    repo = InMemoryRepository(fail_parent=True)
    ingestor = PodcastIngestor(make_embedder(), make_generator(), repo)

    result = asyncio.run(ingestor.ingest_file(_upload(), CHARACTER_OPTIONS))

    assert result.status == "done"
    assert result.parent_stored is False
    assert len(repo.chunks) == 25
    assert repo.parents == []


def test_empty_text_skips_file_and_stores_nothing(fixed_text):
    fixed_text["blank.pdf"] = "  \n "
    repo = InMemoryRepository()
    embedder = make_embedder()
    ingestor = PodcastIngestor(embedder, make_generator(), repo)

    result = asyncio.run(ingestor.ingest_file(_upload("blank.pdf"), CHARACTER_OPTIONS))

    assert result.status == "skipped"
    assert repo.chunks == [] and repo.parents == []
    assert embedder.model.calls == []


def test_extraction_error_fails_only_that_file(fixed_text):
    fixed_text["good.pdf"] = SEGMENTED_TEXT
    repo = InMemoryRepository()
    ingestor = PodcastIngestor(make_embedder(), make_generator(), repo)

    results = asyncio.run(
        ingestor.ingest_files([_upload("broken.pdf"), _upload("good.pdf")], CHARACTER_OPTIONS)
    )

    broken, good = results
    assert broken.status == "failed"
    assert broken.stage == IngestionStage.ERROR
    assert broken.failed_stage == "received"
    assert "broken.pdf" in broken.error
    assert good.status == "done"
    assert len(repo.parents) == 1
    assert len(repo.chunks) == 25


def test_llm_outage_still_ingests_with_fallback_metadata(fixed_text):
    from fakes import failing_llm
    from wedding_kb.src.metadata.metadata_generator import MetadataGenerator

    fixed_text["ep9.pdf"] = SEGMENTED_TEXT
    repo = InMemoryRepository()
    ingestor = PodcastIngestor(make_embedder(), MetadataGenerator(failing_llm()), repo)

    result = asyncio.run(ingestor.ingest_file(_upload("ep9.pdf"), CHARACTER_OPTIONS))

    assert result.status == "done"
    assert result.ai_metadata is False
    assert repo.parents[0]["title"] == "ep9.pdf"
    assert repo.parents[0]["category"] == "expert tips"


def test_real_pdf_end_to_end_through_ingestor():
    data = make_pdf(["Choosing a venue", "Budget for the caterer first"])
    repo = InMemoryRepository()
    ingestor = PodcastIngestor(make_embedder(), make_generator(), repo)
    options = PodcastIngestionOptions(splitter_type="recursive", chunk_size=1000, chunk_overlap=100)

    result = asyncio.run(ingestor.ingest_file(_upload("real.pdf", data), options))

    assert result.status == "done"
    assert result.chunks_stored == 1
    assert "venue" in repo.chunks[0]["content"]


# --- VendorIngestor -------------------------------------------------------------

VENDOR_CSV = (
    "Supplier Name,Category,Counties,Contact Mail,Website,Status\n"
    "Bloom & Co,Florist,Kent,hello@bloom.test,bloom.test,Active\n"
    "Harbour Hall,Venue,,,,\n"
    ",Photographer,Essex,,,\n"
    "Cake Corner,,Surrey,,,\n"
    "Strings Quartet,Music,London,,,Active\n"
).encode("utf-8")


def _csv(name="vendors.csv", data=VENDOR_CSV):
    return UploadedFile(filename=name, content_type="text/csv", size=len(data), data=data)


def test_vendor_rows_missing_required_fields_are_dropped():
    repo = InMemoryRepository()
    ingestor = VendorIngestor(make_embedder(), repo)

    result = asyncio.run(ingestor.ingest_file(_csv()))

    assert result.status == "done"
    assert result.rows_processed == 5
    assert result.vendors_stored == 3
    assert [v["supplier"] for v in sorted(repo.vendors, key=lambda v: v["row_index"])] == [
        "Bloom & Co",
        "Harbour Hall",
        "Strings Quartet",
    ]
    hall = next(v for v in repo.vendors if v["supplier"] == "Harbour Hall")
    assert hall["county"] is None
    assert hall["source_file"] == "vendors.csv"
    assert hall["row_index"] == 1


def test_vendor_embedding_text_uses_defaults():
    embedder = make_embedder()
    data = b"supplier name,category\nHarbour Hall,Venue\n"
    asyncio.run(VendorIngestor(embedder, InMemoryRepository()).ingest_file(_csv(data=data)))

    (sent,) = embedder.model.calls
    assert "Wedding Vendor: Harbour Hall" in sent
    assert "Location: Available" in sent
    assert "Email: Available on request" in sent
    assert "Status: Active" in sent


def test_vendor_embedding_failure_reduces_stored_count():
    embedder = make_embedder(fail_when=lambda text: "Bloom" in text)
    repo = InMemoryRepository()

    result = asyncio.run(VendorIngestor(embedder, repo).ingest_file(_csv()))

    assert result.rows_processed == 5
    assert result.vendors_stored == 2


def test_vendor_empty_file_is_skipped():
    result = asyncio.run(
        VendorIngestor(make_embedder(), InMemoryRepository()).ingest_file(_csv(data=b""))
    )

    assert result.status == "skipped"
    assert result.rows_processed == 0


def test_vendor_ragged_row_does_not_fail_the_file():
    data = (
        b"supplier name,category,counties\n"
        b"Bloom & Co,Florist,Kent\n"
        b"Harbour Hall,Venue,Essex,extra,more\n"
        b"Strings Quartet,Music,London\n"
    )
    repo = InMemoryRepository()

    result = asyncio.run(VendorIngestor(make_embedder(), repo).ingest_file(_csv("v.csv", data)))

    assert result.status == "done"
    assert result.vendors_stored == 2
    assert {v["supplier"] for v in repo.vendors} == {"Bloom & Co", "Strings Quartet"}
