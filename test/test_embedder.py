import asyncio
import logging

import pytest

from fakes import RecordingEmbeddings
from wedding_kb.exception.custom_exception import EmbeddingError
from wedding_kb.src.document_ingestion.embedder import Embedder, truncate_for_embedding


def test_short_text_is_not_truncated():
    assert truncate_for_embedding("hello world", max_chars=100) == "hello world"


def test_truncation_backs_up_to_last_space_near_the_end():
    text = "word " * 40  # 200 chars
    out = truncate_for_embedding(text, max_chars=99)

    assert len(out) <= 99
    assert out.endswith("word")


def test_truncation_hard_cuts_when_no_space_in_window():
    text = "x" * 50 + " " + "y" * 100
    out = truncate_for_embedding(text, max_chars=100)

    assert out == text[:100]


def test_embed_returns_vector_of_configured_size():
    model = RecordingEmbeddings(dim=8)
    vector = asyncio.run(Embedder(model, dimensions=8).embed("Harbour Hall, Venue"))

    assert vector == [0.5] * 8
    assert model.calls == ["Harbour Hall, Venue"]


def test_embed_sends_truncated_text():
    model = RecordingEmbeddings(dim=4)
    asyncio.run(Embedder(model, dimensions=4, max_chars=20).embed("a" * 50))

    assert model.calls == ["a" * 20]


@pytest.mark.parametrize("text", ["", "   \n"])
def test_embed_rejects_empty_text(text):
    model = RecordingEmbeddings()
    with pytest.raises(EmbeddingError):
        asyncio.run(Embedder(model).embed(text))
    assert model.calls == []


def test_embed_wraps_upstream_failure():
    model = RecordingEmbeddings(fail_when=lambda _: True)
    with pytest.raises(EmbeddingError) as exc:
        asyncio.run(Embedder(model, dimensions=4).embed("anything"))

    assert "Simulated rate limit" in exc.value.error_message
    assert exc.value.details == "Simulated rate limit"


def test_embed_rejects_wrong_dimension():
    model = RecordingEmbeddings(dim=3)
    with pytest.raises(EmbeddingError, match="expected 768, got 3"):
        asyncio.run(Embedder(model, dimensions=768).embed("Bloom & Co"))


def test_embed_warns_when_input_is_truncated(caplog):
    caplog.set_level(logging.WARNING, logger="wedding_kb")
    model = RecordingEmbeddings(dim=4)

    asyncio.run(Embedder(model, dimensions=4, max_chars=20).embed("a" * 50))

    (record,) = [r for r in caplog.records if "truncated" in r.getMessage()]
    assert record.levelno == logging.WARNING
    assert "original=50" in record.getMessage()


def test_embed_does_not_warn_for_short_text(caplog):
    caplog.set_level(logging.WARNING, logger="wedding_kb")

    asyncio.run(Embedder(RecordingEmbeddings(dim=4), dimensions=4).embed("short text"))

    assert not [r for r in caplog.records if "truncated" in r.getMessage()]
