from __future__ import annotations

from typing import List

from langchain_text_splitters import RecursiveCharacterTextSplitter

from wedding_kb.exception.custom_exception import ValidationError
from wedding_kb.src.document_ingestion.models import Chunk

SPLITTER_TYPES = ("recursive", "character")


class TextChunker:
    """
    Splits extracted text into ordered, overlapping chunks.

    - recursive: paragraph -> line -> sentence -> word boundaries, then a hard cut
    - character: fixed offsets, stride chunk_size - chunk_overlap, whitespace kept
    """

    def __init__(self, strategy: str = "recursive", chunk_size: int = 5000, chunk_overlap: int = 500):
        if strategy not in SPLITTER_TYPES:
            raise ValidationError(
                f"Unsupported splitter type '{strategy}', expected one of {', '.join(SPLITTER_TYPES)}"
            )
        if chunk_size <= 0:
            raise ValidationError("chunkSize must be a positive integer")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValidationError("chunkOverlap must be >= 0 and smaller than chunkSize")

        self.strategy = strategy
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

        self._splitter = None
        if strategy == "recursive":
            self._splitter = RecursiveCharacterTextSplitter(
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
                separators=["\n\n", "\n", ". ", " ", ""],
            )

    def _fixed_windows(self, text: str) -> List[str]:
        # windows start every chunk_size - chunk_overlap chars; whitespace is kept as-is
        step = self.chunk_size - self.chunk_overlap
        parts = []
        for start in range(0, len(text), step):
            parts.append(text[start : start + self.chunk_size])
            if start + self.chunk_size >= len(text):
                break
        return parts

    def split(self, text: str) -> List[Chunk]:
        if not text or not text.strip():
            return []
        if self._splitter is None:
            parts = self._fixed_windows(text)
        else:
            parts = self._splitter.split_text(text)
        return [Chunk(index=i, text=p) for i, p in enumerate(parts)]
