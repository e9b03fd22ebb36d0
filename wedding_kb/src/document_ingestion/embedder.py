from __future__ import annotations

from typing import List, Optional

from wedding_kb.exception.custom_exception import EmbeddingError
from wedding_kb.logger import GLOBAL_LOGGER as log

# Conservative character limit, ~4 chars/token keeps us under the model input limit
MAX_EMBEDDING_CHARS = 8000


def truncate_for_embedding(text: str, max_chars: int = MAX_EMBEDDING_CHARS) -> str:
    """
    Truncate text to fit the embedding model's context window.

    Backtracks to the last space when it falls in the final 20% of the
    window, so words are not cut in half.
    """
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]
    last_space = truncated.rfind(" ")
    if last_space > int(max_chars * 0.8):
        truncated = truncated[:last_space]

    return truncated


class Embedder:
    """
    One text in, one vector out, via a LangChain `Embeddings` model.

    Failures surface as EmbeddingError; the caller decides whether to skip.
    Nothing is retried here.
    """

    def __init__(self, model, dimensions: Optional[int] = None, max_chars: int = MAX_EMBEDDING_CHARS):
        self.model = model
        self.dimensions = dimensions
        self.max_chars = max_chars

    async def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        payload = truncate_for_embedding(text, self.max_chars)
        if len(payload) < len(text):
            log.warning(
                "Embedding input truncated; only the start of the text is embedded",
                original=len(text),
                kept=len(payload),
                max_chars=self.max_chars,
            )

        try:
            vector = await self.model.aembed_query(payload)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}", e) from e

        vector = [float(v) for v in vector]
        if self.dimensions is not None and len(vector) != self.dimensions:
            raise EmbeddingError(
                f"Unexpected embedding dimension: expected {self.dimensions}, got {len(vector)}"
            )
        return vector
