from functools import lru_cache

from db.document_repository import DocumentRepository
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.src.document_ingestion.data_ingestion import PodcastIngestor, VendorIngestor
from wedding_kb.src.document_ingestion.embedder import Embedder
from wedding_kb.src.metadata.metadata_generator import MetadataGenerator
from wedding_kb.utils.config_loader import get_config
from wedding_kb.utils.model_loader import ModelLoader


@lru_cache(maxsize=1)
def get_model_loader() -> ModelLoader:
    return ModelLoader(get_config())


@lru_cache(maxsize=1)
def get_embedder() -> Embedder:
    cfg = get_config()["embedding_model"]
    return Embedder(
        get_model_loader().load_embeddings(),
        dimensions=cfg.get("dimensions"),
        max_chars=cfg.get("max_chars", 8000),
    )


@lru_cache(maxsize=1)
def get_metadata_generator() -> MetadataGenerator:
    max_chars = get_config().get("ingestion", {}).get("max_transcript_chars", 15000)
    return MetadataGenerator(get_model_loader().load_llm("metadata"), max_chars=max_chars, logger=log)


@lru_cache(maxsize=1)
def get_repository() -> DocumentRepository:
    # imported here so the engine is only created when a route needs the database
    from db.database import AsyncSessionLocal

    return DocumentRepository(AsyncSessionLocal)


def _batch_size() -> int:
    return get_config().get("ingestion", {}).get("batch_size", 20)


def get_podcast_ingestor() -> PodcastIngestor:
    return PodcastIngestor(
        embedder=get_embedder(),
        metadata_generator=get_metadata_generator(),
        repository=get_repository(),
        batch_size=_batch_size(),
        logger=log,
    )


def get_vendor_ingestor() -> VendorIngestor:
    return VendorIngestor(
        embedder=get_embedder(),
        repository=get_repository(),
        batch_size=_batch_size(),
        logger=log,
    )
