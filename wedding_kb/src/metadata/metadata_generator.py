from __future__ import annotations

from typing import Dict, Optional

from langchain_core.output_parsers import StrOutputParser

from wedding_kb.exception.custom_exception import UpstreamMetadataError
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.prompts.prompt_library import PROMPT_REGISTRY
from wedding_kb.src.document_ingestion.models import (
    ContentType,
    MetadataRecord,
    MetadataResult,
)

MAX_TRANSCRIPT_CHARS = 15000

METADATA_FIELDS = ("title", "author", "summary", "tags", "tone", "audience", "category")

DEFAULT_FILENAME = {
    ContentType.PODCAST: "Wedding Podcast Episode",
    ContentType.VENDOR: "Wedding Vendor Listing",
}

# `title` is absent here: it falls back to the filename, then to these titles
FALLBACK_TITLES = {
    ContentType.PODCAST: "Wedding Planning Podcast Episode",
    ContentType.VENDOR: "Wedding Vendor Directory",
}

FALLBACK_METADATA: Dict[ContentType, Dict[str, str]] = {
    ContentType.PODCAST: {
        "author": "Wedding Planning Expert",
        "summary": "Wedding planning advice and tips for engaged couples.",
        "tags": "wedding planning, advice, tips",
        "tone": "conversational",
        "audience": "engaged couples",
        "category": "expert tips",
    },
    ContentType.VENDOR: {
        "author": "Wedding Vendor Directory",
        "summary": "Directory of wedding vendors and suppliers.",
        "tags": "wedding vendors, suppliers, directory",
        "tone": "professional",
        "audience": "engaged couples",
        "category": "vendor selection",
    },
}


def fallback_metadata(
    filename: Optional[str], content_type: ContentType = ContentType.PODCAST
) -> MetadataRecord:
    return parse_or_default("", filename, content_type)


def parse_or_default(
    raw_reply: Optional[str],
    filename: Optional[str],
    content_type: ContentType = ContentType.PODCAST,
) -> MetadataRecord:
    """
    Parse a line-oriented `Key: value` model reply into a MetadataRecord.

    Lines without a colon, unknown keys and empty values are ignored. Every
    field left unset takes the fallback for `content_type`, so the result
    always has all seven fields populated.
    """
    parsed: Dict[str, str] = {}
    for line in (raw_reply or "").splitlines():
        if ":" not in line:
            continue
        key, _, value = line.partition(":")
        key = key.strip().lower()
        value = value.strip()
        if key in METADATA_FIELDS and value:
            parsed[key] = value

    fields = dict(FALLBACK_METADATA[content_type])
    fields["title"] = (filename or "").strip() or FALLBACK_TITLES[content_type]
    fields.update(parsed)
    return MetadataRecord(**fields)


class MetadataGenerator:
    """
    Generates a MetadataRecord for extracted text with a hosted chat model.

    The model reply is parsed by parse_or_default(); any upstream failure is
    logged and replaced with the all-fallback record, never raised.
    """

    def __init__(self, llm, max_chars: int = MAX_TRANSCRIPT_CHARS, logger=None):
        self.llm = llm
        self.max_chars = max_chars
        self.log = logger or log

    async def _ask_model(self, text: str, filename: str, content_type: ContentType) -> str:
        prompt = PROMPT_REGISTRY[f"{content_type.value}_metadata"]
        chain = prompt | self.llm | StrOutputParser()
        try:
            return await chain.ainvoke({"text": text, "filename": filename})
        except Exception as e:
            raise UpstreamMetadataError("Metadata model call failed", e) from e

    async def generate(
        self,
        text: str,
        filename: Optional[str] = None,
        content_type: ContentType = ContentType.PODCAST,
    ) -> MetadataResult:
        truncated = len(text) > self.max_chars
        body = text[: self.max_chars]
        prompt_filename = filename or DEFAULT_FILENAME[content_type]

        self.log.info(
            "Generating metadata",
            file=prompt_filename,
            content_type=content_type.value,
            chars=len(body),
            truncated=truncated,
        )

        ai_generated = True
        try:
            reply = await self._ask_model(body, prompt_filename, content_type)
        except UpstreamMetadataError as e:
            self.log.warning(
                "Metadata generation failed, using fallback metadata",
                file=prompt_filename,
                error=e.details or e.error_message,
            )
            reply = ""
            ai_generated = False

        metadata = parse_or_default(reply, filename, content_type)
        self.log.info(
            "Metadata ready",
            file=prompt_filename,
            title=metadata.title,
            author=metadata.author,
            category=metadata.category,
            tags_count=len(metadata.tags.split(",")),
        )
        return MetadataResult(
            metadata=metadata,
            transcript_length=len(text),
            truncated=truncated,
            ai_generated=ai_generated,
        )
