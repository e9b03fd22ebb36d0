from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_metadata_generator
from wedding_kb.exception.custom_exception import ValidationError
from wedding_kb.src.document_ingestion.models import ContentType
from wedding_kb.src.metadata.metadata_generator import MetadataGenerator

router = APIRouter()


class MetadataRequest(BaseModel):
    fullTranscript: Optional[str] = None
    filename: Optional[str] = None
    contentType: ContentType = ContentType.PODCAST


@router.post("/generate-wedding-podcast-metadata")
async def generate_metadata(
    req: MetadataRequest,
    generator: MetadataGenerator = Depends(get_metadata_generator),
):
    if not req.fullTranscript or not req.fullTranscript.strip():
        raise ValidationError("Full transcript is required")

    result = await generator.generate(req.fullTranscript, req.filename, req.contentType)
    return {
        "metadata": result.metadata.model_dump(),
        "transcriptAnalyzed": result.ai_generated,
        "transcriptLength": result.transcript_length,
        "truncated": result.truncated,
    }
