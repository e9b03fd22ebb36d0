from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    health,
    metadata,
    pdf_extract,
    podcast_upload,
    vendor_upload,
)
from wedding_kb.exception.custom_exception import KnowledgeBaseException
from wedding_kb.logger import GLOBAL_LOGGER as log


@asynccontextmanager
async def lifespan(app: FastAPI):
    from db.database import init_db

    log.info("Application startup initiated")
    await init_db()
    yield
    log.info("Application shutdown")


app = FastAPI(title="Wedding Knowledge Base Ingestion", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(KnowledgeBaseException)
async def knowledge_base_exception_handler(request: Request, exc: KnowledgeBaseException):
    log.error(
        "Request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.error_message,
    )
    return error_response(exc.status_code, exc.error_message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    log.warning("Request validation failed", path=request.url.path, problems=problems)
    return error_response(400, "Invalid request", problems)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled error", path=request.url.path, error=str(exc))
    return error_response(500, "Internal server error", str(exc))


# Router Registration
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(podcast_upload.router, prefix="/api", tags=["upload"])
app.include_router(vendor_upload.router, prefix="/api", tags=["upload"])
app.include_router(pdf_extract.router, prefix="/api", tags=["extract"])
app.include_router(metadata.router, prefix="/api", tags=["metadata"])


@app.get("/")
async def root():
    return {"message": "Backend is running"}
