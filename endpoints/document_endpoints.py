from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from persistence import AsyncDiskDocumentRepository, DocumentService
from persistence.errors import UnsupportedOperation
from settings import get_settings

router = APIRouter(tags=["document"])
logger = logging.getLogger(__name__)

# Centralized settings
SETTINGS = get_settings()
API_PATH = SETTINGS.api_path
BACKUPS_PATH = f"{API_PATH.rstrip('/')}/backups"
DEBUG_LOG_REQUESTS = SETTINGS.debug_log_requests

ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
JSON_MEDIA_TYPE = "application/json; charset=utf-8"

DOCUMENT_REPO = AsyncDiskDocumentRepository(DocumentService.from_settings(SETTINGS))


@router.get(API_PATH)
async def read_document() -> Response:
    snapshot = await DOCUMENT_REPO.read()
    if not snapshot.found:
        return JSONResponse({"message": snapshot.message})
    # Pass the stored bytes through untouched to keep on-disk formatting.
    return Response(content=snapshot.raw, media_type=JSON_MEDIA_TYPE)


@router.post(API_PATH)
async def write_document(request: Request) -> JSONResponse:
    raw = await request.body()
    if DEBUG_LOG_REQUESTS:
        logger.info("WRITE REQUEST: %d bytes from %s", len(raw), request.client.host if request.client else "?")
    result = await DOCUMENT_REPO.write(raw)
    return JSONResponse(result.model_dump(mode="json"))


@router.options(API_PATH)
async def document_options() -> Response:
    # CORS pre-flights are answered by CORSMiddleware before reaching here.
    return Response(status_code=200, headers={"Allow": ", ".join(ALLOWED_METHODS)})


def unsupported_method(method: str) -> UnsupportedOperation:
    # Raised from the app-level 405 handler so every verb outside ALLOWED_METHODS is covered.
    return UnsupportedOperation(
        f"Unsupported request method: {method}",
        allowed_methods=ALLOWED_METHODS,
    )


@router.get(BACKUPS_PATH)
async def list_backups() -> JSONResponse:
    return JSONResponse(await DOCUMENT_REPO.describe_backups())
