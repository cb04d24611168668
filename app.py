from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    load_dotenv("local.env")

    from endpoints.document_endpoints import API_PATH, ALLOWED_METHODS, router as document_router, unsupported_method
    from persistence.errors import PersistenceError, UnsupportedOperation
    from settings import get_settings

    settings = get_settings()

    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=ALLOWED_METHODS,
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        headers = {"Allow": ", ".join(ALLOWED_METHODS)} if isinstance(exc, UnsupportedOperation) else None
        return JSONResponse(exc.to_body(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        # The router answers unknown verbs on the document path with a bare 405.
        if exc.status_code == 405 and request.url.path == API_PATH:
            return await persistence_error_handler(request, unsupported_method(request.method))
        return await http_exception_handler(request, exc)

    app.include_router(document_router)

    return app


app = create_app()
