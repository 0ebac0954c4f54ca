"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from rulebook_service.core.config import get_settings
from rulebook_service.core.envelope import error
from rulebook_service.core.logging import configure_logging
from rulebook_service.rules import router as rules_router
from rulebook_service.storage import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level)
    logger.info("Starting %s", settings.app_name)

    init_db()

    yield

    logger.info("Shutting down")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed path or query parameters still get the envelope."""
    return error(status.HTTP_400_BAD_REQUEST, f"Invalid request: {exc.errors()}")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown paths and unsupported methods also answer with the envelope."""
    response = error(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.debug("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Unexpected error. {exc}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Management API for rules and rulebooks",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(rules_router)  # /rules, /rulebooks, /validate-when

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": "0.1.0",
            "endpoints": {
                "health": "/health - Liveness check",
                "validate-when": "/validate-when - Check a when clause",
                "rules": "/rules - Rule CRUD",
                "rulebooks": "/rulebooks - Rulebook CRUD, DSL generation and membership",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return Response(status_code=status.HTTP_200_OK)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
