"""Waste Estimator - FastAPI Application.

Photo-based municipal waste estimation for Gram Panchayats.
"""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from waste_estimator import __version__
from waste_estimator.api import estimate, estimations, hierarchy
from waste_estimator.core.config import settings
from waste_estimator.core.errors import WasteEstimatorError
from waste_estimator.db.session import get_db

logger = logging.getLogger(__name__)


def _error_body(message: str, details=None) -> dict:
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


async def waste_estimator_error_handler(request: Request, exc: WasteEstimatorError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "form"))
        for err in exc.errors()
    ]
    logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
    details = None if settings.is_production else [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body(f"Missing or invalid fields: {', '.join(fields)}", details),
    )


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.APP_NAME,
        description="Gram Panchayat waste estimation from field photos (Gemini-assisted)",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(WasteEstimatorError, waste_estimator_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(estimate.router)
    app.include_router(estimations.router)
    app.include_router(hierarchy.router)

    @app.get("/")
    async def root():
        """Service identity."""
        return {
            "service": settings.APP_NAME,
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "status": "operational",
        }

    @app.get("/health")
    async def health(db: AsyncSession = Depends(get_db)):
        """Liveness plus a database round trip."""
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check database failure: {e}")
            await db.rollback()
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "database": "unreachable"},
            )
        return {"status": "healthy", "database": "connected"}

    return app


app = create_app()
