"""
FastAPI application entry point.

Sets up logging, the error handler and the plan skeleton router.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from runplan import __version__
from runplan.core.config import settings
from runplan.core.exceptions import APIException
from runplan.core.logging import setup_logging
from runplan.routers import plan_skeleton
from runplan.services.plan_framework import ConfigService
import logging

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    description="Periodized training-plan skeletons with guardrail validation",
    version=settings.API_VERSION or __version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Consistent error body for application errors."""
    logger.info(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}",
        extra={"extra_fields": {"error_code": exc.error_code, "path": request.url.path}},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.body())


app.include_router(plan_skeleton.router)


@app.get("/health")
async def health():
    """Simple health check for load balancers and uptime monitors."""
    rules_loaded = ConfigService.get("plan_rules") is not None
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "rules_loaded": rules_loaded,
    }
