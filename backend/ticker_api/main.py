"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ticker_api.api import generation, market_data, templates
from ticker_api.core.config import settings
from ticker_api.core.errors import ProviderError
from ticker_api.core.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Ticker Prompt API...")
    settings.log_config_summary()

    yield

    # Shutdown
    logger.info("Shutting down Ticker Prompt API...")


app = FastAPI(
    title=settings.app_name,
    description="Stock analysis prompt templates and resilient market data lookups",
    version=settings.app_version,
    lifespan=lifespan,
)

# Rate Limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Render domain errors as `{error, details}` with their status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.message} ({exc.details or 'no details'})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Invalid input is reported in the same shape as every other error."""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return JSONResponse(
        status_code=400,
        content={
            "error": f"Invalid request: {field or 'body'}",
            "details": first.get("msg", "Validation failed"),
        },
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(market_data.router, prefix="/api")
app.include_router(templates.router, prefix="/api")
app.include_router(generation.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
