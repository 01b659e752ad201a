"""
FastAPI main application.

Cryptofolio backend API.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.config import settings
from cryptofolio.database import create_tables, get_db
from cryptofolio.api import auth_router, portfolio_router, prices_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run on application startup and shutdown."""
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    logger.info(f"Allowed origins: {settings.cors_origins}")
    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")
    yield
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Cryptocurrency portfolio tracking with live THB prices",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(portfolio_router)
app.include_router(prices_router)


def _format_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 with one message per problem."""
    messages = [_format_validation_error(error) for error in exc.errors()]
    logger.info(f"Rejected {request.method} {request.url.path}: {messages}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": messages, "error": "Bad Request"}),
    )


@app.get("/api/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus database connectivity."""
    health_data = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
        "database": "unknown",
    }

    try:
        await db.execute(text("SELECT 1"))
        health_data["database"] = "connected"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        health_data["database"] = "connection_failed"

    return health_data


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Cryptofolio API",
        "docs": "/api/docs",
        "health": "/api/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cryptofolio.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
