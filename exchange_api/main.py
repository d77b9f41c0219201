"""
Exchange Programs API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from exchange_api.api import applications, auth, exchange_programs
from exchange_api.api.errors import register_exception_handlers
from exchange_api.config import settings
from exchange_api.db import init_db, close_db
from exchange_api.version import __version__
import logging
import re


# Custom logging filter to redact sensitive data
class SensitiveDataFilter(logging.Filter):
    """Filter to redact sensitive data from logs"""

    def filter(self, record):
        if hasattr(record, 'msg'):
            msg = str(record.msg)

            # Redact JWT tokens
            if 'eyJ' in msg:
                msg = re.sub(r'eyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*', '[JWT_REDACTED]', msg)

            # Redact password values in JSON/dict representations
            msg = re.sub(
                r"(['\"]password['\"]:\s*['\"])([^'\"]*)(['\"])",
                r"\1[REDACTED]\3",
                msg
            )

            record.msg = msg
        return True


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Add filter to all loggers
for handler in logging.root.handlers:
    handler.addFilter(SensitiveDataFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown"""
    logger.info("🚀 Starting Exchange Programs API")
    logger.info(f"📦 Version: {__version__}")
    logger.info(f"📝 Environment: {settings.environment}")

    await init_db()

    logger.info("✅ Configuration loaded successfully")

    yield

    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title="Exchange Programs API",
    description="Exchange program offerings and student applications",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


# ============================================
# CORS Middleware Configuration
# ============================================

allowed_origins = settings.cors_origin_list

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"✅ CORS configured for origins: {allowed_origins}")

register_exception_handlers(app)

app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(applications.router, prefix="/api", tags=["applications"])
app.include_router(exchange_programs.router, prefix="/api", tags=["exchange-programs"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": "Exchange Programs API",
        "version": __version__,
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health_check():
    """Liveness check - status and timestamp"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment
    }
