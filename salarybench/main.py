import logging
import json
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from salarybench.core.database import engine, Base
from salarybench.core.config import settings
from salarybench.core.limiter import limiter
from salarybench.routes import analysis, benchmarks, calculator, chat

# Import models so create_all sees every table
from salarybench import models  # noqa: F401

# Configure structured JSON logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(message)s",
)
logger = logging.getLogger(__name__)

_EXTRA_FIELDS = (
    "identity",
    "endpoint",
    "request_count",
    "retry_after_hours",
    "request_path",
    "response_time",
)


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        return json.dumps(log_data)


# Apply JSON formatter to root logger
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
logging.getLogger().handlers = [handler]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Salary Benchmark API")
    if settings.ENVIRONMENT.lower() in {"development", "dev", "testing", "test"}:
        # NOTE: create_all is acceptable for local and test workflows.
        Base.metadata.create_all(bind=engine)
    else:
        logger.info(
            "Skipping schema auto-creation in non-dev environment; run migrations instead"
        )
    yield
    # Shutdown
    logger.info("Shutting down Salary Benchmark API")


app = FastAPI(
    title="Salary Benchmark API",
    description="Anonymized compensation benchmarks, labour-law chat and market analysis",
    version="1.0.0",
    lifespan=lifespan,
)

# Burst throttling on read endpoints; the AI endpoints use the DB-backed window
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware — origins driven by CORS_ORIGINS env var
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path}",
        extra={
            "request_path": str(request.url.path),
            "response_time": f"{process_time:.3f}s",
        },
    )

    return response


# Include routers
app.include_router(benchmarks.router, prefix="/benchmarks", tags=["Benchmarks"])
app.include_router(calculator.router, prefix="/calculator", tags=["Calculator"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "salary-benchmark-api",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/ready")
async def readiness_check():
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "service": "salary-benchmark-api",
            "environment": settings.ENVIRONMENT,
        }
    except Exception:
        return JSONResponse(status_code=503, content={"status": "not_ready"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
