"""FastAPI backend for the LogHub log ingestion and query service."""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
import os
import time as _time

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from api.errors import LogHubError
from api.log_store import init_log_tables, ping
from api.project_database import init_project_tables
from api.routers import analyze, logs, projects
from api.schemas import HealthResponse

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# --------------- Rate limiter ---------------

limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])

app = FastAPI(title="LogHub API", version=VERSION)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Initialize database on startup (SQLite or PostgreSQL via DATABASE_URL)
# Retry while the database comes up alongside the API
for _attempt in range(5):
    try:
        init_project_tables()
        init_log_tables()
        break
    except Exception as _e:
        if _attempt < 4:
            logger.warning("Database init failed (attempt %d/5): %s", _attempt + 1, _e)
            _time.sleep(2)
        else:
            raise

# --------------- Error responses ---------------


@app.exception_handler(LogHubError)
async def loghub_error_handler(request: Request, exc: LogHubError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": problems or "Invalid request"},
    )


# --------------- Request size limit middleware ---------------

# Bulk ingestion bodies can be large; 200 MB default
MAX_REQUEST_BYTES = int(os.getenv("MAX_REQUEST_BYTES", str(200 * 1024 * 1024)))

class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and int(content_length) > MAX_REQUEST_BYTES:
            return Response(
                content='{"error":"validation_error","detail":"Request body too large"}',
                status_code=413,
                media_type="application/json",
            )
        return await call_next(request)

app.add_middleware(RequestSizeLimitMiddleware)

# --------------- CORS ---------------

_default_origins = "http://localhost:3000,http://localhost:5173"
_origins = os.getenv("CORS_ORIGINS", _default_origins).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _origins],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "content-type"],
)

# --------------- Routers ---------------

app.include_router(analyze.router)
app.include_router(logs.router)
app.include_router(projects.router)


@app.get("/")
async def root():
    return {
        "message": "LogHub API Server",
        "version": VERSION,
        "status": "running",
        "endpoints": {
            "health": "/api/health",
            "projects": "/api/projects",
            "logs": "/api/logs/{projectId}",
        },
    }


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    connected = await asyncio.to_thread(ping)
    return HealthResponse(
        status="ok",
        database="connected" if connected else "disconnected",
        version=VERSION,
    )
