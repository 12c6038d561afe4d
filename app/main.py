"""
Bookgen FastAPI application.

``create_app()`` wires settings, CORS, request timing, error envelopes and the
routers; the module-level ``app`` is what uvicorn serves.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import close_db, init_db
from app.routers import documents, generation, health, jobs
from app.services.job_queue import GenerationQueue
from app.services.pipeline import DocumentPipeline

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Polled by the frontend every few seconds.
_QUIET_PATHS = frozenset({"/", "/api/health/"})

_DESCRIPTION = """\
**Bookgen** turns a topic into a multi-chapter book or a research paper,
rendered as PDF or DOCX.

- `POST /api/generateBookSmall`: 5-chapter beginner book
- `POST /api/generateBookMed`, `/api/generateBookLong`: 10-chapter books
- `POST /api/generateResearchPaper`, `/api/generateResearchPaperLong`: research papers
- `GET /api/documents/{user_id}`: generated document history
- `GET /api/jobs/{user_id}`: queue status
"""


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

def _prepare_directories() -> None:
    for label, path in (("Work", settings.WORK_DIR), ("Output", settings.OUTPUT_DIR)):
        os.makedirs(path, exist_ok=True)
        logger.info("✓ %s directory: %s", label, os.path.abspath(path))


def _report_completion_credential() -> None:
    if not settings.COMPLETION_API_KEY:
        logger.warning("⚠ COMPLETION_API_KEY is not set; every generation request will fail")
        return
    logger.info(
        "✓ Completion API: %s (%s)", settings.COMPLETION_BASE_URL, settings.COMPLETION_MODEL
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Bookgen backend starting (log level %s)", settings.LOG_LEVEL)

    try:
        await init_db()
    except Exception as exc:
        logger.error("✗ Metadata store unreachable: %s", exc)
        raise
    _report_completion_credential()
    _prepare_directories()

    queue = GenerationQueue(DocumentPipeline().run, max_tracked=settings.MAX_TRACKED_JOBS)
    app.state.generation_queue = queue
    logger.info(
        "Bookgen backend ready on http://%s:%d (docs at /docs)", settings.HOST, settings.PORT
    )

    yield

    logger.info("Bookgen backend stopping, %d job(s) still queued", queue.queued_count)
    await queue.close()
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Middleware & error envelopes
# ---------------------------------------------------------------------------

async def _time_request(request: Request, call_next):
    """Log method, path, status and duration; expose the duration as ``X-Process-Time``."""
    started = time.monotonic()
    response = await call_next(request)
    duration_ms = round((time.monotonic() - started) * 1000, 2)

    if request.url.path not in _QUIET_PATHS:
        logger.info(
            "%s %s -> %d in %.2f ms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
    response.headers["X-Process-Time"] = f"{duration_ms}ms"
    return response


async def _http_error(request: Request, exc: StarletteHTTPException):
    # The frontend reads ``error``; ``detail`` keeps FastAPI clients working.
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "error": "Missing or invalid request fields",
        },
    )


async def _unhandled_error(request: Request, exc: Exception):
    logger.error(
        "Unhandled %s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": request.url.path,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    application = FastAPI(
        title="Bookgen API",
        description=_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    application.middleware("http")(_time_request)

    application.add_exception_handler(StarletteHTTPException, _http_error)
    application.add_exception_handler(RequestValidationError, _validation_error)
    application.add_exception_handler(Exception, _unhandled_error)

    application.include_router(health.router, prefix="/api/health", tags=["Health"])
    application.include_router(generation.router, prefix="/api", tags=["Generation"])
    application.include_router(documents.router, prefix="/api", tags=["Documents"])
    application.include_router(jobs.router, prefix="/api", tags=["Jobs"])

    @application.get("/", tags=["Root"], include_in_schema=False)
    async def root():
        return {
            "name": "Bookgen API",
            "version": API_VERSION,
            "docs": "/docs",
            "health": "/api/health/",
            "books": ["/api/generateBookSmall", "/api/generateBookMed", "/api/generateBookLong"],
            "research": ["/api/generateResearchPaper", "/api/generateResearchPaperLong"],
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=True)
