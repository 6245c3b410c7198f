"""
ProjectHub FastAPI Application - Main entry point.

ProjectHub is the project tracking dashboard of an engineering services
firm. It includes:

- Projects: role-scoped project list, dashboard filters and tabs, edits,
  completion and deletion with the project's equipment
- Recommendation letters: request, reminders and signed letter upload for
  completed projects
- Certificates: completion report of letters received and pending

Endpoints are available under /api/v1/. Uploaded letters are served from
/storage/{bucket}/{path}.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from projecthub.api.v1 import api_router
from projecthub.core.config import settings
from projecthub.core.exceptions import ProjectHubError
from projecthub.db.base import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    # Note: In production, use Alembic migrations instead
    await init_db()
    logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="""
ProjectHub - Project tracking dashboard.

## Modules

- **Projects**: Filtered project lists, tab counts, edits and completion
- **Recommendation letters**: Client testimonial requests and uploads
- **Certificates**: Completion report for letters received and pending
    """,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)

# Public URLs of stored objects
app.mount(
    "/storage",
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="storage",
)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(ProjectHubError)
async def projecthub_exception_handler(request: Request, exc: ProjectHubError):
    """Domain errors keep their status and kind."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "kind": "error"}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "kind": "error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "projecthub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
