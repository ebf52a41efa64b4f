"""
Learning Pathway Studio - FastAPI application.

Run locally with ``python -m learnpath.main`` or ``uvicorn learnpath.main:app``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnpath.api.errors import register_exception_handlers
from learnpath.api.middleware.request_id import RequestIdMiddleware
from learnpath.api.v1 import router as api_v1_router
from learnpath.config import get_settings
from learnpath.database import close_db, init_db
from learnpath.logging_config import configure_logging, get_logger
from learnpath.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

DESCRIPTION = """
Author learning pathways as graphs of modules.

- **Pathways** are owned by their author and readable by everyone
- **Modules** declare prerequisites as alternative groups of module keys
  (all keys of any one group unlock the module)
- Every change is validated against the whole graph: no missing keys,
  no cycles, no prerequisite already implied by another one
- Generated titles, concepts, prerequisites, content and full structures go
  through the same validation when applied
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )
    logger.info(
        "Starting %s v%s",
        settings.project_name,
        settings.version,
        extra={"generation_configured": settings.generation_configured},
    )
    await init_db()

    yield

    await close_db()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.project_name,
        description=DESCRIPTION,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Added last = outermost, so CORS headers also land on error responses
    application.add_middleware(RequestIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(application)

    @application.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        return HealthResponse(
            version=settings.version,
            generation_configured=settings.generation_configured,
        )

    application.include_router(api_v1_router, prefix=settings.api_v1_prefix)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "learnpath.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
