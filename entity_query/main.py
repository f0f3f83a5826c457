"""
FastAPI application for the entity query service.

Startup builds the tables and the sealed FilterConfig registry; a bad
entity declaration stops the process before it serves traffic.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .config import settings
from .database import engine, init_db
from .wiring.bootstrap import get_registry

logger = logging.getLogger(__name__)

API_TITLE = "Entity Query API"
API_VERSION = "0.1.0"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply ``level`` (default ``settings.log_level``) to the root logger."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the entity registry on startup."""
    configure_logging()
    logger.info("Starting %s %s (database %s)", API_TITLE, API_VERSION, settings.database_url)

    init_db()
    registry = get_registry()
    logger.info("Serving %d entities: %s", len(registry), ", ".join(registry.entities()))

    yield

    logger.info("Stopping %s", API_TITLE)


app = FastAPI(
    title=API_TITLE,
    description="Declarative filtering, sorting and pagination over entity documents",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def service_info():
    """Name, version and the entities this instance serves."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "entities": list(get_registry().entities()),
        "docs": "/docs",
    }


@app.get("/livez")
async def liveness():
    """Process is up; touches nothing else."""
    return {"status": "ok"}


def _ping_database() -> bool:
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1


@app.get("/readyz")
async def readiness():
    """Ready once the document store answers a trivial query."""
    try:
        database_ok = await asyncio.to_thread(_ping_database)
        database = "ok" if database_ok else "error: unexpected response"
    except Exception as e:
        logger.error("Readiness probe could not reach the database: %s", e)
        database_ok = False
        database = f"error: {type(e).__name__}"

    return JSONResponse(
        content={"status": "ok" if database_ok else "unhealthy", "checks": {"database": database}},
        status_code=200 if database_ok else 503,
    )


from .api.v1.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("entity_query.main:app", host=settings.api_host, port=settings.api_port)
