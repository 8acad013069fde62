import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from virtyum import __version__
from virtyum.config import settings
from virtyum.database import store
from virtyum.error_handlers import register_error_handlers
from virtyum.logging_config import setup_logging
from virtyum.middleware import TimingMiddleware
from virtyum.routers import health, services, tasks

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: an unreachable store aborts the process.
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    await store.ensure_connected()
    logger.info("Virtyum API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await store.dispose()
    logger.info("Virtyum API stopped")

app = FastAPI(
    title="Virtyum API",
    description="Catalog of marketing services and internal tasks",
    version=__version__,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    # Credentials are never combined with a wildcard origin.
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS and "*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(health.router)
app.include_router(services.router)
app.include_router(tasks.router)


def run() -> None:
    """Console entry point: serve the app on ``settings.HOST:settings.PORT``."""
    uvicorn.run("virtyum.main:app", host=settings.HOST, port=settings.PORT)
