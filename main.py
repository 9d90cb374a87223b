"""Main FastAPI application"""
import logging
import logging.config
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

# Import RichHandler for colored logging
from rich.logging import RichHandler  # noqa: F401

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from config import Settings
from routes import router as api_router
from services.store import ExpenseStore
from services.file_store import JsonFileStore
from services.mongo_store import MongoExpenseStore


def build_logging_config(level: str = "INFO") -> dict:
    """Unified logging configuration: app and uvicorn loggers all go through Rich."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                # RichHandler adds its own time and level columns
                "format": "%(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
                "markup": False,
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": {  # Root logger for our application
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
        },
    }


logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> ExpenseStore:
    """Creates the storage backend selected by STORAGE_BACKEND."""
    if settings.storage_backend == "mongo":
        return MongoExpenseStore(uri=settings.mongo_uri, db_name=settings.db_name)
    return JsonFileStore(settings.data_dir)


def create_app(settings: Optional[Settings] = None, store: Optional[ExpenseStore] = None) -> FastAPI:
    """
    Builds the API application. Pass `store` to inject a ready backend
    (tests use this); otherwise one is built from the settings.
    """
    settings = settings or Settings.from_env()
    store = store or build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup fails (and the server exits non-zero) if storage is unreachable
        logger.info(f"Starting expense tracker with '{store.backend_name}' storage...")
        await store.connect()
        app.state.store = store
        yield  # Application runs here
        await store.close()
        app.state.store = None

    app = FastAPI(
        title="Expense Tracker API",
        description="API for recording expenses and budgets and reporting spending statistics.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Rate limiting applies only when RATE_LIMIT is configured
    default_limits = [settings.rate_limit] if settings.rate_limit else []
    app.state.limiter = Limiter(key_func=get_remote_address, default_limits=default_limits, enabled=bool(default_limits))
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    if default_limits:
        app.add_middleware(SlowAPIMiddleware)

    allow_all = settings.cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, tags=["api"])

    # Mount prebuilt frontend assets (MUST be after API router)
    if os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.debug(f"Static directory '{settings.static_dir}' not found; serving the API only.")

    return app


settings = Settings.from_env()
logging.config.dictConfig(build_logging_config(settings.log_level))
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
