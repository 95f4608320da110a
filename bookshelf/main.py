# bookshelf/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .catalog import catalog_router
from .config import Settings, configure_logging, get_settings
from .database import get_engine, init_db
from .errors import register_exception_handlers


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(get_engine())
    logger.info("Database ready")
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Personal book catalogue: titles, authors, tags and covers.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Base route for a quick liveness check
    @app.get("/")
    def health_check():
        return {"status": "ok", "message": f"{settings.app_name} is running"}

    app.include_router(catalog_router)
    return app


app = create_app()
