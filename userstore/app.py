"""Application factory: wires settings, storage, use cases and routers."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from userstore.core.config import Settings, get_settings
from userstore.core.logging_setup import setup_logging
from userstore.repositories.json_storage import UserFileRepository
from userstore.routers import users as users_router
from userstore.services.user_service import UserService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Factory compatible with uvicorn/gunicorn (`uvicorn userstore.app:create_app --factory`).

    The store is opened on startup and closed on shutdown, so building an app
    that is never started holds no file handle.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        repository = UserFileRepository.open(settings.users_file, atomic_writes=settings.atomic_writes)
        app.state.user_repository = repository
        app.state.user_service = UserService(repository)
        logger.info("User store ready (env=%s, file=%s)", settings.app_env, settings.users_file)
        try:
            yield
        finally:
            logger.info("Closing user store %s", repository.path)
            app.state.user_service = None
            repository.close()

    app = FastAPI(title="User Store API", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(users_router.router)
    return app
