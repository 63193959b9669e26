#backend/app/main.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.api.errors import register_exception_handlers
from backend.app.api.routes import api_router
from backend.app.config import configure_logging, settings
from backend.app.core.container import get_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_services().db.init_db()
    logger.info("API started env=%s", settings.APP_ENV)
    yield


class EvaluationApp:
    def __init__(self):
        configure_logging()
        self.app = FastAPI(
            title="CV AI Evaluation API",
            description="Backend for scoring candidate CVs and project reports against internal rubrics.",
            version="1.0.0",
            lifespan=lifespan,
        )
        self._configure_cors()
        register_exception_handlers(self.app)
        self.include_routers()

    def _configure_cors(self):
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins(),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def include_routers(self):
        self.app.include_router(api_router)

def get_app():
    """Entrypoint for ASGI"""
    return EvaluationApp().app

# Run with 'uvicorn backend.app.main:app'
app = get_app()
