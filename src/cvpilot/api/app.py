from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cvpilot.api.routes import router as api_router
from cvpilot.config import get_settings
from cvpilot.core.orchestrator import GenerationOrchestrator
from cvpilot.core.runtime import get_orchestrator
from cvpilot.db.init import init_database
from cvpilot.db.store import StorageWriteError

logger = logging.getLogger(__name__)


def create_app(orchestrator: GenerationOrchestrator | None = None) -> FastAPI:
    settings = get_settings()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.orchestrator = orchestrator

    @app.on_event("startup")
    def _startup() -> None:
        if app.state.orchestrator is None:
            init_database()
            app.state.orchestrator = get_orchestrator()
        app.state.initial_view = app.state.orchestrator.restore()
        logger.info("Workspace restored initial_view=%s", app.state.initial_view)

    @app.exception_handler(StorageWriteError)
    async def _storage_write_failed(request: Request, exc: StorageWriteError) -> JSONResponse:
        return JSONResponse({"detail": "Storage is unavailable", "key": exc.key}, status_code=503)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
