from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db

from .api.enrollments import router as enrollments_router
from .api.network import router as network_router
from .api.recruiters import router as recruiters_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Enrollment Network Dashboard API",
        version=getattr(settings, "app_version", "0.1.0"),
    )

    # --- CORS ---
    allow_origins = getattr(settings, "cors_allow_origins", ["*"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Startup ---
    @app.on_event("startup")
    def _startup() -> None:
        # Creates tables for all registered SQLModel models (idempotent)
        init_db()

    # --- Friendly error envelope ---
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):  # noqa: ANN001
        detail = getattr(exc, "detail", None) or "HTTP error"
        return JSONResponse(status_code=getattr(exc, "status_code", 500), content={"detail": detail})

    # --- Health / meta ---
    @app.get("/health", tags=["meta"])
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "env": getattr(settings, "env", "local"),
            "api_base": settings.public_api_base,
        }

    @app.get("/version", tags=["meta"])
    def version() -> Dict[str, Any]:
        return {"version": getattr(settings, "app_version", "0.1.0")}

    # --- API routers ---
    app.include_router(enrollments_router)
    app.include_router(recruiters_router)
    app.include_router(network_router)

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(level=getattr(logging, str(settings.log_level).upper(), logging.INFO))
    import uvicorn

    logger.info("Starting %s %s (env=%s)", settings.app_name, settings.app_version, settings.env)

    # NOTE: init_db is handled by the FastAPI startup hook.
    uvicorn.run(
        "enrollment_dashboard.main:app",
        host=getattr(settings, "host", "127.0.0.1"),
        port=int(getattr(settings, "port", 8000)),
        reload=bool(getattr(settings, "reload", False)),
    )
