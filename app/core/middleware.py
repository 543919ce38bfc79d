# app/core/middleware.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import time
import logging

from app.config.settings import settings

logger = logging.getLogger(__name__)

# Rutas consultadas por el balanceador; no se registran
QUIET_PATHS = {"/health", "/api/v1/health"}


def setup_middleware(app: FastAPI):
    """CORS según configuración y log de cada request con su duración"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        inicio = time.perf_counter()
        response = await call_next(request)
        duracion = time.perf_counter() - inicio

        response.headers["X-Process-Time"] = f"{duracion:.4f}"
        if request.url.path not in QUIET_PATHS:
            logger.info(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {duracion:.4f}s"
            )
        return response
