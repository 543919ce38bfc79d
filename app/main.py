# app/main.py
import asyncio
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.config.settings import settings
from app.config.database import SessionLocal
from app.core.middleware import setup_middleware
from app.api.v1.router import api_router
from app.modules.orders.cache import order_cache, run_refresh_loop

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _warm_up_cache():
    db = SessionLocal()
    try:
        order_cache.warm_up(db)
    except Exception:
        logger.exception("No se pudo precargar el cache de órdenes, se carga bajo demanda")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 FastService API Starting...")
    logger.info(f"📍 Version: {settings.version}")
    logger.info(f"🌍 Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"🔐 JWT Algorithm: {settings.algorithm}")
    logger.info(f"⏰ Token Expire: {settings.access_token_expire_minutes} minutes")
    logger.info(f"🗄️  Database: {settings.database_host}")

    refresh_task = None
    if settings.order_cache_enabled:
        await asyncio.to_thread(_warm_up_cache)
        refresh_task = asyncio.create_task(run_refresh_loop(settings.order_cache_refresh_seconds))

    yield

    # Shutdown
    if refresh_task is not None:
        refresh_task.cancel()
        try:
            await refresh_task
        except asyncio.CancelledError:
            logger.info("Tarea de refresco del tablero detenida")
    logger.info("🛑 FastService API Shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Gestión de órdenes de reparación, clientes, contabilidad y avisos por WhatsApp",
    docs_url="/docs",
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

setup_middleware(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "message": "🚀 FastService API - Servicio técnico",
        "version": settings.version,
        "status": "running",
        "environment": "production" if not settings.debug else "development",
        "docs": "/docs",
        "api": "/api/v1"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.version,
        "app": settings.app_name,
        "environment": "production" if not settings.debug else "development"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
