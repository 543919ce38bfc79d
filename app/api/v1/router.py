# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.modules.orders import router as orders_router
from app.modules.clients import router as clients_router
from app.modules.accounting import router as accounting_router
from app.modules.whatsapp import router as whatsapp_router
from app.modules.catalogs import router as catalogs_router, admin_router


# Router principal de la API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

api_router.include_router(
    orders_router,
    prefix="/orders",
    tags=["Orders"]
)

api_router.include_router(
    clients_router,
    prefix="/clients",
    tags=["Clients"]
)

api_router.include_router(
    accounting_router,
    prefix="/accounting",
    tags=["Accounting"]
)

api_router.include_router(
    whatsapp_router,
    prefix="/whatsapp",
    tags=["WhatsApp"]
)

api_router.include_router(
    catalogs_router,
    prefix="/catalogs",
    tags=["Catalogs"]
)

api_router.include_router(
    admin_router,
    prefix="/admin",
    tags=["Admin - Catálogos"]
)


@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "FastService API v1",
        "version": "1.0.0",
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "orders": "/api/v1/orders",
            "clients": "/api/v1/clients",
            "accounting": "/api/v1/accounting",
            "whatsapp": "/api/v1/whatsapp",
            "catalogs": "/api/v1/catalogs",
            "admin": "/api/v1/admin"
        }
    }


@api_router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "FastService API",
        "version": "1.0.0",
        "architecture": "modular_monolith",
        "modules": {
            "auth": {"status": "active", "features": ["JWT", "Roles", "Permisos de menú"]},
            "orders": {"status": "active", "features": ["Flujo de estados", "Kanban", "Novedades"]},
            "clients": {"status": "active", "features": ["Búsqueda aproximada", "Autocompletado por DNI"]},
            "accounting": {"status": "active", "features": ["Resumen de ventas", "Gráficos", "Movimientos"]},
            "whatsapp": {"status": "active", "features": ["Plantillas", "Enlaces wa.me"]},
            "catalogs": {"status": "active", "features": ["Listas de selección", "ABM de marcas y tipos"]}
        }
    }
