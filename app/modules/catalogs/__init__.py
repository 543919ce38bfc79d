# app/modules/catalogs/__init__.py
"""
Módulo de Catálogos - Datos de referencia

- Combos: técnicos, responsables, comercios, marcas, tipos de dispositivo,
  métodos de pago, tipos de factura y puntos de venta
- Administración de marcas y tipos de dispositivo

Arquitectura:
- router.py: Endpoints de consulta (router) y de administración (admin_router)
- service.py: Lógica de negocio de catálogos
- repository.py: Acceso a datos
- schemas.py: Modelos de request/response
"""

from .router import router, admin_router
from .service import CatalogsService
from .repository import CatalogsRepository

__all__ = [
    "router",
    "admin_router",
    "CatalogsService",
    "CatalogsRepository"
]
