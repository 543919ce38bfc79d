# app/modules/clients/__init__.py
"""
Módulo de Clientes

- Listado paginado con búsqueda
- Búsqueda aproximada tolerante a errores de tipeo
- Autocompletado por DNI para el alta de órdenes
- Detalle con historial de órdenes y estadísticas
"""

from .router import router
from .service import ClientsService
from .repository import ClientsRepository

__all__ = [
    "router",
    "ClientsService",
    "ClientsRepository"
]
