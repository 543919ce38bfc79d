# app/modules/orders/__init__.py
"""
Módulo de Órdenes - Reparaciones y flujo de estados

Este módulo maneja el ciclo de vida de una orden de reparación:
- Ingreso, presupuesto, aceptación o rechazo
- Reparación, retiro con cobro, reingreso y archivo
- Historial de novedades de cada orden
- Tablero Kanban de órdenes abiertas

Arquitectura:
- router.py: Endpoints de órdenes
- service.py: Aplicación de acciones y armado de respuestas
- workflow.py: Tabla de transiciones entre estados
- kanban.py: Agrupación de órdenes en columnas
- cache.py: Cache en memoria de órdenes y del tablero
- repository.py: Acceso a datos de órdenes
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import OrdersService
from .repository import OrdersRepository
from .cache import order_cache

__all__ = [
    "router",
    "OrdersService",
    "OrdersRepository",
    "order_cache"
]
