# app/modules/accounting/__init__.py
"""
Módulo de Contabilidad - Ventas del servicio técnico

- Resumen de ventas con y sin factura (hoy, semana, mes, año)
- Series para gráficos por hora, día de la semana, día del mes o mes
- Movimientos de ventas filtrables y paginados

Arquitectura:
- router.py: Endpoints de contabilidad
- service.py: Agregaciones por período
- repository.py: Consultas sobre ventas
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import AccountingService
from .repository import AccountingRepository

__all__ = [
    "router",
    "AccountingService",
    "AccountingRepository"
]
