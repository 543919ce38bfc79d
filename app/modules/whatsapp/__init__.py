# app/modules/whatsapp/__init__.py
"""
Módulo de WhatsApp - Avisos a clientes

- Plantillas de mensajes por estado de la orden y recordatorios
- Reemplazo de placeholders ({{ticket}}, {{cliente}}, {{presupuesto}}, ...)
- Enlaces wa.me con el teléfono normalizado del cliente

Arquitectura:
- router.py: Endpoints de plantillas y generación de mensajes
- service.py: Render de plantillas y formato de datos
- repository.py: Acceso a plantillas
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import WhatsAppService
from .repository import WhatsAppRepository

__all__ = [
    "router",
    "WhatsAppService",
    "WhatsAppRepository"
]
