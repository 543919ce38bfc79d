# app/modules/whatsapp/service.py
import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from urllib.parse import quote

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.modules.orders.schemas import OrderDetails, OrderMovement
from app.modules.orders.service import OrdersService
from app.shared.database.models import WhatsAppTemplate
from .repository import WhatsAppRepository
from .schemas import (
    TemplateCreateRequest, TemplateUpdateRequest, TemplateResponse,
    GeneratedMessageResponse, PlaceholderInfo
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")
SIN_DATO = "N/A"

PLACEHOLDERS = {
    "ticket": "Número de orden",
    "cliente": "Nombre del cliente",
    "cliente_completo": "Nombre y apellido del cliente",
    "presupuesto": "Importe presupuestado",
    "monto_final": "Importe final cobrado",
    "dispositivo": "Tipo de dispositivo",
    "marca": "Marca del equipo",
    "modelo": "Modelo del equipo",
    "fecha_ingreso": "Fecha de ingreso de la orden",
    "fecha_estado": "Fecha de la última modificación de la orden",
    "ultima_novedad": "Observación de la novedad más reciente",
    "reparacion": "Descripción del trabajo realizado",
    "estado": "Estado actual de la orden",
}


def format_moneda(valor) -> str:
    """Formato de moneda es-AR: $ 1.234,56"""
    if valor is None:
        return SIN_DATO
    texto = f"{Decimal(str(valor)):,.2f}"
    return "$ " + texto.replace(",", "_").replace(".", ",").replace("_", ".")


def format_fecha(valor: Optional[datetime]) -> str:
    return valor.strftime("%d/%m/%Y") if valor else SIN_DATO


def normalize_phone(telefono: Optional[str], country_code: str = "54") -> Optional[str]:
    """Dejar solo dígitos, quitar el 0 inicial y anteponer el código de país"""
    if not telefono:
        return None
    digits = re.sub(r"\D", "", telefono)
    if digits.startswith("0"):
        digits = digits[1:]
    if not digits:
        return None
    if not digits.startswith(country_code):
        digits = country_code + digits
    return digits


def build_whatsapp_url(phone: Optional[str], message: str) -> Optional[str]:
    if not phone:
        return None
    return f"https://wa.me/{phone}?text={quote(message)}"


def render_template(mensaje: str, valores: Dict[str, str]) -> str:
    """Reemplazar {{placeholder}}; los desconocidos quedan como están"""
    def reemplazar(match):
        clave = match.group(1).lower()
        if clave in valores:
            return valores[clave]
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(reemplazar, mensaje)


def build_values(order: OrderDetails, movements: List[OrderMovement]) -> Dict[str, str]:
    """Valores de cada placeholder para una orden"""
    customer = order.customer
    device = order.device
    repair = order.repair

    fecha_estado = order.modified_at or order.created_at

    # movements viene del más viejo al más nuevo
    ultima = movements[-1] if movements else None
    ultima_novedad = ((ultima.observacion if ultima else None) or "").strip() or "sin novedades"

    nombre_completo = " ".join(p for p in [customer.nombre, customer.apellido] if p)

    return {
        "ticket": str(order.order_number),
        "cliente": customer.nombre or "Cliente",
        "cliente_completo": nombre_completo or "Cliente",
        "presupuesto": format_moneda(repair.presupuesto),
        "monto_final": format_moneda(repair.precio),
        "dispositivo": device.tipo_dispositivo or SIN_DATO,
        "marca": device.marca or SIN_DATO,
        "modelo": device.modelo or SIN_DATO,
        "fecha_ingreso": format_fecha(order.created_at),
        "fecha_estado": format_fecha(fecha_estado),
        "ultima_novedad": ultima_novedad,
        "reparacion": repair.reparacion_desc or SIN_DATO,
        "estado": order.status,
    }


def to_response(template: WhatsAppTemplate) -> TemplateResponse:
    return TemplateResponse(
        whatsapp_template_id=template.whatsapp_template_id,
        nombre=template.nombre,
        descripcion=template.descripcion,
        estado_reparacion_id=template.estado_reparacion_id,
        estado_reparacion=template.estado_reparacion.nombre if template.estado_reparacion else None,
        tipo_template=template.tipo_template,
        mensaje=template.mensaje,
        activo=bool(template.activo),
        orden=template.orden or 0,
        es_default=bool(template.es_default),
        creado_en=template.creado_en,
        modificado_en=template.modificado_en
    )


class WhatsAppService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = WhatsAppRepository(db)

    # ===== PLANTILLAS =====

    async def list_templates(self, include_inactive: bool = False) -> List[TemplateResponse]:
        return [to_response(t) for t in self.repository.get_templates(include_inactive)]

    def _get_or_404(self, template_id: int) -> WhatsAppTemplate:
        template = self.repository.get_template(template_id)
        if template is None:
            raise HTTPException(status_code=404, detail=f"Plantilla {template_id} no encontrada")
        return template

    async def get_template(self, template_id: int) -> TemplateResponse:
        return to_response(self._get_or_404(template_id))

    async def get_templates_for_state(self, estado_reparacion_id: int) -> List[TemplateResponse]:
        return [to_response(t) for t in self.repository.get_templates_for_state(estado_reparacion_id)]

    def _default_for_state(self, estado_reparacion_id: int) -> Optional[WhatsAppTemplate]:
        templates = self.repository.get_templates_for_state(estado_reparacion_id)
        for template in templates:
            if template.es_default:
                return template
        # sin predeterminada: la de menor orden
        return min(templates, key=lambda t: (t.orden or 0, t.whatsapp_template_id)) if templates else None

    async def get_default_for_state(self, estado_reparacion_id: int) -> TemplateResponse:
        template = self._default_for_state(estado_reparacion_id)
        if template is None:
            raise HTTPException(
                status_code=404,
                detail=f"No hay plantillas activas para el estado {estado_reparacion_id}"
            )
        return to_response(template)

    async def get_reminders(self) -> List[TemplateResponse]:
        return [to_response(t) for t in self.repository.get_reminders()]

    def _validar_estado(self, estado_reparacion_id: Optional[int]):
        if estado_reparacion_id is not None and not self.repository.estado_exists(estado_reparacion_id):
            raise HTTPException(status_code=400, detail=f"Estado {estado_reparacion_id} inexistente")

    async def create_template(self, request: TemplateCreateRequest, user_id: int) -> TemplateResponse:
        data = request.dict()
        if data["estado_reparacion_id"] == 0:
            data["estado_reparacion_id"] = None
        self._validar_estado(data["estado_reparacion_id"])

        if data["es_default"]:
            self.repository.clear_defaults(data["estado_reparacion_id"], data["tipo_template"])

        template = self.repository.create_template({**data, "creado_por": user_id, "creado_en": datetime.now()})
        logger.info(f"Plantilla de WhatsApp '{template.nombre}' creada por usuario {user_id}")
        return to_response(template)

    async def update_template(self, template_id: int, request: TemplateUpdateRequest, user_id: int) -> TemplateResponse:
        template = self._get_or_404(template_id)
        cambios = request.dict(exclude_unset=True)

        if "estado_reparacion_id" in cambios:
            if cambios["estado_reparacion_id"] == 0:
                cambios["estado_reparacion_id"] = None
            self._validar_estado(cambios["estado_reparacion_id"])

        for campo in ("nombre", "mensaje"):
            if campo in cambios:
                if cambios[campo] is None or not cambios[campo].strip():
                    raise HTTPException(status_code=400, detail=f"El campo {campo} no puede estar vacío")
                cambios[campo] = cambios[campo].strip()

        for campo, valor in cambios.items():
            if valor is None and campo not in ("descripcion", "estado_reparacion_id"):
                continue
            setattr(template, campo, valor)

        if template.es_default:
            self.repository.clear_defaults(
                template.estado_reparacion_id, template.tipo_template, except_id=template.whatsapp_template_id
            )

        template.modificado_en = datetime.now()
        template.modificado_por = user_id
        template = self.repository.save(template)
        logger.info(f"Plantilla de WhatsApp {template_id} actualizada por usuario {user_id}")
        return to_response(template)

    async def delete_template(self, template_id: int, user_id: int) -> dict:
        template = self._get_or_404(template_id)
        self.repository.delete_template(template)
        logger.info(f"Plantilla de WhatsApp {template_id} eliminada por usuario {user_id}")
        return {"success": True, "message": "Plantilla eliminada"}

    # ===== GENERACIÓN DE MENSAJES =====

    async def _render_for_order(self, template: WhatsAppTemplate, numero: int) -> GeneratedMessageResponse:
        orders = OrdersService(self.db)
        order = await orders.get_order(numero)
        movements = await orders.get_movements(numero)

        message = render_template(template.mensaje, build_values(order, movements))
        phone = normalize_phone(
            order.customer.celular or order.customer.telefono,
            settings.whatsapp_country_code
        )

        return GeneratedMessageResponse(
            template_id=template.whatsapp_template_id,
            template_name=template.nombre,
            order_number=numero,
            message=message,
            phone=phone,
            whatsapp_url=build_whatsapp_url(phone, message)
        )

    async def generate_message(self, template_id: int, numero: int) -> GeneratedMessageResponse:
        return await self._render_for_order(self._get_or_404(template_id), numero)

    async def generate_default_message(self, numero: int) -> GeneratedMessageResponse:
        """Mensaje con la plantilla predeterminada del estado actual de la orden"""
        order = await OrdersService(self.db).get_order(numero)
        template = self._default_for_state(order.status_id)
        if template is None:
            raise HTTPException(
                status_code=404,
                detail=f"No hay plantilla para el estado {order.status} de la orden #{numero}"
            )
        return await self._render_for_order(template, numero)

    async def get_placeholders(self) -> List[PlaceholderInfo]:
        return [
            PlaceholderInfo(placeholder=f"{{{{{clave}}}}}", description=descripcion)
            for clave, descripcion in PLACEHOLDERS.items()
        ]
