# app/modules/orders/schemas.py
import re
from pydantic import BaseModel, Field, validator
from typing import Optional, List, Literal
from decimal import Decimal, InvalidOperation
from datetime import datetime

from app.shared.schemas.common import BaseResponse


_MILES = re.compile(r"^\d{1,3}(\.\d{3})+$")


def parse_monto(valor) -> Optional[Decimal]:
    """
    Interpretar un importe escrito a mano: "$ 1.234,50", "1234.5", "1.500".
    """
    if valor is None:
        return None
    if isinstance(valor, (int, float, Decimal)):
        return Decimal(str(valor))

    texto = str(valor).replace("$", "").replace(" ", "").strip()
    if not texto:
        return None

    if "," in texto:
        texto = texto.replace(".", "").replace(",", ".")
    elif _MILES.match(texto):
        texto = texto.replace(".", "")

    try:
        return Decimal(texto)
    except InvalidOperation:
        raise ValueError(f"Importe inválido: {valor}")


def naive_local(fecha: Optional[datetime]) -> Optional[datetime]:
    """Las fechas con zona horaria se pasan a hora local sin zona, como las guardadas"""
    if fecha is None or fecha.tzinfo is None:
        return fecha
    return fecha.astimezone().replace(tzinfo=None)


# ===== ALTA Y EDICIÓN =====

class OrderCreateRequest(BaseModel):
    """Alta de una orden de reparación con su cliente"""
    cliente_id: Optional[int] = Field(None, description="Cliente existente")
    dni: Optional[int] = Field(None, gt=0)
    nombre: str = Field(..., min_length=1, max_length=100)
    apellido: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    telefono: Optional[str] = None
    celular: Optional[str] = None
    direccion: Optional[str] = None
    calle: Optional[str] = None
    altura: Optional[str] = None
    ciudad: Optional[str] = None
    provincia: Optional[str] = None
    codigo_postal: Optional[str] = None
    localidad: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None

    tipo_dispositivo_id: int
    marca_id: int
    modelo: Optional[str] = None
    serie: Optional[str] = None
    serbus: Optional[str] = None
    accesorios: Optional[str] = None
    comercio_id: Optional[int] = None

    es_garantia: bool = False
    es_domicilio: bool = False
    nro_referencia: Optional[str] = None
    nro_factura: Optional[str] = None
    fecha_compra: Optional[datetime] = None
    presupuesto: Optional[Decimal] = None

    tecnico_asignado_id: int
    empleado_asignado_id: Optional[int] = Field(None, description="Responsable; por defecto el usuario actual")
    observacion: Optional[str] = Field(None, description="Falla informada por el cliente")

    @validator('presupuesto', pre=True)
    def validate_presupuesto(cls, v):
        return parse_monto(v)

    @validator('nombre', 'apellido')
    def validate_nombre(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()


class OrderUpdateRequest(BaseModel):
    """Edición parcial de una orden"""
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    dni: Optional[int] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    celular: Optional[str] = None
    direccion: Optional[str] = None
    localidad: Optional[str] = None

    tipo_dispositivo_id: Optional[int] = None
    marca_id: Optional[int] = None
    modelo: Optional[str] = None
    serie: Optional[str] = None
    serbus: Optional[str] = None
    accesorios: Optional[str] = None
    comercio_id: Optional[int] = None

    es_garantia: Optional[bool] = None
    es_domicilio: Optional[bool] = None
    nro_referencia: Optional[str] = None
    nro_factura: Optional[str] = None
    fecha_compra: Optional[datetime] = None
    presupuesto: Optional[Decimal] = None
    monto_final: Optional[Decimal] = None

    tecnico_asignado_id: Optional[int] = None
    empleado_asignado_id: Optional[int] = None

    @validator('presupuesto', 'monto_final', pre=True)
    def validate_montos(cls, v):
        return parse_monto(v)


# ===== ACCIONES DEL FLUJO =====

class NovedadCreateRequest(BaseModel):
    tipo_novedad_id: int
    observacion: Optional[str] = None
    monto: Optional[Decimal] = None


class ObservacionRequest(BaseModel):
    observacion: Optional[str] = None


class PresupuestoRequest(BaseModel):
    monto: Decimal = Field(..., gt=0, description="Importe presupuestado")
    observacion: Optional[str] = None

    @validator('monto', pre=True)
    def validate_monto(cls, v):
        return parse_monto(v)


class InformarPresupuestoRequest(BaseModel):
    """Resultado de informar el presupuesto al cliente"""
    accion: Literal["confirma", "acepta", "rechaza"]
    monto: Optional[Decimal] = Field(None, gt=0)
    observacion: Optional[str] = None

    @validator('monto', pre=True)
    def validate_monto(cls, v):
        return parse_monto(v)


class PagoRequest(BaseModel):
    """Cobro asociado a retiro, seña o reparación a domicilio"""
    monto: Decimal = Field(Decimal("0"), ge=0)
    metodo_pago_id: Optional[int] = None
    facturado: bool = False
    tipo_factura_id: Optional[int] = None
    nro_factura: Optional[str] = None
    punto_de_venta_id: Optional[int] = None
    ref_number: Optional[str] = None
    observacion: Optional[str] = None

    @validator('monto', pre=True)
    def validate_monto(cls, v):
        monto = parse_monto(v)
        return monto if monto is not None else Decimal("0")


class ArchivarRequest(BaseModel):
    ubicacion: str = Field(..., min_length=1, max_length=100, description="Estante o caja donde se guarda")
    observacion: Optional[str] = None


class WorkflowActionResponse(BaseResponse):
    order_number: int
    action: str
    previous_status: str
    new_status: str
    novedad_id: int
    monto: Optional[Decimal] = None
    venta_id: Optional[int] = None
    factura_id: Optional[int] = None
    ubicacion: Optional[str] = None


# ===== CONSULTAS =====

class CustomerInfo(BaseModel):
    cliente_id: int
    dni: Optional[int] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    celular: Optional[str] = None
    direccion: Optional[str] = None
    localidad: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None


class DeviceInfo(BaseModel):
    tipo_dispositivo_id: int
    tipo_dispositivo: Optional[str] = None
    marca_id: int
    marca: Optional[str] = None
    modelo: Optional[str] = None
    serie: Optional[str] = None
    serbus: Optional[str] = None
    accesorios: Optional[str] = None


class RepairInfo(BaseModel):
    presupuesto: Optional[Decimal] = None
    presupuesto_fecha: Optional[datetime] = None
    precio: Optional[Decimal] = None
    es_garantia: bool = False
    es_domicilio: bool = False
    nro_referencia: Optional[str] = None
    nro_factura: Optional[str] = None
    fecha_compra: Optional[datetime] = None
    ubicacion: Optional[str] = None
    reparacion_desc: Optional[str] = None
    fecha_entrega: Optional[datetime] = None
    informado_en: Optional[datetime] = None


class OrderDetails(BaseModel):
    order_number: int
    status_id: int
    status: str
    created_at: datetime
    modified_at: Optional[datetime] = None
    customer: CustomerInfo
    device: DeviceInfo
    repair: RepairInfo
    technician_id: int
    technician_name: Optional[str] = None
    responsible_id: int
    responsible_name: Optional[str] = None
    comercio_id: Optional[int] = None
    comercio: Optional[str] = None


class OrderMovement(BaseModel):
    novedad_id: int
    tipo_novedad_id: int
    tipo: Optional[str] = None
    monto: Optional[Decimal] = None
    observacion: Optional[str] = None
    fecha: Optional[datetime] = None
    user_id: int
    usuario: Optional[str] = None


class OrderSearchCriteria(BaseModel):
    order_number: Optional[int] = None
    customer_name: Optional[str] = None
    dni: Optional[int] = None
    address: Optional[str] = None
    technician_name: Optional[str] = None
    status: Optional[str] = None
    statuses: Optional[List[str]] = None
    brand: Optional[str] = None
    device_type: Optional[str] = None
    serial_number: Optional[str] = None
    model: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    max_results: int = Field(500, ge=1, le=5000)

    @validator('from_date', 'to_date')
    def validate_fechas(cls, v):
        return naive_local(v)


class OrderSummary(BaseModel):
    order_number: int
    status: str
    customer_name: str
    dni: Optional[int] = None
    address: Optional[str] = None
    device: str
    technician_name: Optional[str] = None
    created_at: datetime
    presupuesto: Optional[Decimal] = None


class OrderStatusResponse(BaseModel):
    estado_reparacion_id: int
    nombre: str
    descripcion: Optional[str] = None
    categoria: Optional[str] = None


# ===== KANBAN =====

class KanbanRow(BaseModel):
    """Fila plana de una orden abierta, tal como se guarda en el cache"""
    order_number: int
    status: str
    customer_nombre: Optional[str] = None
    customer_apellido: Optional[str] = None
    device_type: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    technician_id: int
    technician_name: Optional[str] = None
    responsible_id: int
    responsible_name: Optional[str] = None
    business_id: Optional[int] = None
    created_at: datetime
    modified_at: Optional[datetime] = None
    informed_at: Optional[datetime] = None
    is_warranty: bool = False
    is_domicile: bool = False


class KanbanCard(BaseModel):
    order_number: int
    status: str
    customer: str
    device: str
    technician_id: int
    technician_name: Optional[str] = None
    responsible_name: Optional[str] = None
    is_warranty: bool = False
    is_domicile: bool = False
    is_reentry: bool = False
    days_since_notification: Optional[int] = None
    last_activity_date: datetime


class KanbanColumn(BaseModel):
    id: str
    name: str
    order_count: int
    orders: List[KanbanCard]


class KanbanBoardResponse(BaseModel):
    columns: List[KanbanColumn]
    total_orders: int
    generated_at: datetime
