# app/modules/clients/schemas.py
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


class ClientListItem(BaseModel):
    cliente_id: int
    dni: Optional[int] = None
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    celular: Optional[str] = None
    direccion: Optional[str] = None
    localidad: Optional[str] = None
    order_count: int = 0
    last_order_date: Optional[datetime] = None


class ClientListResponse(BaseModel):
    items: List[ClientListItem]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class AddressDetails(BaseModel):
    direccion_id: int
    calle: Optional[str] = None
    altura: Optional[str] = None
    calle2: Optional[str] = None
    calle3: Optional[str] = None
    ciudad: Optional[str] = None
    provincia: Optional[str] = None
    codigo_postal: Optional[str] = None
    pais: Optional[str] = None
    comentarios: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None


class ClientAutocomplete(BaseModel):
    """Datos para completar el alta de una orden con un cliente existente"""
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
    address: Optional[AddressDetails] = None


class ClientOrderItem(BaseModel):
    order_number: int
    status: str
    device: str
    created_at: datetime
    delivered_at: Optional[datetime] = None
    presupuesto: Optional[Decimal] = None
    precio: Optional[Decimal] = None


class ClientStats(BaseModel):
    total_orders: int = 0
    completed_orders: int = 0
    pending_orders: int = 0
    total_spent: float = 0.0
    first_order_date: Optional[datetime] = None
    last_order_date: Optional[datetime] = None


class ClientDetails(ClientAutocomplete):
    orders: List[ClientOrderItem]
    stats: ClientStats


class ClientSearchResult(ClientListItem):
    score: float
