# app/modules/whatsapp/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Literal
from datetime import datetime

TipoTemplate = Literal["estado", "recordatorio"]


class TemplateCreateRequest(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = Field(None, max_length=255)
    estado_reparacion_id: Optional[int] = None
    tipo_template: TipoTemplate = "estado"
    mensaje: str = Field(..., min_length=1)
    activo: bool = True
    orden: int = 0
    es_default: bool = False

    @validator('nombre', 'mensaje')
    def validate_texto(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()


class TemplateUpdateRequest(BaseModel):
    """Edición parcial; estado_reparacion_id = 0 quita el estado asociado"""
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    descripcion: Optional[str] = Field(None, max_length=255)
    estado_reparacion_id: Optional[int] = None
    tipo_template: Optional[TipoTemplate] = None
    mensaje: Optional[str] = Field(None, min_length=1)
    activo: Optional[bool] = None
    orden: Optional[int] = None
    es_default: Optional[bool] = None


class TemplateResponse(BaseModel):
    whatsapp_template_id: int
    nombre: str
    descripcion: Optional[str] = None
    estado_reparacion_id: Optional[int] = None
    estado_reparacion: Optional[str] = None
    tipo_template: str
    mensaje: str
    activo: bool
    orden: int
    es_default: bool
    creado_en: Optional[datetime] = None
    modificado_en: Optional[datetime] = None


class GeneratedMessageResponse(BaseModel):
    template_id: int
    template_name: str
    order_number: int
    message: str
    phone: Optional[str] = None
    whatsapp_url: Optional[str] = None


class PlaceholderInfo(BaseModel):
    placeholder: str
    description: str
