# app/modules/catalogs/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional


class LookupItem(BaseModel):
    """Par id/nombre para combos"""
    id: int
    name: str


class ComercioResponse(BaseModel):
    comercio_id: int
    code: Optional[str] = None
    descripcion: str
    telefono: Optional[str] = None
    activo: bool = True


class CatalogItemResponse(BaseModel):
    """Marca o tipo de dispositivo"""
    id: int
    nombre: str
    descripcion: Optional[str] = None
    activo: bool = True


class CatalogItemCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = Field(None, max_length=255)
    activo: bool = True

    @validator('nombre')
    def validate_nombre(cls, v):
        if not v.strip():
            raise ValueError('El nombre no puede estar vacío')
        return v.strip()


class CatalogItemUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    descripcion: Optional[str] = Field(None, max_length=255)
    activo: Optional[bool] = None
