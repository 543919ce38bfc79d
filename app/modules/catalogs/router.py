# app/modules/catalogs/router.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Literal

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, ROLES_ADMIN, ROLES_TODOS
from .service import CatalogsService
from .schemas import (
    LookupItem, ComercioResponse, CatalogItemResponse, CatalogItemCreate, CatalogItemUpdate
)

router = APIRouter()
admin_router = APIRouter()

Catalogo = Literal["brands", "device-types"]


@router.get("/health")
async def catalogs_health():
    """Health check del módulo de catálogos"""
    return {
        "service": "catalogs",
        "status": "healthy",
        "version": "1.0.0"
    }


# ==================== COMBOS ====================

@router.get("/technicians", response_model=List[LookupItem])
async def get_technicians(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Técnicos activos, ordenados por apellido y nombre"""
    service = CatalogsService(db)
    return await service.get_technicians()


@router.get("/responsibles", response_model=List[LookupItem])
async def get_responsibles(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Empleados activos que pueden quedar como responsables de una orden"""
    service = CatalogsService(db)
    return await service.get_responsibles()


@router.get("/businesses", response_model=List[LookupItem])
async def get_businesses(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_businesses()


@router.get("/comercios", response_model=List[ComercioResponse])
async def get_comercios(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_comercios()


@router.get("/device-types", response_model=List[LookupItem])
async def get_device_types(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_lookup("device-types")


@router.get("/brands", response_model=List[LookupItem])
async def get_brands(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_lookup("brands")


@router.get("/payment-methods", response_model=List[LookupItem])
async def get_payment_methods(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_payment_methods()


@router.get("/invoice-types", response_model=List[LookupItem])
async def get_invoice_types(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_invoice_types()


@router.get("/points-of-sale", response_model=List[LookupItem])
async def get_points_of_sale(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.get_points_of_sale()


# ==================== ADMINISTRACIÓN ====================

@admin_router.get("/{catalogo}", response_model=List[CatalogItemResponse])
async def list_catalog_items(
    catalogo: Catalogo,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Listar marcas o tipos de dispositivo, incluidos los inactivos"""
    service = CatalogsService(db)
    return await service.list_all(catalogo)


@admin_router.post("/{catalogo}", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
async def create_catalog_item(
    catalogo: Catalogo,
    request: CatalogItemCreate,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.create_item(catalogo, request, current_user.user_id)


@admin_router.put("/{catalogo}/{item_id}", response_model=CatalogItemResponse)
async def update_catalog_item(
    catalogo: Catalogo,
    item_id: int,
    request: CatalogItemUpdate,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    service = CatalogsService(db)
    return await service.update_item(catalogo, item_id, request, current_user.user_id)


@admin_router.patch("/{catalogo}/{item_id}/toggle", response_model=CatalogItemResponse)
async def toggle_catalog_item(
    catalogo: Catalogo,
    item_id: int,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Activar o desactivar un elemento del catálogo"""
    service = CatalogsService(db)
    return await service.toggle_item(catalogo, item_id, current_user.user_id)


@admin_router.delete("/{catalogo}/{item_id}")
async def delete_catalog_item(
    catalogo: Catalogo,
    item_id: int,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Eliminar un elemento que no esté usado por ninguna orden"""
    service = CatalogsService(db)
    return await service.delete_item(catalogo, item_id, current_user.user_id)
