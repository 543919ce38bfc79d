# app/modules/clients/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, ROLES_ADMIN, ROLES_TODOS
from .service import ClientsService
from .schemas import ClientListResponse, ClientDetails, ClientAutocomplete, ClientSearchResult

router = APIRouter()


@router.get("/health")
async def clients_health():
    """Health check del módulo de clientes"""
    return {
        "service": "clients",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Listado paginado con búsqueda",
            "Autocompletado por DNI",
            "Búsqueda aproximada por nombre, teléfono o dirección"
        ]
    }


@router.get("/", response_model=ClientListResponse)
async def list_clients(
    search: Optional[str] = Query(None, description="DNI exacto o texto en nombre, apellido, mail, dirección o teléfono"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Listado paginado de clientes, los más nuevos primero"""
    service = ClientsService(db)
    return await service.list_clients(search, page, page_size)


@router.get("/fuzzy", response_model=List[ClientSearchResult])
async def fuzzy_search_clients(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """
    Búsqueda aproximada de clientes

    Tolera errores de tipeo y ordena por puntaje; a igual puntaje, primero
    el cliente con la orden más reciente.
    """
    service = ClientsService(db)
    return await service.fuzzy_search(q, limit)


@router.get("/by-dni/{dni}", response_model=ClientAutocomplete)
async def get_client_by_dni(
    dni: str,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Datos de un cliente por DNI para autocompletar el alta de orden"""
    service = ClientsService(db)
    return await service.get_by_dni(dni)


@router.get("/search/{prefix}", response_model=List[ClientAutocomplete])
async def search_clients_by_prefix(
    prefix: str,
    limit: int = Query(10, ge=1, le=50),
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    service = ClientsService(db)
    return await service.search_by_prefix(prefix, limit)


@router.get("/{cliente_id}", response_model=ClientDetails)
async def get_client(
    cliente_id: int,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Detalle del cliente con su dirección, órdenes y estadísticas"""
    service = ClientsService(db)
    return await service.get_client(cliente_id)
