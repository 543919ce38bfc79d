# app/modules/catalogs/service.py
import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.shared.database.models import Marca, TipoDispositivo
from .repository import CatalogsRepository
from .schemas import (
    LookupItem, ComercioResponse, CatalogItemResponse, CatalogItemCreate, CatalogItemUpdate
)

logger = logging.getLogger(__name__)

# Catálogos administrables desde la pantalla de administración
CATALOGOS = {
    "brands": (Marca, "marca_id", "Marca"),
    "device-types": (TipoDispositivo, "tipo_dispositivo_id", "Tipo de dispositivo"),
}


class CatalogsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = CatalogsRepository(db)

    # ===== COMBOS =====

    async def get_technicians(self) -> List[LookupItem]:
        return [LookupItem(id=u.user_id, name=u.nombre_listado) for u in self.repository.get_active_users()]

    async def get_responsibles(self) -> List[LookupItem]:
        return [LookupItem(id=u.user_id, name=u.nombre_listado) for u in self.repository.get_active_users()]

    async def get_businesses(self) -> List[LookupItem]:
        return [LookupItem(id=c.comercio_id, name=c.descripcion) for c in self.repository.get_comercios()]

    async def get_comercios(self) -> List[ComercioResponse]:
        return [
            ComercioResponse(
                comercio_id=c.comercio_id,
                code=c.code,
                descripcion=c.descripcion,
                telefono=c.telefono,
                activo=bool(c.activo)
            )
            for c in self.repository.get_comercios()
        ]

    async def get_payment_methods(self) -> List[LookupItem]:
        return [LookupItem(id=m.metodo_pago_id, name=m.nombre) for m in self.repository.get_payment_methods()]

    async def get_invoice_types(self) -> List[LookupItem]:
        return [LookupItem(id=t.tipo_factura_id, name=t.nombre) for t in self.repository.get_invoice_types()]

    async def get_points_of_sale(self) -> List[LookupItem]:
        return [LookupItem(id=p.punto_de_venta_id, name=p.nombre) for p in self.repository.get_points_of_sale()]

    async def get_lookup(self, catalogo: str) -> List[LookupItem]:
        model, pk, _ = CATALOGOS[catalogo]
        return [LookupItem(id=getattr(i, pk), name=i.nombre) for i in self.repository.list_items(model)]

    # ===== ADMINISTRACIÓN =====

    def _to_response(self, catalogo: str, item) -> CatalogItemResponse:
        _, pk, _ = CATALOGOS[catalogo]
        return CatalogItemResponse(
            id=getattr(item, pk),
            nombre=item.nombre,
            descripcion=item.descripcion,
            activo=bool(item.activo)
        )

    def _get_or_404(self, catalogo: str, item_id: int):
        model, _, etiqueta = CATALOGOS[catalogo]
        item = self.repository.get_item(model, item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"{etiqueta} {item_id} no encontrado")
        return item

    def _check_duplicate(self, catalogo: str, nombre: str, item_id: int = None):
        model, pk, etiqueta = CATALOGOS[catalogo]
        existente = self.repository.find_by_name(model, nombre)
        if existente is not None and getattr(existente, pk) != item_id:
            raise HTTPException(status_code=400, detail=f"{etiqueta} '{nombre}' ya existe")

    async def list_all(self, catalogo: str) -> List[CatalogItemResponse]:
        model, _, _ = CATALOGOS[catalogo]
        return [self._to_response(catalogo, i) for i in self.repository.list_items(model, only_active=False)]

    async def create_item(self, catalogo: str, request: CatalogItemCreate, user_id: int) -> CatalogItemResponse:
        model, _, etiqueta = CATALOGOS[catalogo]
        self._check_duplicate(catalogo, request.nombre)
        item = self.repository.create_item(model, request.dict())
        logger.info(f"{etiqueta} '{item.nombre}' creado por usuario {user_id}")
        return self._to_response(catalogo, item)

    async def update_item(self, catalogo: str, item_id: int, request: CatalogItemUpdate, user_id: int) -> CatalogItemResponse:
        _, _, etiqueta = CATALOGOS[catalogo]
        item = self._get_or_404(catalogo, item_id)
        cambios = request.dict(exclude_unset=True)
        if cambios.get("nombre"):
            cambios["nombre"] = cambios["nombre"].strip()
            self._check_duplicate(catalogo, cambios["nombre"], item_id)
        item = self.repository.update_item(item, cambios)
        logger.info(f"{etiqueta} {item_id} actualizado por usuario {user_id}")
        return self._to_response(catalogo, item)

    async def toggle_item(self, catalogo: str, item_id: int, user_id: int) -> CatalogItemResponse:
        _, _, etiqueta = CATALOGOS[catalogo]
        item = self._get_or_404(catalogo, item_id)
        item = self.repository.update_item(item, {"activo": not item.activo})
        logger.info(f"{etiqueta} {item_id} {'activado' if item.activo else 'desactivado'} por usuario {user_id}")
        return self._to_response(catalogo, item)

    async def delete_item(self, catalogo: str, item_id: int, user_id: int) -> dict:
        model, _, etiqueta = CATALOGOS[catalogo]
        item = self._get_or_404(catalogo, item_id)
        en_uso = self.repository.count_orders_using(model, item_id)
        if en_uso:
            raise HTTPException(
                status_code=409,
                detail=f"{etiqueta} en uso por {en_uso} órdenes; desactívelo en lugar de eliminarlo"
            )
        self.repository.delete_item(item)
        logger.info(f"{etiqueta} {item_id} eliminado por usuario {user_id}")
        return {"success": True, "message": f"{etiqueta} eliminado"}
