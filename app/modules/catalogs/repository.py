# app/modules/catalogs/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Type, Union

from app.shared.database.models import (
    Usuario, Comercio, Marca, TipoDispositivo, MetodoPago,
    TipoFactura, PuntoDeVenta, Reparacion
)

CatalogModel = Union[Type[Marca], Type[TipoDispositivo]]


class CatalogsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active_users(self) -> List[Usuario]:
        """Usuarios activos, técnicos y responsables salen de la misma lista"""
        return self.db.query(Usuario).filter(
            Usuario.activo == True
        ).order_by(Usuario.apellido, Usuario.nombre).all()

    def get_comercios(self, only_active: bool = True) -> List[Comercio]:
        query = self.db.query(Comercio)
        if only_active:
            query = query.filter(Comercio.activo == True)
        return query.order_by(Comercio.descripcion).all()

    def get_payment_methods(self) -> List[MetodoPago]:
        return self.db.query(MetodoPago).filter(
            MetodoPago.activo == True
        ).order_by(MetodoPago.nombre).all()

    def get_invoice_types(self) -> List[TipoFactura]:
        return self.db.query(TipoFactura).order_by(TipoFactura.nombre).all()

    def get_points_of_sale(self) -> List[PuntoDeVenta]:
        return self.db.query(PuntoDeVenta).filter(
            PuntoDeVenta.activo == True
        ).order_by(PuntoDeVenta.nombre).all()

    # ===== MARCAS Y TIPOS DE DISPOSITIVO =====

    def list_items(self, model: CatalogModel, only_active: bool = True):
        query = self.db.query(model)
        if only_active:
            query = query.filter(model.activo == True)
        return query.order_by(model.nombre).all()

    def get_item(self, model: CatalogModel, item_id: int):
        pk = model.__mapper__.primary_key[0]
        return self.db.query(model).filter(pk == item_id).first()

    def find_by_name(self, model: CatalogModel, nombre: str):
        return self.db.query(model).filter(
            func.lower(model.nombre) == nombre.strip().lower()
        ).first()

    def create_item(self, model: CatalogModel, data: dict):
        item = model(**data)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update_item(self, item, data: dict):
        for campo, valor in data.items():
            setattr(item, campo, valor)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item):
        self.db.delete(item)
        self.db.commit()

    def count_orders_using(self, model: CatalogModel, item_id: int) -> int:
        column = Reparacion.marca_id if model is Marca else Reparacion.tipo_dispositivo_id
        return self.db.query(func.count(Reparacion.reparacion_id)).filter(column == item_id).scalar() or 0
