# app/modules/clients/repository.py
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, func, cast, String
from typing import Dict, List, Optional, Tuple
from datetime import datetime

from app.shared.database.models import Cliente, Reparacion


class ClientsRepository:
    def __init__(self, db: Session):
        self.db = db

    def _search_filter(self, search: str):
        texto = f"%{search.strip().lower()}%"
        condiciones = [
            func.lower(Cliente.nombre).like(texto),
            func.lower(Cliente.apellido).like(texto),
            func.lower(Cliente.mail).like(texto),
            func.lower(Cliente.direccion).like(texto),
            Cliente.telefono1.like(texto),
            Cliente.telefono2.like(texto),
        ]
        if search.strip().isdigit():
            condiciones.append(Cliente.dni == int(search.strip()))
        return or_(*condiciones)

    def list_clients(self, search: Optional[str], page: int, page_size: int) -> Tuple[List[Cliente], int]:
        query = self.db.query(Cliente)
        if search and search.strip():
            query = query.filter(self._search_filter(search))

        total = query.count()
        clientes = query.order_by(
            Cliente.cliente_id.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()
        return clientes, total

    def get_order_stats(self, cliente_ids: List[int]) -> Dict[int, Tuple[int, Optional[datetime]]]:
        """Cantidad de órdenes y fecha de la última por cliente"""
        if not cliente_ids:
            return {}
        rows = self.db.query(
            Reparacion.cliente_id,
            func.count(Reparacion.reparacion_id),
            func.max(Reparacion.creado_en)
        ).filter(
            Reparacion.cliente_id.in_(cliente_ids)
        ).group_by(Reparacion.cliente_id).all()
        return {cliente_id: (count, last) for cliente_id, count, last in rows}

    def get_client(self, cliente_id: int) -> Optional[Cliente]:
        return self.db.query(Cliente).options(
            joinedload(Cliente.direccion_detalle)
        ).filter(Cliente.cliente_id == cliente_id).first()

    def get_client_by_dni(self, dni: int) -> Optional[Cliente]:
        return self.db.query(Cliente).options(
            joinedload(Cliente.direccion_detalle)
        ).filter(Cliente.dni == dni).order_by(Cliente.cliente_id.desc()).first()

    def search_by_prefix(self, prefix: str, limit: int = 10) -> List[Cliente]:
        """DNI que empieza con el prefijo, o nombre/apellido que lo contiene"""
        prefix = prefix.strip()
        if prefix.isdigit():
            condicion = cast(Cliente.dni, String).like(f"{prefix}%")
        else:
            texto = f"%{prefix.lower()}%"
            condicion = or_(
                func.lower(Cliente.nombre).like(texto),
                func.lower(Cliente.apellido).like(texto),
            )
        return self.db.query(Cliente).filter(condicion).order_by(
            Cliente.apellido, Cliente.nombre
        ).limit(limit).all()

    def get_client_orders(self, cliente_id: int) -> List[Reparacion]:
        return self.db.query(Reparacion).options(
            joinedload(Reparacion.estado),
            joinedload(Reparacion.detalle),
            joinedload(Reparacion.marca),
            joinedload(Reparacion.tipo_dispositivo),
        ).filter(
            Reparacion.cliente_id == cliente_id
        ).order_by(Reparacion.reparacion_id.desc()).all()

    def get_all_for_matching(self) -> List[Cliente]:
        return self.db.query(Cliente).all()
