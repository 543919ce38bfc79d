# app/modules/accounting/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_, case, func
from typing import List, Tuple
from datetime import datetime, timedelta

from app.shared.database.models import Venta, Cliente, MetodoPago, PuntoDeVenta, Factura
from .schemas import SalesMovementsFilter

SORT_COLUMNS = {
    "id": [Venta.venta_id],
    "ventaid": [Venta.venta_id],
    "amount": [Venta.monto],
    "monto": [Venta.monto],
    "clientname": [Cliente.apellido, Cliente.nombre],
}


class AccountingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_totals(self, start: datetime, end: datetime) -> Tuple[float, float]:
        """Suma de ventas (con factura, sin factura) en [start, end)"""
        con_factura, sin_factura = self.db.query(
            func.sum(case((Venta.factura_id.isnot(None), Venta.monto), else_=0)),
            func.sum(case((Venta.factura_id.is_(None), Venta.monto), else_=0)),
        ).filter(
            and_(Venta.fecha >= start, Venta.fecha < end)
        ).one()
        return float(con_factura or 0), float(sin_factura or 0)

    def get_sales_between(self, start: datetime, end: datetime) -> List[Tuple[datetime, float, bool]]:
        """(fecha, monto, tiene_factura) de cada venta en [start, end)"""
        rows = self.db.query(Venta.fecha, Venta.monto, Venta.factura_id).filter(
            and_(Venta.fecha >= start, Venta.fecha < end)
        ).all()
        return [(fecha, float(monto or 0), factura_id is not None) for fecha, monto, factura_id in rows]

    def _movements_filters(self, filters: SalesMovementsFilter) -> list:
        conditions = []
        if filters.start_date:
            conditions.append(Venta.fecha >= datetime.combine(filters.start_date, datetime.min.time()))
        if filters.end_date:
            fin = datetime.combine(filters.end_date, datetime.min.time()) + timedelta(days=1)
            conditions.append(Venta.fecha < fin)
        if filters.payment_method_id is not None:
            conditions.append(Venta.metodo_pago_id == filters.payment_method_id)
        if filters.invoiced is True:
            conditions.append(Venta.factura_id.isnot(None))
        elif filters.invoiced is False:
            conditions.append(Venta.factura_id.is_(None))
        if filters.point_of_sale_id is not None:
            conditions.append(Venta.punto_de_venta_id == filters.point_of_sale_id)
        return conditions

    def get_movements_totals(self, filters: SalesMovementsFilter) -> Tuple[int, float, float, float]:
        """(cantidad, total, con factura, sin factura) del conjunto filtrado completo"""
        query = self.db.query(
            func.count(Venta.venta_id),
            func.sum(Venta.monto),
            func.sum(case((Venta.factura_id.isnot(None), Venta.monto), else_=0)),
            func.sum(case((Venta.factura_id.is_(None), Venta.monto), else_=0)),
        )
        conditions = self._movements_filters(filters)
        if conditions:
            query = query.filter(and_(*conditions))
        count, total, con_factura, sin_factura = query.one()
        return int(count or 0), float(total or 0), float(con_factura or 0), float(sin_factura or 0)

    def get_movements_page(self, filters: SalesMovementsFilter) -> list:
        query = self.db.query(
            Venta, Cliente, MetodoPago, PuntoDeVenta, Factura
        ).outerjoin(
            Cliente, Venta.cliente_id == Cliente.cliente_id
        ).outerjoin(
            MetodoPago, Venta.metodo_pago_id == MetodoPago.metodo_pago_id
        ).outerjoin(
            PuntoDeVenta, Venta.punto_de_venta_id == PuntoDeVenta.punto_de_venta_id
        ).outerjoin(
            Factura, Venta.factura_id == Factura.factura_id
        )

        conditions = self._movements_filters(filters)
        if conditions:
            query = query.filter(and_(*conditions))

        columns = SORT_COLUMNS.get((filters.sort_by or "").lower(), [Venta.fecha])
        order = [c.desc() if filters.sort_desc else c.asc() for c in columns]
        # desempate estable para la paginación
        order.append(Venta.venta_id.desc() if filters.sort_desc else Venta.venta_id.asc())

        offset = (filters.page - 1) * filters.page_size
        return query.order_by(*order).offset(offset).limit(filters.page_size).all()
