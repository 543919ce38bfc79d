# app/modules/accounting/service.py
import calendar
import logging
import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from .repository import AccountingRepository
from .schemas import (
    PeriodTotals, SalesSummaryResponse, ChartDataset, SalesChartResponse,
    SalesMovementsFilter, SalesMovementItem, SalesMovementsResponse
)

logger = logging.getLogger(__name__)

DIAS_SEMANA = ["Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb"]
MESES = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]
HORA_APERTURA = 6
HORA_CIERRE = 22

LABEL_CON_FACTURA = "Con Factura"
LABEL_SIN_FACTURA = "Sin Factura"


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(now: datetime) -> datetime:
    """La semana comienza el domingo"""
    dias_desde_domingo = (now.weekday() + 1) % 7
    return start_of_day(now) - timedelta(days=dias_desde_domingo)


def start_of_next_month(fecha: datetime) -> datetime:
    if fecha.month == 12:
        return start_of_day(fecha).replace(year=fecha.year + 1, month=1, day=1)
    return start_of_day(fecha).replace(month=fecha.month + 1, day=1)


def _totals(con_factura: float, sin_factura: float) -> PeriodTotals:
    return PeriodTotals(
        with_invoice=round(con_factura, 2),
        without_invoice=round(sin_factura, 2),
        total=round(con_factura + sin_factura, 2)
    )


class AccountingService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = AccountingRepository(db)

    async def get_sales_summary(self, now: Optional[datetime] = None) -> SalesSummaryResponse:
        """Ventas de hoy, de la semana, del mes y del año"""
        now = now or datetime.now()
        hoy = start_of_day(now)
        semana = start_of_week(now)
        mes = hoy.replace(day=1)
        anio = hoy.replace(month=1, day=1)

        # Cada período se toma completo, incluidas las ventas con fecha futura
        return SalesSummaryResponse(
            today=_totals(*self.repository.get_totals(hoy, hoy + timedelta(days=1))),
            week=_totals(*self.repository.get_totals(semana, semana + timedelta(days=7))),
            month=_totals(*self.repository.get_totals(mes, start_of_next_month(mes))),
            year=_totals(*self.repository.get_totals(anio, anio.replace(year=anio.year + 1))),
            generated_at=now
        )

    async def get_sales_chart(
        self,
        period: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> SalesChartResponse:
        """
        Serie de ventas con y sin factura para graficar.

        - ``d``: hoy, por hora de 6 a 22
        - ``w``: semana actual, de domingo a sábado
        - ``m``: días del mes indicado (por defecto el actual)
        - ``y``: meses del año indicado (por defecto el actual)
        """
        now = now or datetime.now()
        period = (period or "").lower()
        year = year or now.year
        month = month or now.month

        if not 1 <= month <= 12:
            raise HTTPException(status_code=400, detail="Mes inválido")

        if period == "d":
            start = start_of_day(now)
            end = start + timedelta(days=1)
            labels = [f"{h}:00" for h in range(HORA_APERTURA, HORA_CIERRE + 1)]
            bucket = lambda f: f.hour - HORA_APERTURA
        elif period == "w":
            start = start_of_week(now)
            end = start + timedelta(days=7)
            labels = list(DIAS_SEMANA)
            bucket = lambda f: (f.weekday() + 1) % 7
        elif period == "m":
            start = datetime(year, month, 1)
            dias = calendar.monthrange(year, month)[1]
            end = start + timedelta(days=dias)
            labels = [str(d) for d in range(1, dias + 1)]
            bucket = lambda f: f.day - 1
        elif period == "y":
            start = datetime(year, 1, 1)
            end = datetime(year + 1, 1, 1)
            labels = list(MESES)
            bucket = lambda f: f.month - 1
        else:
            raise HTTPException(
                status_code=400,
                detail="Período inválido. Use d (día), w (semana), m (mes) o y (año)"
            )

        con_factura, sin_factura = self._bucketize(
            self.repository.get_sales_between(start, end), len(labels), bucket
        )

        return SalesChartResponse(
            period=period,
            labels=labels,
            datasets=[
                ChartDataset(label=LABEL_CON_FACTURA, data=con_factura),
                ChartDataset(label=LABEL_SIN_FACTURA, data=sin_factura),
            ]
        )

    @staticmethod
    def _bucketize(
        ventas: List[Tuple[datetime, float, bool]],
        size: int,
        bucket: Callable[[datetime], int]
    ) -> Tuple[List[float], List[float]]:
        con_factura = [0.0] * size
        sin_factura = [0.0] * size
        for fecha, monto, facturada in ventas:
            idx = bucket(fecha)
            # fuera del horario de atención
            if not 0 <= idx < size:
                continue
            if facturada:
                con_factura[idx] += monto
            else:
                sin_factura[idx] += monto
        return [round(v, 2) for v in con_factura], [round(v, 2) for v in sin_factura]

    async def get_sales_movements(self, filters: SalesMovementsFilter) -> SalesMovementsResponse:
        """Listado paginado de ventas con totales del conjunto filtrado"""
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise HTTPException(status_code=400, detail="La fecha inicial es posterior a la final")

        count, total, con_factura, sin_factura = self.repository.get_movements_totals(filters)
        rows = self.repository.get_movements_page(filters)

        items = []
        for venta, cliente, metodo, punto, factura in rows:
            items.append(SalesMovementItem(
                venta_id=venta.venta_id,
                date=venta.fecha,
                origin=punto.nombre if punto else None,
                dni=cliente.dni if cliente else None,
                client_name=cliente.nombre if cliente else None,
                client_lastname=cliente.apellido if cliente else None,
                amount=float(venta.monto or 0),
                description=venta.descripcion,
                payment_method=metodo.nombre if metodo else "N/A",
                invoiced=factura is not None,
                invoice_number=factura.nro_factura if factura else None,
                order_number=venta.reparacion_id
            ))

        return SalesMovementsResponse(
            items=items,
            total_count=count,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=math.ceil(count / filters.page_size) if count else 0,
            total_amount=round(total, 2),
            total_with_invoice=round(con_factura, 2),
            total_without_invoice=round(sin_factura, 2)
        )
