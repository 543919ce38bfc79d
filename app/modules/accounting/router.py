# app/modules/accounting/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, ROLES_ADMIN
from app.modules.catalogs.service import CatalogsService
from app.modules.catalogs.schemas import LookupItem
from .service import AccountingService
from .schemas import SalesSummaryResponse, SalesChartResponse, SalesMovementsFilter, SalesMovementsResponse

router = APIRouter()


@router.get("/health")
async def accounting_health():
    """Health check del módulo de contabilidad"""
    return {
        "service": "accounting",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Resumen de ventas por período",
            "Gráficos con y sin factura",
            "Movimientos de caja paginados"
        ]
    }


@router.get("/sales-summary", response_model=SalesSummaryResponse)
async def get_sales_summary(
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Ventas con y sin factura de hoy, la semana (desde el domingo), el mes y el año"""
    service = AccountingService(db)
    return await service.get_sales_summary()


@router.get("/sales-chart", response_model=SalesChartResponse)
async def get_sales_chart(
    period: str = Query("m", description="d, w, m o y"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = None,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Datos para el gráfico de ventas del período"""
    service = AccountingService(db)
    return await service.get_sales_chart(period, year=year, month=month)


@router.get("/sales-movements", response_model=SalesMovementsResponse)
async def get_sales_movements(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_method_id: Optional[int] = None,
    invoiced: Optional[bool] = None,
    point_of_sale_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    sort_by: Optional[str] = Query(None, description="date, id, amount o clientname"),
    sort_desc: bool = True,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Movimientos de ventas

    Los totales se calculan sobre todas las ventas filtradas, no solo sobre
    la página devuelta.
    """
    filters = SalesMovementsFilter(
        start_date=start_date,
        end_date=end_date,
        payment_method_id=payment_method_id,
        invoiced=invoiced,
        point_of_sale_id=point_of_sale_id,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_desc=sort_desc
    )
    service = AccountingService(db)
    return await service.get_sales_movements(filters)


@router.get("/payment-methods", response_model=List[LookupItem])
async def get_payment_methods(
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Métodos de pago para el filtro de movimientos"""
    service = CatalogsService(db)
    return await service.get_payment_methods()
