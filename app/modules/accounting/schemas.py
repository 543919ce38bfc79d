# app/modules/accounting/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime


class PeriodTotals(BaseModel):
    with_invoice: float = 0.0
    without_invoice: float = 0.0
    total: float = 0.0


class SalesSummaryResponse(BaseModel):
    """Totales de ventas con y sin factura por período"""
    today: PeriodTotals
    week: PeriodTotals
    month: PeriodTotals
    year: PeriodTotals
    generated_at: datetime


class ChartDataset(BaseModel):
    label: str
    data: List[float]


class SalesChartResponse(BaseModel):
    period: str
    labels: List[str]
    datasets: List[ChartDataset]


class SalesMovementsFilter(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    payment_method_id: Optional[int] = None
    invoiced: Optional[bool] = None
    point_of_sale_id: Optional[int] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(50, ge=1, le=500)
    sort_by: Optional[str] = None
    sort_desc: bool = True


class SalesMovementItem(BaseModel):
    venta_id: int
    date: datetime
    origin: Optional[str] = None
    dni: Optional[int] = None
    client_name: Optional[str] = None
    client_lastname: Optional[str] = None
    amount: float
    description: Optional[str] = None
    payment_method: str = "N/A"
    invoiced: bool = False
    invoice_number: Optional[str] = None
    order_number: Optional[int] = None


class SalesMovementsResponse(BaseModel):
    items: List[SalesMovementItem]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    total_amount: float
    total_with_invoice: float
    total_without_invoice: float
