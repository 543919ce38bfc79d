# app/modules/orders/kanban.py
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .schemas import KanbanBoardResponse, KanbanCard, KanbanColumn, KanbanRow
from .workflow import Estado

# (id de columna, nombre visible) en el orden en que se muestran
KANBAN_COLUMNS = [
    ("INGRESADO", "INGRESADO"),
    ("PRESUPUESTADO", "PRESUPUESTADO"),
    ("ESP_REPUESTO", "ESP. REPUESTO"),
    ("A_REPARAR", "A REPARAR"),
    ("REPARADO", "REPARADO"),
    ("RECHAZADO", "RECHAZADO"),
    ("RECHAZO_PRESUP", "RECHAZO PRESUP."),
]

STATUS_TO_COLUMN: Dict[str, str] = {
    Estado.INGRESADO: "INGRESADO",
    Estado.PRESUPUESTADO: "PRESUPUESTADO",
    Estado.PRESUP_DOMICILIO: "PRESUPUESTADO",
    Estado.ESP_REPUESTO: "ESP_REPUESTO",
    Estado.A_REPARAR: "A_REPARAR",
    Estado.REINGRESADO: "A_REPARAR",
    Estado.REPARADO: "REPARADO",
    Estado.RECHAZADO: "RECHAZADO",
    Estado.ARMADO: "RECHAZADO",
    Estado.RECHAZO_PRESUP: "RECHAZO_PRESUP",
}

# Columnas donde importa cuánto hace que se avisó al cliente
NOTIFICATION_COLUMNS = {"PRESUPUESTADO", "REPARADO"}


def format_customer(nombre: Optional[str], apellido: Optional[str]) -> str:
    apellido = (apellido or "").strip()
    nombre = (nombre or "").strip()
    if apellido and nombre:
        return f"{apellido}, {nombre}".upper()
    return (apellido or nombre).upper()


def format_device(tipo: Optional[str], marca: Optional[str], modelo: Optional[str]) -> str:
    partes = [p.strip() for p in (tipo, marca, modelo) if p and p.strip()]
    return "-".join(partes).upper()


def days_since(fecha: Optional[datetime], now: datetime) -> Optional[int]:
    if fecha is None:
        return None
    return max((now.date() - fecha.date()).days, 0)


def matches_filters(
    row: KanbanRow,
    technician_id: Optional[int] = None,
    responsible_id: Optional[int] = None,
    business_id: Optional[int] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
) -> bool:
    if technician_id is not None and row.technician_id != technician_id:
        return False
    if responsible_id is not None and row.responsible_id != responsible_id:
        return False
    if business_id is not None and row.business_id != business_id:
        return False
    if from_date is not None and row.created_at < from_date:
        return False
    if to_date is not None and row.created_at > to_date:
        return False
    return True


def build_card(row: KanbanRow, column_id: str, now: datetime) -> KanbanCard:
    return KanbanCard(
        order_number=row.order_number,
        status=row.status,
        customer=format_customer(row.customer_nombre, row.customer_apellido),
        device=format_device(row.device_type, row.brand, row.model),
        technician_id=row.technician_id,
        technician_name=row.technician_name,
        responsible_name=row.responsible_name,
        is_warranty=row.is_warranty,
        is_domicile=row.is_domicile,
        is_reentry=row.status == Estado.REINGRESADO,
        days_since_notification=(
            days_since(row.informed_at, now) if column_id in NOTIFICATION_COLUMNS else None
        ),
        last_activity_date=row.modified_at or row.created_at,
    )


def build_board(
    rows: Iterable[KanbanRow],
    max_per_column: int,
    now: Optional[datetime] = None,
    **filters,
) -> KanbanBoardResponse:
    """Agrupar las órdenes abiertas en las columnas del tablero"""
    now = now or datetime.now()
    grouped: Dict[str, List[KanbanRow]] = {column_id: [] for column_id, _ in KANBAN_COLUMNS}

    for row in rows:
        column_id = STATUS_TO_COLUMN.get(row.status)
        if column_id is None or not matches_filters(row, **filters):
            continue
        grouped[column_id].append(row)

    columns = []
    total = 0
    for column_id, name in KANBAN_COLUMNS:
        column_rows = sorted(grouped[column_id], key=lambda r: r.order_number, reverse=True)
        total += len(column_rows)
        columns.append(KanbanColumn(
            id=column_id,
            name=name,
            order_count=len(column_rows),
            orders=[build_card(r, column_id, now) for r in column_rows[:max_per_column]],
        ))

    return KanbanBoardResponse(columns=columns, total_orders=total, generated_at=now)
