# app/modules/orders/router.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, ROLES_ADMIN, ROLES_TECNICO, ROLES_TODOS
)
from .service import OrdersService
from .schemas import (
    OrderCreateRequest, OrderUpdateRequest, NovedadCreateRequest, ObservacionRequest,
    PresupuestoRequest, InformarPresupuestoRequest, PagoRequest, ArchivarRequest,
    WorkflowActionResponse, OrderDetails, OrderMovement, OrderSearchCriteria,
    OrderSummary, OrderStatusResponse, KanbanBoardResponse
)

router = APIRouter()


@router.get("/health")
async def orders_health():
    """Health check del módulo de órdenes"""
    return {
        "service": "orders",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Tablero Kanban",
            "Flujo de estados con historial de novedades",
            "Cobros al retirar y señas",
            "Cache de órdenes"
        ]
    }


# ==================== CONSULTAS ====================

@router.get("/kanban", response_model=KanbanBoardResponse)
async def get_kanban_board(
    technician_id: Optional[int] = None,
    responsible_id: Optional[int] = None,
    business_id: Optional[int] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """
    Tablero Kanban de órdenes abiertas

    **Columnas:** INGRESADO, PRESUPUESTADO, ESP. REPUESTO, A REPARAR,
    REPARADO, RECHAZADO, RECHAZO PRESUP. Cada columna muestra hasta 50
    tarjetas, de la orden más nueva a la más vieja.
    """
    service = OrdersService(db)
    return await service.get_kanban(
        technician_id=technician_id,
        responsible_id=responsible_id,
        business_id=business_id,
        from_date=from_date,
        to_date=to_date
    )


@router.get("/search", response_model=List[OrderSummary])
async def search_orders(
    order_number: Optional[int] = None,
    customer_name: Optional[str] = None,
    dni: Optional[int] = None,
    address: Optional[str] = None,
    technician_name: Optional[str] = None,
    status: Optional[str] = None,
    statuses: Optional[List[str]] = Query(None),
    brand: Optional[str] = None,
    device_type: Optional[str] = None,
    serial_number: Optional[str] = None,
    model: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    max_results: int = Query(500, ge=1, le=5000),
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Búsqueda de órdenes por cliente, equipo, técnico, estado o fechas"""
    criteria = OrderSearchCriteria(
        order_number=order_number,
        customer_name=customer_name,
        dni=dni,
        address=address,
        technician_name=technician_name,
        status=status,
        statuses=statuses,
        brand=brand,
        device_type=device_type,
        serial_number=serial_number,
        model=model,
        from_date=from_date,
        to_date=to_date,
        max_results=max_results
    )
    service = OrdersService(db)
    return await service.search_orders(criteria)


@router.get("/statuses", response_model=List[OrderStatusResponse])
async def get_order_statuses(
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Estados de reparación activos"""
    service = OrdersService(db)
    return await service.get_statuses()


@router.get("/cache/stats")
async def get_cache_stats(
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Estadísticas del cache de órdenes"""
    service = OrdersService(db)
    return service.cache_stats()


@router.get("/{numero}", response_model=OrderDetails)
async def get_order(
    numero: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Detalle completo de una orden"""
    service = OrdersService(db)
    return await service.get_order(numero)


@router.get("/{numero}/movements", response_model=List[OrderMovement])
async def get_order_movements(
    numero: int,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """Historial de novedades de la orden, de la más antigua a la más nueva"""
    service = OrdersService(db)
    return await service.get_movements(numero)


# ==================== ALTA Y EDICIÓN ====================

@router.post("/", response_model=OrderDetails, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Ingresar una nueva orden de reparación

    Reutiliza el cliente si se indica su id o si ya existe un cliente con el
    mismo DNI. La orden queda en estado INGRESADO con su novedad de ingreso.
    """
    service = OrdersService(db)
    return await service.create_order(request, current_user.user_id)


@router.put("/{numero}", response_model=OrderDetails)
async def update_order(
    numero: int,
    request: OrderUpdateRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Editar datos del cliente, del equipo y montos de la orden"""
    service = OrdersService(db)
    return await service.update_order(numero, request, current_user.user_id)


# ==================== ACCIONES COMUNES ====================

@router.post("/{numero}/novedades", response_model=WorkflowActionResponse)
async def add_novedad(
    numero: int,
    request: NovedadCreateRequest,
    current_user = Depends(require_roles(ROLES_TODOS)),
    db: Session = Depends(get_db)
):
    """
    Registrar una novedad genérica (nota, llamado, verificar, a controlar,
    entrega). Las acciones con cambio de estado o cobro tienen su endpoint.
    """
    service = OrdersService(db)
    return await service.add_novedad(numero, request, current_user.user_id)


# ==================== ACCIONES DEL TÉCNICO ====================

@router.post("/{numero}/presupuesto", response_model=WorkflowActionResponse)
async def presupuestar(
    numero: int,
    request: PresupuestoRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Cargar el presupuesto de la reparación"""
    service = OrdersService(db)
    return await service.apply_action(
        numero, "presupuesto", current_user.user_id,
        observacion=request.observacion, monto=request.monto
    )


@router.post("/{numero}/reparado", response_model=WorkflowActionResponse)
async def marcar_reparado(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Marcar la orden como reparada; la observación queda como descripción del trabajo"""
    service = OrdersService(db)
    return await service.apply_action(numero, "reparado", current_user.user_id, observacion=request.observacion)


@router.post("/{numero}/rechazar", response_model=WorkflowActionResponse)
async def rechazar(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Rechazo técnico de la reparación"""
    service = OrdersService(db)
    return await service.apply_action(numero, "rechazar", current_user.user_id, observacion=request.observacion)


@router.post("/{numero}/espera-repuesto", response_model=WorkflowActionResponse)
async def espera_repuesto(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Dejar la orden esperando un repuesto"""
    service = OrdersService(db)
    return await service.apply_action(numero, "espera_repuesto", current_user.user_id, observacion=request.observacion)


@router.post("/{numero}/rep-domicilio", response_model=WorkflowActionResponse)
async def reparacion_domicilio(
    numero: int,
    request: PagoRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Reparación realizada en el domicilio del cliente, con su cobro"""
    service = OrdersService(db)
    return await service.apply_action(numero, "rep_domicilio", current_user.user_id, pago=request)


@router.post("/{numero}/armado", response_model=WorkflowActionResponse)
async def marcar_armado(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_TECNICO)),
    db: Session = Depends(get_db)
):
    """Equipo rechazado vuelto a armar para su devolución"""
    service = OrdersService(db)
    return await service.apply_action(numero, "armado", current_user.user_id, observacion=request.observacion)


# ==================== ACCIONES ADMINISTRATIVAS ====================

@router.post("/{numero}/informar-presupuesto", response_model=WorkflowActionResponse)
async def informar_presupuesto(
    numero: int,
    request: InformarPresupuestoRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Registrar la respuesta del cliente al presupuesto

    - **confirma**: se le informó el presupuesto, la orden sigue presupuestada
    - **acepta**: pasa a A REPARAR
    - **rechaza**: pasa a RECHAZO PRESUP.
    """
    service = OrdersService(db)
    return await service.informar_presupuesto(
        numero, request.accion, current_user.user_id,
        monto=request.monto, observacion=request.observacion
    )


@router.post("/{numero}/rechaza-presupuesto", response_model=WorkflowActionResponse)
async def rechaza_presupuesto(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """El cliente rechaza el presupuesto"""
    service = OrdersService(db)
    return await service.apply_action(numero, "rechaza_presupuesto", current_user.user_id, observacion=request.observacion)


@router.post("/{numero}/archivar", response_model=WorkflowActionResponse)
async def archivar(
    numero: int,
    request: ArchivarRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Archivar un equipo no retirado indicando dónde se guarda"""
    service = OrdersService(db)
    return await service.apply_action(
        numero, "archivar", current_user.user_id,
        observacion=request.observacion, ubicacion=request.ubicacion
    )


@router.post("/{numero}/retira", response_model=WorkflowActionResponse)
async def retira(
    numero: int,
    request: PagoRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Retiro del equipo por el cliente

    Si el monto es mayor a cero se registra la venta (y la factura si
    corresponde) en la misma operación.
    """
    service = OrdersService(db)
    return await service.apply_action(numero, "retira", current_user.user_id, pago=request)


@router.post("/{numero}/sena", response_model=WorkflowActionResponse)
async def sena(
    numero: int,
    request: PagoRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Registrar una seña sin cambiar el estado de la orden"""
    service = OrdersService(db)
    return await service.apply_action(numero, "sena", current_user.user_id, pago=request)


@router.post("/{numero}/reingreso", response_model=WorkflowActionResponse)
async def reingreso(
    numero: int,
    request: ObservacionRequest,
    current_user = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db)
):
    """Reingreso de un equipo ya retirado o entregado"""
    service = OrdersService(db)
    return await service.apply_action(numero, "reingreso", current_user.user_id, observacion=request.observacion)
