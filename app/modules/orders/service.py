# app/modules/orders/service.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.config.settings import settings
from .cache import order_cache
from .kanban import build_board
from .repository import OrdersRepository, to_order_details
from .schemas import (
    OrderCreateRequest, OrderUpdateRequest, NovedadCreateRequest, PagoRequest,
    WorkflowActionResponse, OrderDetails, OrderMovement, OrderSearchCriteria,
    OrderSummary, OrderStatusResponse, KanbanBoardResponse, naive_local
)
from .workflow import (
    TRANSICIONES, Transicion, TipoNovedadId, Estado, OrdenNoEncontradaError,
    transicion_para_novedad, validar_transicion
)

logger = logging.getLogger(__name__)

TIPO_TRANSACCION_VENTA = "VENTA"


class OrdersService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = OrdersRepository(db)

    # ==================== CONSULTAS ====================

    async def get_kanban(
        self,
        technician_id: Optional[int] = None,
        responsible_id: Optional[int] = None,
        business_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        now: Optional[datetime] = None
    ) -> KanbanBoardResponse:
        """Tablero Kanban a partir de la foto cacheada de órdenes abiertas"""
        if settings.order_cache_enabled:
            rows = order_cache.get_kanban_rows(self.db)
        else:
            rows = self.repository.get_open_kanban_rows()

        return build_board(
            rows,
            max_per_column=settings.kanban_max_cards_per_column,
            now=now,
            technician_id=technician_id,
            responsible_id=responsible_id,
            business_id=business_id,
            from_date=naive_local(from_date),
            to_date=naive_local(to_date),
        )

    async def get_order(self, numero: int) -> OrderDetails:
        return self._load_cached(numero).details

    async def get_movements(self, numero: int) -> List[OrderMovement]:
        return self._load_cached(numero).movements

    async def search_orders(self, criteria: OrderSearchCriteria) -> List[OrderSummary]:
        return self.repository.search(criteria)

    async def get_statuses(self) -> List[OrderStatusResponse]:
        return [
            OrderStatusResponse(
                estado_reparacion_id=e.estado_reparacion_id,
                nombre=e.nombre,
                descripcion=e.descripcion,
                categoria=e.categoria
            )
            for e in self.repository.get_estados_activos()
        ]

    def _load_cached(self, numero: int):
        if settings.order_cache_enabled:
            cached = order_cache.try_get(numero)
            if cached is not None:
                return cached

        reparacion = self.repository.get_reparacion(numero)
        if reparacion is None:
            raise OrdenNoEncontradaError(numero)

        return order_cache.add_or_update(
            to_order_details(reparacion),
            self.repository.get_movements(numero)
        )

    # ==================== ALTA Y EDICIÓN ====================

    async def create_order(self, request: OrderCreateRequest, user_id: int) -> OrderDetails:
        """Dar de alta la orden, su cliente y la novedad de ingreso"""
        try:
            estado = self.repository.get_estado_by_nombre(Estado.INGRESADO)
            if estado is None:
                raise HTTPException(status_code=500, detail="Estado INGRESADO no configurado")

            if self.repository.get_usuario(request.tecnico_asignado_id) is None:
                raise HTTPException(status_code=400, detail="Técnico asignado inexistente")

            cliente = self._resolver_cliente(request, user_id)
            ahora = datetime.now()

            detalle = self.repository.create_detalle({
                "es_garantia": request.es_garantia,
                "es_domicilio": request.es_domicilio,
                "nro_referencia": request.nro_referencia,
                "nro_factura": request.nro_factura,
                "fecha_compra": request.fecha_compra,
                "presupuesto": request.presupuesto,
                "presupuesto_fecha": ahora if request.presupuesto else None,
                "modelo": request.modelo,
                "serie": request.serie,
                "serbus": request.serbus,
                "accesorios": request.accesorios,
            }, user_id)

            reparacion = self.repository.create_reparacion({
                "cliente_id": cliente.cliente_id,
                "empleado_asignado_id": request.empleado_asignado_id or user_id,
                "tecnico_asignado_id": request.tecnico_asignado_id,
                "estado_reparacion_id": estado.estado_reparacion_id,
                "comercio_id": request.comercio_id,
                "marca_id": request.marca_id,
                "tipo_dispositivo_id": request.tipo_dispositivo_id,
                "reparacion_detalle_id": detalle.reparacion_detalle_id,
                "creado_en": ahora,
                "creado_por": user_id,
                "modificado_en": ahora,
                "modificado_por": user_id,
            })

            self.repository.create_novedad(
                reparacion.reparacion_id,
                user_id,
                TipoNovedadId.INGRESO,
                observacion=request.observacion,
                fecha=ahora
            )
            self.repository.commit()
            numero = reparacion.reparacion_id

        except HTTPException:
            self.repository.rollback()
            raise
        except Exception as e:
            self.repository.rollback()
            logger.exception("Error creando orden")
            raise HTTPException(status_code=500, detail=f"Error creando orden: {str(e)}")

        order_cache.invalidate(numero)
        logger.info(f"Orden #{numero} creada por usuario {user_id}")
        return self._load_cached(numero).details

    def _resolver_cliente(self, request: OrderCreateRequest, user_id: int):
        """Reusar el cliente por id o DNI, o crear uno nuevo"""
        cliente = None
        if request.cliente_id:
            cliente = self.repository.get_cliente(request.cliente_id)
            if cliente is None:
                raise HTTPException(status_code=404, detail=f"Cliente {request.cliente_id} no encontrado")
        elif request.dni:
            cliente = self.repository.get_cliente_by_dni(request.dni)

        direccion_id = None
        if request.calle or request.ciudad:
            direccion = self.repository.create_direccion({
                "calle": request.calle,
                "altura": request.altura,
                "ciudad": request.ciudad,
                "provincia": request.provincia,
                "codigo_postal": request.codigo_postal,
                "pais": "Argentina",
                "latitud": request.latitud,
                "longitud": request.longitud,
            }, user_id)
            direccion_id = direccion.direccion_id

        datos = {
            "dni": request.dni,
            "nombre": request.nombre,
            "apellido": request.apellido,
            "mail": request.email,
            "telefono1": request.telefono,
            "telefono2": request.celular,
            "direccion": request.direccion,
            "localidad": request.localidad,
            "latitud": request.latitud,
            "longitud": request.longitud,
        }
        if direccion_id:
            datos["direccion_id"] = direccion_id

        if cliente is None:
            return self.repository.create_cliente(datos)

        # Actualizar los datos de contacto con lo último informado
        for campo, valor in datos.items():
            if valor is not None:
                setattr(cliente, campo, valor)
        return cliente

    async def update_order(self, numero: int, request: OrderUpdateRequest, user_id: int) -> OrderDetails:
        reparacion = self.repository.get_reparacion(numero)
        if reparacion is None:
            raise OrdenNoEncontradaError(numero)

        cambios = request.dict(exclude_unset=True)
        try:
            cliente = reparacion.cliente
            campos_cliente = {
                "nombre": "nombre", "apellido": "apellido", "dni": "dni", "email": "mail",
                "telefono": "telefono1", "celular": "telefono2", "direccion": "direccion",
                "localidad": "localidad",
            }
            for campo, columna in campos_cliente.items():
                if campo in cambios:
                    setattr(cliente, columna, cambios[campo])

            for campo in ("tipo_dispositivo_id", "marca_id", "comercio_id", "tecnico_asignado_id", "empleado_asignado_id"):
                if campo in cambios and cambios[campo] is not None:
                    setattr(reparacion, campo, cambios[campo])

            detalle = reparacion.detalle
            if detalle is None:
                detalle = self.repository.create_detalle({}, user_id)
                reparacion.reparacion_detalle_id = detalle.reparacion_detalle_id
                reparacion.detalle = detalle

            for campo in ("modelo", "serie", "serbus", "accesorios", "es_garantia", "es_domicilio",
                          "nro_referencia", "nro_factura", "fecha_compra"):
                if campo in cambios:
                    setattr(detalle, campo, cambios[campo])

            if "presupuesto" in cambios and cambios["presupuesto"] != detalle.presupuesto:
                detalle.presupuesto = cambios["presupuesto"]
                detalle.presupuesto_fecha = datetime.now()
            if "monto_final" in cambios:
                detalle.precio = cambios["monto_final"]

            ahora = datetime.now()
            detalle.modificado_en = ahora
            detalle.modificado_por = user_id
            reparacion.modificado_en = ahora
            reparacion.modificado_por = user_id
            self.repository.commit()

        except HTTPException:
            self.repository.rollback()
            raise
        except Exception as e:
            self.repository.rollback()
            logger.exception(f"Error actualizando orden #{numero}")
            raise HTTPException(status_code=500, detail=f"Error actualizando orden: {str(e)}")

        order_cache.invalidate(numero)
        logger.info(f"Orden #{numero} actualizada por usuario {user_id}")
        return self._load_cached(numero).details

    # ==================== FLUJO DE ESTADOS ====================

    async def add_novedad(self, numero: int, request: NovedadCreateRequest, user_id: int) -> WorkflowActionResponse:
        """Alta genérica de novedad (notas, llamados, verificaciones, entrega)"""
        transicion = transicion_para_novedad(request.tipo_novedad_id)
        return await self.apply_action(
            numero, transicion.accion, user_id,
            observacion=request.observacion,
            monto=request.monto
        )

    async def informar_presupuesto(
        self,
        numero: int,
        accion: str,
        user_id: int,
        monto: Optional[Decimal] = None,
        observacion: Optional[str] = None
    ) -> WorkflowActionResponse:
        acciones = {
            "confirma": "confirma_presupuesto",
            "acepta": "acepta_presupuesto",
            "rechaza": "rechaza_presupuesto",
        }
        return await self.apply_action(
            numero, acciones[accion], user_id, observacion=observacion, monto=monto
        )

    async def apply_action(
        self,
        numero: int,
        accion: str,
        user_id: int,
        observacion: Optional[str] = None,
        monto: Optional[Decimal] = None,
        pago: Optional[PagoRequest] = None,
        ubicacion: Optional[str] = None
    ) -> WorkflowActionResponse:
        """
        Aplicar una acción del flujo de trabajo sobre una orden.

        Valida la transición contra el estado actual, registra la novedad,
        actualiza el estado y los datos derivados y, si corresponde, genera la
        venta. Todo se confirma en una única transacción.
        """
        transicion = TRANSICIONES[accion]
        if pago is not None:
            monto = pago.monto
            observacion = observacion or pago.observacion

        reparacion = self.repository.get_reparacion(numero)
        if reparacion is None:
            raise OrdenNoEncontradaError(numero)

        estado_anterior = reparacion.estado.nombre
        es_domicilio = bool(reparacion.detalle and reparacion.detalle.es_domicilio)
        estado_destino = validar_transicion(transicion, estado_anterior, es_domicilio)
        self._validar_datos(transicion, observacion, monto, pago, ubicacion)

        venta = None
        factura = None
        try:
            ahora = datetime.now()
            detalle = reparacion.detalle
            if detalle is None:
                detalle = self.repository.create_detalle({}, user_id)
                reparacion.reparacion_detalle_id = detalle.reparacion_detalle_id
                reparacion.detalle = detalle

            self._aplicar_efectos(transicion, reparacion, detalle, user_id, ahora, observacion, monto, ubicacion)

            if transicion.registra_venta and monto is not None and monto > 0:
                venta, factura = self._registrar_venta(transicion, reparacion, pago, user_id, ahora)
                if transicion.accion != "sena":
                    detalle.precio = monto

            novedad = self.repository.create_novedad(
                reparacion.reparacion_id,
                user_id,
                transicion.tipo_novedad,
                observacion=observacion,
                monto=monto,
                fecha=ahora
            )

            if estado_destino is not None and estado_destino != estado_anterior:
                estado = self.repository.get_estado_by_nombre(estado_destino)
                if estado is None:
                    raise HTTPException(status_code=500, detail=f"Estado {estado_destino} no configurado")
                reparacion.estado_reparacion_id = estado.estado_reparacion_id

            detalle.modificado_en = ahora
            detalle.modificado_por = user_id
            reparacion.modificado_en = ahora
            reparacion.modificado_por = user_id
            self.repository.commit()

        except HTTPException:
            self.repository.rollback()
            raise
        except Exception as e:
            self.repository.rollback()
            logger.exception(f"Error aplicando '{accion}' a la orden #{numero}")
            raise HTTPException(status_code=500, detail=f"Error registrando novedad: {str(e)}")

        order_cache.invalidate(numero)
        nuevo_estado = estado_destino or estado_anterior
        logger.info(
            f"Orden #{numero}: {transicion.etiqueta} por usuario {user_id} "
            f"({estado_anterior} -> {nuevo_estado})"
        )

        return WorkflowActionResponse(
            success=True,
            message=f"{transicion.etiqueta} registrado en la orden #{numero}",
            order_number=numero,
            action=transicion.accion,
            previous_status=estado_anterior,
            new_status=nuevo_estado,
            novedad_id=novedad.novedad_id,
            monto=monto,
            venta_id=venta.venta_id if venta else None,
            factura_id=factura.factura_id if factura else None,
            ubicacion=ubicacion if transicion.accion == "archivar" else None
        )

    def _validar_datos(
        self,
        transicion: Transicion,
        observacion: Optional[str],
        monto: Optional[Decimal],
        pago: Optional[PagoRequest],
        ubicacion: Optional[str]
    ):
        if transicion.requiere_observacion and not (observacion or "").strip():
            raise HTTPException(status_code=400, detail="Debe ingresar una observación")

        if transicion.accion == "presupuesto" and (monto is None or monto <= 0):
            raise HTTPException(status_code=400, detail="El presupuesto debe ser mayor a cero")

        if transicion.accion == "archivar" and not (ubicacion or "").strip():
            raise HTTPException(status_code=400, detail="Debe indicar la ubicación del equipo archivado")

        if transicion.accion == "sena" and (monto is None or monto <= 0):
            raise HTTPException(status_code=400, detail="El monto de la seña debe ser mayor a cero")

        if transicion.registra_venta and monto is not None and monto > 0:
            if pago is None or pago.metodo_pago_id is None:
                raise HTTPException(status_code=400, detail="Debe indicar el método de pago")
            if pago.facturado and (pago.tipo_factura_id is None or not (pago.nro_factura or "").strip()):
                raise HTTPException(status_code=400, detail="Debe indicar tipo y número de factura")

    def _aplicar_efectos(
        self,
        transicion: Transicion,
        reparacion,
        detalle,
        user_id: int,
        ahora: datetime,
        observacion: Optional[str],
        monto: Optional[Decimal],
        ubicacion: Optional[str]
    ):
        """Cambios sobre la orden y su detalle propios de cada acción"""
        accion = transicion.accion

        if accion == "presupuesto":
            detalle.presupuesto = monto
            detalle.presupuesto_fecha = ahora
            reparacion.informado_en = None
            reparacion.informado_por = None

        if transicion.marca_informado:
            reparacion.informado_en = ahora
            reparacion.informado_por = user_id
            if accion in ("confirma_presupuesto", "acepta_presupuesto") and monto is not None:
                detalle.presupuesto = monto
                detalle.presupuesto_fecha = ahora

        if accion == "reparado":
            detalle.reparacion_desc = observacion
            reparacion.informado_en = None
            reparacion.informado_por = None

        if accion == "archivar":
            detalle.ubicacion = ubicacion.strip()

        if accion in ("retira", "rep_domicilio", "entrega"):
            reparacion.fecha_entrega = ahora

        if accion == "reingreso":
            reparacion.fecha_entrega = None
            reparacion.informado_en = None
            reparacion.informado_por = None

    def _registrar_venta(self, transicion: Transicion, reparacion, pago: PagoRequest, user_id: int, ahora: datetime):
        factura = None
        if pago.facturado:
            factura = self.repository.create_factura(pago.tipo_factura_id, pago.nro_factura.strip(), user_id)

        tipo_transaccion_id = self.repository.get_tipo_transaccion_id(TIPO_TRANSACCION_VENTA)
        if tipo_transaccion_id is None:
            raise HTTPException(status_code=500, detail="Tipo de transacción VENTA no configurado")

        venta = self.repository.create_venta({
            "cliente_id": reparacion.cliente_id,
            "reparacion_id": reparacion.reparacion_id,
            "monto": pago.monto,
            "facturado": pago.facturado,
            "descripcion": f"{transicion.etiqueta} orden #{reparacion.reparacion_id}",
            "factura_id": factura.factura_id if factura else None,
            "ref_number": pago.ref_number,
            "punto_de_venta_id": pago.punto_de_venta_id or settings.default_punto_de_venta_id,
            "fecha": ahora,
            "vendedor": user_id,
            "metodo_pago_id": pago.metodo_pago_id,
            "tipo_transaccion_id": tipo_transaccion_id,
        })
        logger.info(f"Venta #{venta.venta_id} por {pago.monto} registrada para la orden #{reparacion.reparacion_id}")
        return venta, factura

    def cache_stats(self) -> Dict[str, Any]:
        return order_cache.stats()
