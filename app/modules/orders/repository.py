# app/modules/orders/repository.py
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, or_, func
from typing import List, Optional, Dict, Any
from datetime import datetime
from decimal import Decimal

from app.shared.database.models import (
    Reparacion, ReparacionDetalle, Novedad, Cliente, Direccion, Usuario,
    EstadoReparacion, Marca, TipoDispositivo, Venta, Factura, TipoTransaccion
)
from .schemas import (
    OrderDetails, CustomerInfo, DeviceInfo, RepairInfo, OrderMovement,
    OrderSearchCriteria, OrderSummary, KanbanRow
)
from .workflow import ESTADOS_CERRADOS


def _nombre_usuario(usuario: Optional[Usuario]) -> Optional[str]:
    return usuario.nombre_completo if usuario else None


def to_order_details(reparacion: Reparacion) -> OrderDetails:
    cliente = reparacion.cliente
    detalle = reparacion.detalle or ReparacionDetalle()
    return OrderDetails(
        order_number=reparacion.reparacion_id,
        status_id=reparacion.estado_reparacion_id,
        status=reparacion.estado.nombre,
        created_at=reparacion.creado_en,
        modified_at=reparacion.modificado_en,
        customer=CustomerInfo(
            cliente_id=cliente.cliente_id,
            dni=cliente.dni,
            nombre=cliente.nombre,
            apellido=cliente.apellido,
            email=cliente.mail,
            telefono=cliente.telefono1,
            celular=cliente.telefono2,
            direccion=cliente.direccion,
            localidad=cliente.localidad,
            latitud=cliente.latitud,
            longitud=cliente.longitud,
        ),
        device=DeviceInfo(
            tipo_dispositivo_id=reparacion.tipo_dispositivo_id,
            tipo_dispositivo=reparacion.tipo_dispositivo.nombre if reparacion.tipo_dispositivo else None,
            marca_id=reparacion.marca_id,
            marca=reparacion.marca.nombre if reparacion.marca else None,
            modelo=detalle.modelo,
            serie=detalle.serie,
            serbus=detalle.serbus,
            accesorios=detalle.accesorios,
        ),
        repair=RepairInfo(
            presupuesto=detalle.presupuesto,
            presupuesto_fecha=detalle.presupuesto_fecha,
            precio=detalle.precio,
            es_garantia=bool(detalle.es_garantia),
            es_domicilio=bool(detalle.es_domicilio),
            nro_referencia=detalle.nro_referencia,
            nro_factura=detalle.nro_factura,
            fecha_compra=detalle.fecha_compra,
            ubicacion=detalle.ubicacion,
            reparacion_desc=detalle.reparacion_desc,
            fecha_entrega=reparacion.fecha_entrega,
            informado_en=reparacion.informado_en,
        ),
        technician_id=reparacion.tecnico_asignado_id,
        technician_name=_nombre_usuario(reparacion.tecnico_asignado),
        responsible_id=reparacion.empleado_asignado_id,
        responsible_name=_nombre_usuario(reparacion.empleado_asignado),
        comercio_id=reparacion.comercio_id,
        comercio=reparacion.comercio.descripcion if reparacion.comercio else None,
    )


def to_movement(novedad: Novedad) -> OrderMovement:
    return OrderMovement(
        novedad_id=novedad.novedad_id,
        tipo_novedad_id=novedad.tipo_novedad_id,
        tipo=novedad.tipo.nombre if novedad.tipo else None,
        monto=novedad.monto,
        observacion=novedad.observacion,
        fecha=novedad.modificado_en,
        user_id=novedad.user_id,
        usuario=_nombre_usuario(novedad.usuario),
    )


def to_kanban_row(reparacion: Reparacion) -> KanbanRow:
    cliente = reparacion.cliente
    detalle = reparacion.detalle
    return KanbanRow(
        order_number=reparacion.reparacion_id,
        status=reparacion.estado.nombre,
        customer_nombre=cliente.nombre if cliente else None,
        customer_apellido=cliente.apellido if cliente else None,
        device_type=reparacion.tipo_dispositivo.nombre if reparacion.tipo_dispositivo else None,
        brand=reparacion.marca.nombre if reparacion.marca else None,
        model=detalle.modelo if detalle else None,
        technician_id=reparacion.tecnico_asignado_id,
        technician_name=_nombre_usuario(reparacion.tecnico_asignado),
        responsible_id=reparacion.empleado_asignado_id,
        responsible_name=_nombre_usuario(reparacion.empleado_asignado),
        business_id=reparacion.comercio_id,
        created_at=reparacion.creado_en,
        modified_at=reparacion.modificado_en,
        informed_at=reparacion.informado_en,
        is_warranty=bool(detalle.es_garantia) if detalle else False,
        is_domicile=bool(detalle.es_domicilio) if detalle else False,
    )


class OrdersRepository:
    def __init__(self, db: Session):
        self.db = db

    # ===== LECTURAS =====

    def _reparacion_query(self):
        return self.db.query(Reparacion).options(
            joinedload(Reparacion.cliente),
            joinedload(Reparacion.estado),
            joinedload(Reparacion.detalle),
            joinedload(Reparacion.marca),
            joinedload(Reparacion.tipo_dispositivo),
            joinedload(Reparacion.comercio),
            joinedload(Reparacion.tecnico_asignado),
            joinedload(Reparacion.empleado_asignado),
        )

    def get_reparacion(self, numero: int) -> Optional[Reparacion]:
        return self._reparacion_query().filter(Reparacion.reparacion_id == numero).first()

    def get_movements(self, numero: int) -> List[OrderMovement]:
        novedades = self.db.query(Novedad).options(
            joinedload(Novedad.tipo),
            joinedload(Novedad.usuario)
        ).filter(
            Novedad.reparacion_id == numero
        ).order_by(Novedad.modificado_en.asc(), Novedad.novedad_id.asc()).all()
        return [to_movement(n) for n in novedades]

    def get_recent_orders(self, limit: int) -> List[Reparacion]:
        return self._reparacion_query().order_by(
            Reparacion.reparacion_id.desc()
        ).limit(limit).all()

    def get_open_kanban_rows(self) -> List[KanbanRow]:
        """Todas las órdenes que no están cerradas"""
        reparaciones = self._reparacion_query().join(
            EstadoReparacion,
            Reparacion.estado_reparacion_id == EstadoReparacion.estado_reparacion_id
        ).filter(
            EstadoReparacion.nombre.notin_(list(ESTADOS_CERRADOS))
        ).all()
        return [to_kanban_row(r) for r in reparaciones]

    def get_estado_by_nombre(self, nombre: str) -> Optional[EstadoReparacion]:
        return self.db.query(EstadoReparacion).filter(EstadoReparacion.nombre == nombre).first()

    def get_estados_activos(self) -> List[EstadoReparacion]:
        return self.db.query(EstadoReparacion).filter(
            EstadoReparacion.activo == True
        ).order_by(EstadoReparacion.estado_reparacion_id).all()

    def get_tipo_transaccion_id(self, nombre: str) -> Optional[int]:
        tipo = self.db.query(TipoTransaccion).filter(TipoTransaccion.nombre == nombre).first()
        return tipo.tipo_transaccion_id if tipo else None

    def get_usuario(self, user_id: int) -> Optional[Usuario]:
        return self.db.query(Usuario).filter(Usuario.user_id == user_id).first()

    def get_cliente(self, cliente_id: int) -> Optional[Cliente]:
        return self.db.query(Cliente).filter(Cliente.cliente_id == cliente_id).first()

    def get_cliente_by_dni(self, dni: int) -> Optional[Cliente]:
        return self.db.query(Cliente).filter(Cliente.dni == dni).order_by(Cliente.cliente_id.desc()).first()

    def search(self, criteria: OrderSearchCriteria) -> List[OrderSummary]:
        query = self.db.query(Reparacion).join(
            Cliente, Reparacion.cliente_id == Cliente.cliente_id
        ).join(
            EstadoReparacion, Reparacion.estado_reparacion_id == EstadoReparacion.estado_reparacion_id
        ).join(
            Marca, Reparacion.marca_id == Marca.marca_id
        ).join(
            TipoDispositivo, Reparacion.tipo_dispositivo_id == TipoDispositivo.tipo_dispositivo_id
        ).outerjoin(
            ReparacionDetalle, Reparacion.reparacion_detalle_id == ReparacionDetalle.reparacion_detalle_id
        ).join(
            Usuario, Reparacion.tecnico_asignado_id == Usuario.user_id
        )

        filters = []
        if criteria.order_number is not None:
            filters.append(Reparacion.reparacion_id == criteria.order_number)
        if criteria.dni is not None:
            filters.append(Cliente.dni == criteria.dni)
        if criteria.customer_name:
            texto = f"%{criteria.customer_name.lower()}%"
            filters.append(or_(
                func.lower(Cliente.nombre).like(texto),
                func.lower(Cliente.apellido).like(texto),
                func.lower(Cliente.apellido + " " + Cliente.nombre).like(texto),
                func.lower(Cliente.nombre + " " + Cliente.apellido).like(texto),
            ))
        if criteria.address:
            filters.append(func.lower(Cliente.direccion).like(f"%{criteria.address.lower()}%"))
        if criteria.technician_name:
            texto = f"%{criteria.technician_name.lower()}%"
            filters.append(or_(
                func.lower(Usuario.nombre).like(texto),
                func.lower(Usuario.apellido).like(texto),
            ))
        if criteria.status:
            filters.append(func.lower(EstadoReparacion.nombre) == criteria.status.lower())
        if criteria.statuses:
            filters.append(func.lower(EstadoReparacion.nombre).in_([s.lower() for s in criteria.statuses]))
        if criteria.brand:
            filters.append(func.lower(Marca.nombre).like(f"%{criteria.brand.lower()}%"))
        if criteria.device_type:
            filters.append(func.lower(TipoDispositivo.nombre).like(f"%{criteria.device_type.lower()}%"))
        if criteria.serial_number:
            filters.append(func.lower(ReparacionDetalle.serie).like(f"%{criteria.serial_number.lower()}%"))
        if criteria.model:
            filters.append(func.lower(ReparacionDetalle.modelo).like(f"%{criteria.model.lower()}%"))
        if criteria.from_date:
            filters.append(Reparacion.creado_en >= criteria.from_date)
        if criteria.to_date:
            filters.append(Reparacion.creado_en <= criteria.to_date)

        if filters:
            query = query.filter(and_(*filters))

        reparaciones = query.order_by(
            Reparacion.reparacion_id.desc()
        ).limit(criteria.max_results).all()

        results = []
        for r in reparaciones:
            detalle = r.detalle
            results.append(OrderSummary(
                order_number=r.reparacion_id,
                status=r.estado.nombre,
                customer_name=r.cliente.nombre_completo,
                dni=r.cliente.dni,
                address=r.cliente.direccion,
                device=" ".join(p for p in [
                    r.tipo_dispositivo.nombre, r.marca.nombre, detalle.modelo if detalle else None
                ] if p),
                technician_name=_nombre_usuario(r.tecnico_asignado),
                created_at=r.creado_en,
                presupuesto=detalle.presupuesto if detalle else None,
            ))
        return results

    # ===== ESCRITURAS =====

    def create_direccion(self, data: Dict[str, Any], user_id: int) -> Direccion:
        direccion = Direccion(changed_by=user_id, **data)
        self.db.add(direccion)
        self.db.flush()
        return direccion

    def create_cliente(self, data: Dict[str, Any]) -> Cliente:
        cliente = Cliente(**data)
        self.db.add(cliente)
        self.db.flush()
        return cliente

    def create_detalle(self, data: Dict[str, Any], user_id: int) -> ReparacionDetalle:
        detalle = ReparacionDetalle(modificado_por=user_id, **data)
        self.db.add(detalle)
        self.db.flush()
        return detalle

    def create_reparacion(self, data: Dict[str, Any]) -> Reparacion:
        reparacion = Reparacion(**data)
        self.db.add(reparacion)
        self.db.flush()
        return reparacion

    def create_novedad(
        self,
        reparacion_id: int,
        user_id: int,
        tipo_novedad_id: int,
        observacion: Optional[str] = None,
        monto: Optional[Decimal] = None,
        fecha: Optional[datetime] = None
    ) -> Novedad:
        novedad = Novedad(
            reparacion_id=reparacion_id,
            user_id=user_id,
            tipo_novedad_id=int(tipo_novedad_id),
            observacion=observacion,
            monto=monto,
            modificado_en=fecha or datetime.now(),
            modificado_por=user_id
        )
        self.db.add(novedad)
        self.db.flush()
        return novedad

    def create_factura(self, tipo_factura_id: int, nro_factura: str, user_id: int) -> Factura:
        factura = Factura(
            tipo_factura_id=tipo_factura_id,
            nro_factura=nro_factura,
            modificado_por=user_id
        )
        self.db.add(factura)
        self.db.flush()
        return factura

    def create_venta(self, data: Dict[str, Any]) -> Venta:
        venta = Venta(**data)
        self.db.add(venta)
        self.db.flush()
        return venta

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
