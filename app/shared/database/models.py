# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    Numeric, Float, ForeignKey, Table, func
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

Base = declarative_base()


# =====================================================
# MIXINS
# =====================================================
class ModificacionMixin:
    """Mixin que agrega la auditoría de última modificación"""
    modificado_en = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    modificado_por = Column(Integer)


# =====================================================
# USUARIOS, ROLES Y MENÚ
# =====================================================

usuario_rol = Table(
    "usuario_rol",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("usuarios.user_id"), primary_key=True),
    Column("rol_id", Integer, ForeignKey("roles.rol_id"), primary_key=True),
)

role_menu = Table(
    "role_menu",
    Base.metadata,
    Column("rol_id", Integer, ForeignKey("roles.rol_id"), primary_key=True),
    Column("item_menu_id", Integer, ForeignKey("item_menu.item_menu_id"), primary_key=True),
)


class Role(Base):
    """Rol de usuario (Gerente, ElectroShopAdmin, FastServiceAdmin, Tecnico)"""
    __tablename__ = "roles"

    rol_id = Column(Integer, primary_key=True)
    nombre = Column(String(50), nullable=False, unique=True)

    menu_items = relationship("ItemMenu", secondary=role_menu, order_by="ItemMenu.orden")


class ItemMenu(Base):
    """Entrada del menú lateral habilitada por rol"""
    __tablename__ = "item_menu"

    item_menu_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    url = Column(String(255), nullable=False)
    icono = Column(String(50))
    orden = Column(Integer, default=0)
    activo = Column(Boolean, default=True)


class Usuario(Base):
    """Empleado del servicio técnico (técnicos, responsables, gerencia)"""
    __tablename__ = "usuarios"

    user_id = Column(Integer, primary_key=True, index=True)
    login = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, index=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    direccion = Column(String(255))
    telefono1 = Column(String(50))
    telefono2 = Column(String(50))
    activo = Column(Boolean, default=True)
    creado_en = Column(DateTime, default=datetime.now)

    roles = relationship("Role", secondary=usuario_rol, lazy="selectin")

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellido}"

    @property
    def nombre_listado(self) -> str:
        """Formato "Apellido, Nombre" usado en los combos"""
        return f"{self.apellido}, {self.nombre}"

    @property
    def role_ids(self) -> list:
        return [role.rol_id for role in self.roles]

    @property
    def role_names(self) -> list:
        return [role.nombre for role in self.roles]


# =====================================================
# CLIENTES
# =====================================================

class Direccion(Base):
    """Dirección normalizada de un cliente"""
    __tablename__ = "direcciones"

    direccion_id = Column(Integer, primary_key=True)
    calle = Column(String(255))
    altura = Column(String(20))
    calle2 = Column(String(255))
    calle3 = Column(String(255))
    ciudad = Column(String(100))
    provincia = Column(String(100))
    codigo_postal = Column(String(20))
    pais = Column(String(100))
    comentarios = Column(Text)
    latitud = Column(Float)
    longitud = Column(Float)
    changed_on = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    changed_by = Column(Integer)

    @property
    def texto(self) -> str:
        partes = [p for p in [self.calle, self.altura] if p]
        texto = " ".join(partes)
        if self.ciudad:
            texto = f"{texto}, {self.ciudad}" if texto else self.ciudad
        return texto


class Cliente(Base):
    """Cliente del servicio técnico"""
    __tablename__ = "clientes"

    cliente_id = Column(Integer, primary_key=True, index=True)
    dni = Column(Integer, index=True)
    nombre = Column(String(100))
    apellido = Column(String(100))
    mail = Column(String(255))
    telefono1 = Column(String(50))
    telefono2 = Column(String(50))
    direccion = Column(String(255))
    direccion_id = Column(Integer, ForeignKey("direcciones.direccion_id"))
    localidad = Column(String(100))
    latitud = Column(Float)
    longitud = Column(Float)
    creado_en = Column(DateTime, default=datetime.now)

    direccion_detalle = relationship("Direccion")
    reparaciones = relationship("Reparacion", back_populates="cliente")

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre or ''} {self.apellido or ''}".strip()


# =====================================================
# CATÁLOGOS
# =====================================================

class Comercio(Base):
    """Comercio o sucursal que deriva la reparación"""
    __tablename__ = "comercios"

    comercio_id = Column(Integer, primary_key=True)
    code = Column(String(50))
    descripcion = Column(String(255), nullable=False)
    telefono = Column(String(50))
    activo = Column(Boolean, default=True)


class Marca(Base):
    __tablename__ = "marcas"

    marca_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    descripcion = Column(String(255))
    activo = Column(Boolean, default=True)


class TipoDispositivo(Base):
    __tablename__ = "tipos_dispositivo"

    tipo_dispositivo_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    descripcion = Column(String(255))
    activo = Column(Boolean, default=True)


class EstadoReparacion(Base):
    """Estado de la orden dentro del flujo de trabajo"""
    __tablename__ = "estados_reparacion"

    estado_reparacion_id = Column(Integer, primary_key=True)
    nombre = Column(String(50), nullable=False, unique=True)
    descripcion = Column(String(255))
    categoria = Column(String(50))
    activo = Column(Boolean, default=True)


class TipoNovedad(Base):
    """Tipo de movimiento del historial de una orden (ids fijos)"""
    __tablename__ = "tipos_novedad"

    tipo_novedad_id = Column(Integer, primary_key=True, autoincrement=False)
    nombre = Column(String(50), nullable=False)
    descripcion = Column(String(255))


class MetodoPago(Base):
    __tablename__ = "metodos_pago"

    metodo_pago_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    activo = Column(Boolean, default=True)


class PuntoDeVenta(Base):
    __tablename__ = "puntos_de_venta"

    punto_de_venta_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    activo = Column(Boolean, default=True)


class TipoFactura(Base):
    __tablename__ = "tipos_factura"

    tipo_factura_id = Column(Integer, primary_key=True)
    nombre = Column(String(50), nullable=False)


class TipoTransaccion(Base):
    __tablename__ = "tipos_transaccion"

    tipo_transaccion_id = Column(Integer, primary_key=True)
    nombre = Column(String(50), nullable=False, unique=True)


# =====================================================
# REPARACIONES
# =====================================================

class ReparacionDetalle(Base, ModificacionMixin):
    """Datos técnicos y económicos de una reparación"""
    __tablename__ = "reparacion_detalles"

    reparacion_detalle_id = Column(Integer, primary_key=True)
    es_garantia = Column(Boolean, default=False)
    es_domicilio = Column(Boolean, default=False)
    nro_referencia = Column(String(100))
    fecha_compra = Column(DateTime)
    nro_factura = Column(String(100))
    presupuesto = Column(Numeric(12, 2))
    presupuesto_fecha = Column(DateTime)
    precio = Column(Numeric(12, 2))
    modelo = Column(String(100))
    serie = Column(String(100))
    serbus = Column(String(100))
    ubicacion = Column(String(100))
    accesorios = Column(Text)
    reparacion_desc = Column(Text)


class Reparacion(Base, ModificacionMixin):
    """Orden de reparación"""
    __tablename__ = "reparaciones"

    reparacion_id = Column(Integer, primary_key=True, index=True)
    cliente_id = Column(Integer, ForeignKey("clientes.cliente_id"), nullable=False)
    empleado_asignado_id = Column(Integer, ForeignKey("usuarios.user_id"), nullable=False)
    tecnico_asignado_id = Column(Integer, ForeignKey("usuarios.user_id"), nullable=False)
    estado_reparacion_id = Column(Integer, ForeignKey("estados_reparacion.estado_reparacion_id"), nullable=False)
    comercio_id = Column(Integer, ForeignKey("comercios.comercio_id"))
    marca_id = Column(Integer, ForeignKey("marcas.marca_id"), nullable=False)
    tipo_dispositivo_id = Column(Integer, ForeignKey("tipos_dispositivo.tipo_dispositivo_id"), nullable=False)
    reparacion_detalle_id = Column(Integer, ForeignKey("reparacion_detalles.reparacion_detalle_id"))
    fecha_entrega = Column(DateTime)
    informado_en = Column(DateTime)
    informado_por = Column(Integer)
    creado_en = Column(DateTime, default=datetime.now, nullable=False)
    creado_por = Column(Integer)

    cliente = relationship("Cliente", back_populates="reparaciones")
    empleado_asignado = relationship("Usuario", foreign_keys=[empleado_asignado_id])
    tecnico_asignado = relationship("Usuario", foreign_keys=[tecnico_asignado_id])
    estado = relationship("EstadoReparacion")
    comercio = relationship("Comercio")
    marca = relationship("Marca")
    tipo_dispositivo = relationship("TipoDispositivo")
    detalle = relationship("ReparacionDetalle")
    novedades = relationship(
        "Novedad",
        back_populates="reparacion",
        order_by="Novedad.novedad_id"
    )


class Novedad(Base, ModificacionMixin):
    """Movimiento del historial de una orden"""
    __tablename__ = "novedades"

    novedad_id = Column(Integer, primary_key=True, index=True)
    reparacion_id = Column(Integer, ForeignKey("reparaciones.reparacion_id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("usuarios.user_id"), nullable=False)
    tipo_novedad_id = Column(Integer, ForeignKey("tipos_novedad.tipo_novedad_id"), nullable=False)
    monto = Column(Numeric(12, 2))
    observacion = Column(Text)

    reparacion = relationship("Reparacion", back_populates="novedades")
    usuario = relationship("Usuario")
    tipo = relationship("TipoNovedad")


# =====================================================
# VENTAS Y COMPRAS
# =====================================================

class Factura(Base, ModificacionMixin):
    __tablename__ = "facturas"

    factura_id = Column(Integer, primary_key=True)
    tipo_factura_id = Column(Integer, ForeignKey("tipos_factura.tipo_factura_id"), nullable=False)
    nro_factura = Column(String(50), nullable=False)

    tipo_factura = relationship("TipoFactura")


class Venta(Base):
    """Ingreso de dinero (cobro de reparación, seña o venta de mostrador)"""
    __tablename__ = "ventas"

    venta_id = Column(Integer, primary_key=True, index=True)
    cliente_id = Column(Integer, ForeignKey("clientes.cliente_id"))
    reparacion_id = Column(Integer, ForeignKey("reparaciones.reparacion_id"))
    monto = Column(Numeric(12, 2), nullable=False)
    facturado = Column(Boolean, default=False)
    descripcion = Column(String(255))
    factura_id = Column(Integer, ForeignKey("facturas.factura_id"))
    ref_number = Column(String(100))
    punto_de_venta_id = Column(Integer, ForeignKey("puntos_de_venta.punto_de_venta_id"), nullable=False)
    fecha = Column(DateTime, default=datetime.now, nullable=False, index=True)
    vendedor = Column(Integer, ForeignKey("usuarios.user_id"))
    metodo_pago_id = Column(Integer, ForeignKey("metodos_pago.metodo_pago_id"))
    tipo_transaccion_id = Column(Integer, ForeignKey("tipos_transaccion.tipo_transaccion_id"), nullable=False)

    cliente = relationship("Cliente")
    factura = relationship("Factura")
    metodo_pago = relationship("MetodoPago")
    punto_de_venta = relationship("PuntoDeVenta")


class Proveedor(Base):
    __tablename__ = "proveedores"

    proveedor_id = Column(Integer, primary_key=True)
    nombre = Column(String(255), nullable=False)
    cuit = Column(String(20))
    telefono = Column(String(50))
    activo = Column(Boolean, default=True)


class Compra(Base):
    """Compra de repuestos o insumos a un proveedor"""
    __tablename__ = "compras"

    compra_id = Column(Integer, primary_key=True)
    proveedor_id = Column(Integer, ForeignKey("proveedores.proveedor_id"), nullable=False)
    monto = Column(Numeric(12, 2), nullable=False)
    descripcion = Column(String(255))
    fecha = Column(DateTime, default=datetime.now)
    factura_id = Column(Integer, ForeignKey("facturas.factura_id"))

    proveedor = relationship("Proveedor")
    pagos = relationship("Pago", back_populates="compra")


class Pago(Base):
    """Egreso de dinero asociado a una compra"""
    __tablename__ = "pagos"

    pago_id = Column(Integer, primary_key=True)
    compra_id = Column(Integer, ForeignKey("compras.compra_id"), nullable=False)
    monto = Column(Numeric(12, 2), nullable=False)
    fecha_debito = Column(DateTime)
    fecha_emision = Column(DateTime)
    nro_referencia = Column(String(100))
    motivo = Column(String(255))
    tipo_transaccion_id = Column(Integer, ForeignKey("tipos_transaccion.tipo_transaccion_id"), nullable=False)
    factura_id = Column(Integer, ForeignKey("facturas.factura_id"))
    metodo_pago_id = Column(Integer, ForeignKey("metodos_pago.metodo_pago_id"))
    creado_por = Column(Integer)
    fecha_creacion = Column(DateTime, server_default=func.current_timestamp())

    compra = relationship("Compra", back_populates="pagos")


# =====================================================
# WHATSAPP
# =====================================================

class WhatsAppTemplate(Base):
    """Plantilla de mensaje de WhatsApp por estado o recordatorio"""
    __tablename__ = "whatsapp_templates"

    whatsapp_template_id = Column(Integer, primary_key=True)
    nombre = Column(String(100), nullable=False)
    descripcion = Column(String(255))
    estado_reparacion_id = Column(Integer, ForeignKey("estados_reparacion.estado_reparacion_id"))
    tipo_template = Column(String(20), nullable=False, default="estado")
    mensaje = Column(Text, nullable=False)
    activo = Column(Boolean, default=True)
    orden = Column(Integer, default=0)
    es_default = Column(Boolean, default=False)
    creado_en = Column(DateTime, default=datetime.now)
    creado_por = Column(Integer)
    modificado_en = Column(DateTime)
    modificado_por = Column(Integer)

    estado_reparacion = relationship("EstadoReparacion")
