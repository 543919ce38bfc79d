# app/shared/database/seed.py
"""
Datos iniciales: catálogos con ids fijos, roles, menú, plantillas de WhatsApp
y usuarios de demostración.

Las funciones son idempotentes: solo agregan las filas que faltan.
"""
import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from app.core.auth.service import AuthService
from app.modules.orders.workflow import Estado, TipoNovedadId
from .models import (
    Comercio, EstadoReparacion, ItemMenu, Marca, MetodoPago, PuntoDeVenta,
    Role, TipoDispositivo, TipoFactura, TipoNovedad, TipoTransaccion,
    Usuario, WhatsAppTemplate
)

logger = logging.getLogger(__name__)

ESTADOS = [
    (1, Estado.INGRESADO, "abierto"),
    (2, Estado.PRESUPUESTADO, "abierto"),
    (3, Estado.A_REPARAR, "abierto"),
    (4, Estado.REPARADO, "abierto"),
    (5, Estado.RETIRADO, "cerrado"),
    (6, Estado.RECHAZADO, "abierto"),
    (7, Estado.ENTREGADO, "cerrado"),
    (8, Estado.ESP_REPUESTO, "abierto"),
    (9, Estado.RECHAZO_PRESUP, "abierto"),
    (10, Estado.REINGRESADO, "abierto"),
    (11, Estado.PRESUP_DOMICILIO, "abierto"),
    (12, Estado.ARMADO, "abierto"),
    (13, Estado.ARCHIVADO, "cerrado"),
]

TIPOS_NOVEDAD = {
    TipoNovedadId.INGRESO: "Ingreso",
    TipoNovedadId.PRESUPUESTADO: "Presupuestado",
    TipoNovedadId.ACEPTA: "Acepta presupuesto",
    TipoNovedadId.REPARADO: "Reparado",
    TipoNovedadId.RETIRA: "Retira",
    TipoNovedadId.RECHAZA: "Rechaza",
    TipoNovedadId.ENTREGA: "Entrega",
    TipoNovedadId.ESPERAREPUESTO: "Espera repuesto",
    TipoNovedadId.NOTA: "Nota",
    TipoNovedadId.RECHAZAPRESUP: "Rechaza presupuesto",
    TipoNovedadId.REINGRESO: "Reingreso",
    TipoNovedadId.SENA: "Seña",
    TipoNovedadId.PRESUPINFOR: "Presupuesto informado",
    TipoNovedadId.ACONTROLAR: "A controlar",
    TipoNovedadId.VERIFICAR: "Verificar",
    TipoNovedadId.REPDOMICILIO: "Reparación a domicilio",
    TipoNovedadId.LLAMADO: "Llamado",
    TipoNovedadId.ARMADO: "Armado",
    TipoNovedadId.ARCHIVADO: "Archivado",
}

ROLES = [(1, "Gerente"), (2, "ElectroShopAdmin"), (3, "FastServiceAdmin"), (4, "Tecnico")]

# (id, nombre, url, icono, orden, roles)
MENU = [
    (1, "Tablero", "/kanban", "columns", 1, [1, 2, 3, 4]),
    (2, "Órdenes", "/orders", "wrench", 2, [1, 2, 3, 4]),
    (3, "Clientes", "/clients", "users", 3, [1, 2, 3]),
    (4, "Contabilidad", "/accounting", "chart-bar", 4, [1, 2, 3]),
    (5, "WhatsApp", "/whatsapp", "message-circle", 5, [1, 2, 3]),
    (6, "Catálogos", "/admin/catalogs", "settings", 6, [1, 3]),
]

PLANTILLAS = [
    {
        "nombre": "Presupuesto listo",
        "estado_reparacion_id": 2,
        "tipo_template": "estado",
        "es_default": True,
        "orden": 1,
        "mensaje": (
            "Hola {{cliente}}, el presupuesto de tu {{dispositivo}} {{marca}} "
            "(orden #{{ticket}}) es de {{presupuesto}}. ¿Confirmamos la reparación?"
        ),
    },
    {
        "nombre": "Equipo reparado",
        "estado_reparacion_id": 4,
        "tipo_template": "estado",
        "es_default": True,
        "orden": 1,
        "mensaje": (
            "Hola {{cliente}}, tu {{dispositivo}} {{marca}} {{modelo}} (orden #{{ticket}}) "
            "ya está reparado. Podés retirarlo cuando quieras."
        ),
    },
    {
        "nombre": "Esperando repuesto",
        "estado_reparacion_id": 8,
        "tipo_template": "estado",
        "es_default": True,
        "orden": 1,
        "mensaje": (
            "Hola {{cliente}}, tu orden #{{ticket}} está a la espera de un repuesto. "
            "Te avisamos apenas llegue."
        ),
    },
    {
        "nombre": "Recordatorio de retiro",
        "estado_reparacion_id": None,
        "tipo_template": "recordatorio",
        "es_default": True,
        "orden": 1,
        "mensaje": (
            "Hola {{cliente}}, te recordamos que tu equipo (orden #{{ticket}}) "
            "está listo desde el {{fecha_estado}}."
        ),
    },
]

DEMO_USERS = [
    {"login": "gerente", "email": "gerente@fastservice.com", "password": "gerente123",
     "nombre": "Carlos", "apellido": "Gerente", "roles": [1]},
    {"login": "admin", "email": "admin@fastservice.com", "password": "admin123",
     "nombre": "Ana", "apellido": "Administradora", "roles": [3]},
    {"login": "electroshop", "email": "electroshop@fastservice.com", "password": "electro123",
     "nombre": "Eva", "apellido": "Electroshop", "roles": [2]},
    {"login": "tecnico", "email": "tecnico@fastservice.com", "password": "tecnico123",
     "nombre": "Juan", "apellido": "Tecnico", "roles": [4]},
]


def _ensure(db: Session, model, pk: str, rows: List[Dict]) -> int:
    """Agregar las filas cuyo id todavía no existe"""
    nuevos = 0
    for row in rows:
        if db.get(model, row[pk]) is None:
            db.add(model(**row))
            nuevos += 1
    return nuevos


def seed_catalogos(db: Session) -> int:
    """Cargar catálogos, roles, menú y plantillas. Devuelve la cantidad de filas nuevas."""
    nuevos = 0
    nuevos += _ensure(db, EstadoReparacion, "estado_reparacion_id", [
        {"estado_reparacion_id": i, "nombre": nombre, "categoria": categoria, "activo": True}
        for i, nombre, categoria in ESTADOS
    ])
    nuevos += _ensure(db, TipoNovedad, "tipo_novedad_id", [
        {"tipo_novedad_id": int(i), "nombre": nombre} for i, nombre in TIPOS_NOVEDAD.items()
    ])
    nuevos += _ensure(db, MetodoPago, "metodo_pago_id", [
        {"metodo_pago_id": i, "nombre": nombre}
        for i, nombre in enumerate(["Efectivo", "Tarjeta de débito", "Tarjeta de crédito", "Transferencia"], 1)
    ])
    nuevos += _ensure(db, PuntoDeVenta, "punto_de_venta_id", [
        {"punto_de_venta_id": 1, "nombre": "FastService"},
        {"punto_de_venta_id": 2, "nombre": "ElectroShop"},
    ])
    nuevos += _ensure(db, TipoFactura, "tipo_factura_id", [
        {"tipo_factura_id": i, "nombre": nombre} for i, nombre in enumerate(["A", "B", "C"], 1)
    ])
    nuevos += _ensure(db, TipoTransaccion, "tipo_transaccion_id", [
        {"tipo_transaccion_id": 1, "nombre": "VENTA"},
        {"tipo_transaccion_id": 2, "nombre": "PAGO"},
    ])
    nuevos += _ensure(db, Marca, "marca_id", [
        {"marca_id": i, "nombre": nombre}
        for i, nombre in enumerate(["Samsung", "LG", "Philips", "Whirlpool", "Drean", "Atma"], 1)
    ])
    nuevos += _ensure(db, TipoDispositivo, "tipo_dispositivo_id", [
        {"tipo_dispositivo_id": i, "nombre": nombre}
        for i, nombre in enumerate(["Lavarropas", "Heladera", "Microondas", "Televisor", "Aire acondicionado"], 1)
    ])
    nuevos += _ensure(db, Comercio, "comercio_id", [
        {"comercio_id": 1, "code": "FS", "descripcion": "FastService", "telefono": "0351-4000000"},
        {"comercio_id": 2, "code": "ES", "descripcion": "ElectroShop", "telefono": "0351-4111111"},
    ])
    nuevos += _ensure(db, Role, "rol_id", [{"rol_id": i, "nombre": nombre} for i, nombre in ROLES])
    nuevos += _ensure(db, ItemMenu, "item_menu_id", [
        {"item_menu_id": i, "nombre": nombre, "url": url, "icono": icono, "orden": orden}
        for i, nombre, url, icono, orden, _ in MENU
    ])
    db.flush()

    for item_id, _, _, _, _, roles in MENU:
        item = db.get(ItemMenu, item_id)
        for rol_id in roles:
            rol = db.get(Role, rol_id)
            if item not in rol.menu_items:
                rol.menu_items.append(item)

    if db.query(WhatsAppTemplate).count() == 0:
        for plantilla in PLANTILLAS:
            db.add(WhatsAppTemplate(**plantilla))
            nuevos += 1

    db.commit()
    logger.info(f"Catálogos cargados: {nuevos} filas nuevas")
    return nuevos


def seed_demo_users(db: Session) -> List[str]:
    """Crear un usuario por rol si no existe su login"""
    creados = []
    for data in DEMO_USERS:
        if db.query(Usuario).filter(Usuario.login == data["login"]).first():
            continue
        usuario = Usuario(
            login=data["login"],
            email=data["email"],
            nombre=data["nombre"],
            apellido=data["apellido"],
            password_hash=AuthService.get_password_hash(data["password"]),
            activo=True
        )
        usuario.roles = [db.get(Role, rol_id) for rol_id in data["roles"]]
        db.add(usuario)
        creados.append(data["login"])

    db.commit()
    logger.info(f"Usuarios de demostración creados: {creados}")
    return creados
