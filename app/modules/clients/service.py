# app/modules/clients/service.py
import logging
import math
import re
import unicodedata
from datetime import datetime
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.modules.orders.kanban import format_device
from app.modules.orders.workflow import ESTADOS_CERRADOS, ESTADOS_COMPLETADOS
from app.shared.database.models import Cliente, Reparacion
from .repository import ClientsRepository
from .schemas import (
    AddressDetails, ClientAutocomplete, ClientDetails, ClientListItem,
    ClientListResponse, ClientOrderItem, ClientSearchResult, ClientStats
)

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7
SCORE_EXACT = 100
SCORE_PREFIX = 80
SCORE_CONTAINS = 60
SCORE_TYPO_MAX = 40


def normalize_text(texto: Optional[str]) -> str:
    """Mayúsculas, sin acentos y sin signos"""
    if not texto:
        return ""
    texto = unicodedata.normalize("NFKD", str(texto))
    texto = "".join(c for c in texto if not unicodedata.combining(c))
    texto = re.sub(r"[^A-Za-z0-9@.\s]", " ", texto.upper())
    return re.sub(r"\s+", " ", texto).strip()


def _similarity(a: str, b: str) -> float:
    return SequenceMatcher(None, a, b).ratio()


def score_term(termino: str, campos: List[str]) -> float:
    """Puntaje de una palabra buscada contra los campos de un cliente"""
    mejor = 0.0
    for campo in campos:
        if not campo:
            continue
        palabras = campo.split()
        if termino == campo or termino in palabras:
            return float(SCORE_EXACT)
        if any(p.startswith(termino) for p in palabras):
            mejor = max(mejor, SCORE_PREFIX)
        elif termino in campo:
            mejor = max(mejor, SCORE_CONTAINS)
        elif mejor < SCORE_CONTAINS:
            ratio = max(_similarity(termino, p) for p in palabras)
            if ratio >= SIMILARITY_THRESHOLD:
                mejor = max(mejor, ratio * SCORE_TYPO_MAX)
    return mejor


def score_client(terminos: List[str], cliente: Cliente) -> float:
    campos = [
        normalize_text(cliente.nombre),
        normalize_text(cliente.apellido),
        str(cliente.dni) if cliente.dni is not None else "",
        normalize_text(cliente.mail),
        normalize_text(cliente.telefono1),
        normalize_text(cliente.direccion),
    ]
    if not terminos:
        return 0.0
    return sum(score_term(t, campos) for t in terminos) / len(terminos)


def _list_item(cliente: Cliente, stats: Tuple[int, Optional[datetime]]) -> dict:
    return {
        "cliente_id": cliente.cliente_id,
        "dni": cliente.dni,
        "nombre": cliente.nombre,
        "apellido": cliente.apellido,
        "email": cliente.mail,
        "telefono": cliente.telefono1,
        "celular": cliente.telefono2,
        "direccion": cliente.direccion,
        "localidad": cliente.localidad,
        "order_count": stats[0],
        "last_order_date": stats[1],
    }


def _autocomplete_data(cliente: Cliente) -> dict:
    direccion = cliente.direccion_detalle
    address = None
    if direccion is not None:
        address = AddressDetails(
            direccion_id=direccion.direccion_id,
            calle=direccion.calle,
            altura=direccion.altura,
            calle2=direccion.calle2,
            calle3=direccion.calle3,
            ciudad=direccion.ciudad,
            provincia=direccion.provincia,
            codigo_postal=direccion.codigo_postal,
            pais=direccion.pais,
            comentarios=direccion.comentarios,
            latitud=direccion.latitud,
            longitud=direccion.longitud
        )
    return {
        "cliente_id": cliente.cliente_id,
        "dni": cliente.dni,
        "nombre": cliente.nombre,
        "apellido": cliente.apellido,
        "email": cliente.mail,
        "telefono": cliente.telefono1,
        "celular": cliente.telefono2,
        "direccion": cliente.direccion or (direccion.texto if direccion else None),
        "localidad": cliente.localidad,
        "latitud": cliente.latitud,
        "longitud": cliente.longitud,
        "address": address,
    }


def _order_item(reparacion: Reparacion) -> ClientOrderItem:
    detalle = reparacion.detalle
    return ClientOrderItem(
        order_number=reparacion.reparacion_id,
        status=reparacion.estado.nombre if reparacion.estado else "",
        device=format_device(
            reparacion.tipo_dispositivo.nombre if reparacion.tipo_dispositivo else None,
            reparacion.marca.nombre if reparacion.marca else None,
            detalle.modelo if detalle else None
        ),
        created_at=reparacion.creado_en,
        delivered_at=reparacion.fecha_entrega,
        presupuesto=detalle.presupuesto if detalle else None,
        precio=detalle.precio if detalle else None
    )


def build_stats(orders: List[Reparacion]) -> ClientStats:
    estados = [o.estado.nombre if o.estado else None for o in orders]
    fechas = [o.creado_en for o in orders if o.creado_en]
    total_spent = sum(
        float(o.detalle.precio) for o in orders if o.detalle and o.detalle.precio is not None
    )
    return ClientStats(
        total_orders=len(orders),
        completed_orders=sum(1 for e in estados if e in ESTADOS_COMPLETADOS),
        pending_orders=sum(1 for e in estados if e not in ESTADOS_CERRADOS),
        total_spent=round(total_spent, 2),
        first_order_date=min(fechas) if fechas else None,
        last_order_date=max(fechas) if fechas else None
    )


class ClientsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = ClientsRepository(db)

    async def list_clients(self, search: Optional[str], page: int, page_size: int) -> ClientListResponse:
        clientes, total = self.repository.list_clients(search, page, page_size)
        stats = self.repository.get_order_stats([c.cliente_id for c in clientes])

        items = [
            ClientListItem(**_list_item(c, stats.get(c.cliente_id, (0, None))))
            for c in clientes
        ]
        return ClientListResponse(
            items=items,
            total_count=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0
        )

    async def get_client(self, cliente_id: int) -> ClientDetails:
        cliente = self.repository.get_client(cliente_id)
        if cliente is None:
            raise HTTPException(status_code=404, detail=f"Cliente {cliente_id} no encontrado")

        orders = self.repository.get_client_orders(cliente_id)
        return ClientDetails(
            **_autocomplete_data(cliente),
            orders=[_order_item(o) for o in orders],
            stats=build_stats(orders)
        )

    async def get_by_dni(self, dni: str) -> ClientAutocomplete:
        dni = dni.strip()
        if not dni.isdigit():
            raise HTTPException(status_code=404, detail=f"No hay clientes con DNI {dni}")

        cliente = self.repository.get_client_by_dni(int(dni))
        if cliente is None:
            raise HTTPException(status_code=404, detail=f"No hay clientes con DNI {dni}")
        return ClientAutocomplete(**_autocomplete_data(cliente))

    async def search_by_prefix(self, prefix: str, limit: int = 10) -> List[ClientAutocomplete]:
        if not prefix.strip():
            return []
        return [
            ClientAutocomplete(**_autocomplete_data(c))
            for c in self.repository.search_by_prefix(prefix, limit)
        ]

    async def fuzzy_search(self, query: str, limit: int = 20) -> List[ClientSearchResult]:
        """
        Búsqueda tolerante a errores de tipeo

        Cada palabra buscada puntúa contra nombre, apellido, DNI, mail,
        teléfono y dirección; el puntaje del cliente es el promedio.
        """
        terminos = normalize_text(query).split()
        if not terminos:
            return []

        puntajes: Dict[int, Tuple[float, Cliente]] = {}
        for cliente in self.repository.get_all_for_matching():
            score = score_client(terminos, cliente)
            if score > 0:
                puntajes[cliente.cliente_id] = (score, cliente)

        stats = self.repository.get_order_stats(list(puntajes.keys()))

        def orden(par):
            score, cliente = par
            ultima = stats.get(cliente.cliente_id, (0, None))[1]
            return (-score, -(ultima.timestamp() if ultima else 0), cliente.cliente_id)

        ordenados = sorted(puntajes.values(), key=orden)

        logger.debug(f"Búsqueda aproximada '{query}': {len(ordenados)} coincidencias")
        return [
            ClientSearchResult(
                **_list_item(cliente, stats.get(cliente.cliente_id, (0, None))),
                score=round(score, 2)
            )
            for score, cliente in ordenados[:limit]
        ]
