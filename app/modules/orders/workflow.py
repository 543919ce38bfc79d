# app/modules/orders/workflow.py
"""
Motor de estados de las órdenes de reparación.

Cada acción del flujo está descrita por una ``Transicion``: el tipo de
novedad que registra, los estados desde los que se permite y el estado al que
lleva la orden. El servicio de órdenes valida contra esta tabla antes de
escribir en la base.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, FrozenSet, Optional

from fastapi import HTTPException, status


class TipoNovedadId(IntEnum):
    """Ids fijos de la tabla tipos_novedad"""
    INGRESO = 1
    PRESUPUESTADO = 2
    ACEPTA = 3
    REPARADO = 4
    RETIRA = 5
    RECHAZA = 6
    ENTREGA = 12
    ESPERAREPUESTO = 16
    NOTA = 17
    RECHAZAPRESUP = 23
    REINGRESO = 24
    SENA = 26
    PRESUPINFOR = 31
    ACONTROLAR = 33
    VERIFICAR = 39
    REPDOMICILIO = 40
    LLAMADO = 43
    ARMADO = 44
    ARCHIVADO = 45


class Estado:
    """Nombres de EstadoReparacion"""
    INGRESADO = "INGRESADO"
    PRESUPUESTADO = "PRESUPUESTADO"
    PRESUP_DOMICILIO = "PRESUP. EN DOMICILIO"
    A_REPARAR = "A REPARAR"
    REINGRESADO = "REINGRESADO"
    ESP_REPUESTO = "ESP. REPUESTO"
    REPARADO = "REPARADO"
    RECHAZADO = "RECHAZADO"
    RECHAZO_PRESUP = "RECHAZO PRESUP."
    ARMADO = "ARMADO"
    RETIRADO = "RETIRADO"
    ENTREGADO = "ENTREGADO"
    ARCHIVADO = "ARCHIVADO"


ESTADOS_CERRADOS = frozenset({Estado.RETIRADO, Estado.ENTREGADO, Estado.ARCHIVADO})
ESTADOS_COMPLETADOS = frozenset({Estado.RETIRADO, Estado.ENTREGADO})
ESTADOS_PRESUPUESTADOS = frozenset({Estado.PRESUPUESTADO, Estado.PRESUP_DOMICILIO})


@dataclass(frozen=True)
class Transicion:
    accion: str
    tipo_novedad: TipoNovedadId
    etiqueta: str
    # None: se permite desde cualquier estado
    desde: Optional[FrozenSet[str]] = None
    # None: la orden conserva su estado
    hacia: Optional[str] = None
    solo_abiertas: bool = False
    requiere_observacion: bool = False
    registra_venta: bool = False
    marca_informado: bool = False
    requiere_domicilio: bool = False


class TransicionInvalidaError(HTTPException):
    def __init__(self, accion: str, estado_actual: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"No se puede aplicar '{accion}' a una orden en estado {estado_actual}"
        )


class OrdenNoEncontradaError(HTTPException):
    def __init__(self, numero: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Orden #{numero} no encontrada"
        )


_PREVIOS_A_PRESUPUESTO = frozenset({
    Estado.INGRESADO, Estado.REINGRESADO, Estado.ESP_REPUESTO,
    Estado.PRESUPUESTADO, Estado.PRESUP_DOMICILIO,
})
_EN_TALLER = frozenset({
    Estado.INGRESADO, Estado.REINGRESADO, Estado.A_REPARAR, Estado.ESP_REPUESTO,
    Estado.PRESUPUESTADO, Estado.PRESUP_DOMICILIO,
})
_RECHAZADAS = frozenset({Estado.RECHAZADO, Estado.RECHAZO_PRESUP})


TRANSICIONES: Dict[str, Transicion] = {t.accion: t for t in [
    Transicion("ingreso", TipoNovedadId.INGRESO, "Ingreso",
               desde=frozenset(), hacia=Estado.INGRESADO),
    Transicion("presupuesto", TipoNovedadId.PRESUPUESTADO, "Presupuesto",
               desde=_PREVIOS_A_PRESUPUESTO, hacia=Estado.PRESUPUESTADO),
    Transicion("confirma_presupuesto", TipoNovedadId.PRESUPINFOR, "Presupuesto informado",
               desde=ESTADOS_PRESUPUESTADOS, marca_informado=True),
    Transicion("acepta_presupuesto", TipoNovedadId.ACEPTA, "Acepta presupuesto",
               desde=ESTADOS_PRESUPUESTADOS, hacia=Estado.A_REPARAR, marca_informado=True),
    Transicion("rechaza_presupuesto", TipoNovedadId.RECHAZAPRESUP, "Rechaza presupuesto",
               desde=ESTADOS_PRESUPUESTADOS, hacia=Estado.RECHAZO_PRESUP, marca_informado=True),
    Transicion("reparado", TipoNovedadId.REPARADO, "Reparado",
               desde=frozenset({Estado.A_REPARAR, Estado.REINGRESADO, Estado.ESP_REPUESTO}),
               hacia=Estado.REPARADO),
    Transicion("rechazar", TipoNovedadId.RECHAZA, "Rechazo técnico",
               desde=_EN_TALLER, hacia=Estado.RECHAZADO, requiere_observacion=True),
    Transicion("espera_repuesto", TipoNovedadId.ESPERAREPUESTO, "Espera repuesto",
               desde=frozenset({Estado.INGRESADO, Estado.A_REPARAR, Estado.REINGRESADO}),
               hacia=Estado.ESP_REPUESTO, requiere_observacion=True),
    Transicion("rep_domicilio", TipoNovedadId.REPDOMICILIO, "Reparación en domicilio",
               hacia=Estado.RETIRADO, solo_abiertas=True, registra_venta=True,
               requiere_domicilio=True),
    Transicion("armado", TipoNovedadId.ARMADO, "Armado",
               desde=_RECHAZADAS, hacia=Estado.ARMADO),
    Transicion("archivar", TipoNovedadId.ARCHIVADO, "Archivado",
               desde=_RECHAZADAS | {Estado.ARMADO}, hacia=Estado.ARCHIVADO),
    Transicion("retira", TipoNovedadId.RETIRA, "Retiro",
               desde=_RECHAZADAS | {Estado.REPARADO, Estado.ARMADO},
               hacia=Estado.RETIRADO, registra_venta=True),
    Transicion("sena", TipoNovedadId.SENA, "Seña",
               solo_abiertas=True, registra_venta=True),
    Transicion("reingreso", TipoNovedadId.REINGRESO, "Reingreso",
               desde=ESTADOS_COMPLETADOS, hacia=Estado.REINGRESADO, requiere_observacion=True),
    Transicion("entrega", TipoNovedadId.ENTREGA, "Entrega",
               desde=frozenset({Estado.REPARADO}), hacia=Estado.ENTREGADO),
    Transicion("llamado", TipoNovedadId.LLAMADO, "Llamado", marca_informado=True),
    Transicion("nota", TipoNovedadId.NOTA, "Nota"),
    Transicion("verificar", TipoNovedadId.VERIFICAR, "Verificar"),
    Transicion("a_controlar", TipoNovedadId.ACONTROLAR, "A controlar"),
]}

# Tipos que se pueden registrar desde el alta genérica de novedades
ACCIONES_GENERICAS = {
    TRANSICIONES[accion].tipo_novedad: TRANSICIONES[accion]
    for accion in ("entrega", "llamado", "nota", "verificar", "a_controlar")
}


def transicion_para_novedad(tipo_novedad_id: int) -> Transicion:
    """Transición a usar para una novedad cargada de forma genérica"""
    transicion = ACCIONES_GENERICAS.get(tipo_novedad_id)
    if transicion is not None:
        return transicion

    if any(t.tipo_novedad == tipo_novedad_id for t in TRANSICIONES.values()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Este tipo de novedad debe registrarse con su acción específica"
        )
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Tipo de novedad {tipo_novedad_id} no soportado"
    )


def validar_transicion(transicion: Transicion, estado_actual: str, es_domicilio: bool = False) -> Optional[str]:
    """
    Verificar que la acción se pueda aplicar y devolver el estado destino.

    Devuelve ``None`` cuando la acción no cambia el estado de la orden.
    Lanza ``TransicionInvalidaError`` si el estado actual no lo permite.
    """
    if transicion.desde is not None and estado_actual not in transicion.desde:
        raise TransicionInvalidaError(transicion.etiqueta, estado_actual)

    if transicion.solo_abiertas and estado_actual in ESTADOS_CERRADOS:
        raise TransicionInvalidaError(transicion.etiqueta, estado_actual)

    if transicion.requiere_domicilio and not es_domicilio:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La orden no es una reparación a domicilio"
        )

    if transicion.accion == "presupuesto" and es_domicilio:
        return Estado.PRESUP_DOMICILIO

    return transicion.hacia
