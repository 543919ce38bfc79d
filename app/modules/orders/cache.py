# app/modules/orders/cache.py
"""
Cache en memoria de órdenes.

Guarda dos cosas:
- el detalle y los movimientos de las órdenes consultadas recientemente
- una foto de todas las órdenes abiertas para armar el tablero Kanban

La foto del tablero se reconstruye en segundo plano cada
``order_cache_refresh_seconds`` y también bajo demanda cuando alguna
transición la marcó como vieja.
"""
import asyncio
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config.database import SessionLocal
from app.config.settings import settings
from .repository import OrdersRepository, to_order_details
from .schemas import KanbanRow, OrderDetails, OrderMovement

logger = logging.getLogger(__name__)


@dataclass
class CachedOrder:
    details: OrderDetails
    movements: List[OrderMovement]
    cached_at: datetime = field(default_factory=datetime.now)


class OrderCacheService:
    """Cache thread-safe de órdenes y del tablero Kanban"""

    def __init__(self, max_entries: int = 500, refresh_seconds: int = 60):
        self.max_entries = max_entries
        self.refresh_seconds = refresh_seconds
        self._lock = threading.Lock()
        self._orders: "OrderedDict[int, CachedOrder]" = OrderedDict()
        self._kanban_rows: Optional[List[KanbanRow]] = None
        self._kanban_built_at: Optional[datetime] = None
        self._kanban_stale = True
        # Cada invalidación la incrementa; una reconstrucción solo limpia la
        # marca si nadie invalidó mientras leía la base
        self._generation = 0
        self._preloaded = False
        self._hits = 0
        self._misses = 0

    # ===== ÓRDENES =====

    def try_get(self, numero: int) -> Optional[CachedOrder]:
        with self._lock:
            entry = self._orders.get(numero)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss orden #{numero}")
                return None
            self._orders.move_to_end(numero)
            self._hits += 1
            logger.debug(f"Cache hit orden #{numero}")
            return entry

    def add_or_update(self, details: OrderDetails, movements: List[OrderMovement]) -> CachedOrder:
        entry = CachedOrder(details=details, movements=movements)
        with self._lock:
            self._orders[details.order_number] = entry
            self._orders.move_to_end(details.order_number)
            while len(self._orders) > self.max_entries:
                self._orders.popitem(last=False)
        return entry

    def invalidate(self, numero: int):
        """Descartar la orden y marcar el tablero como desactualizado"""
        with self._lock:
            self._orders.pop(numero, None)
            self._kanban_stale = True
            self._generation += 1

    def clear(self):
        with self._lock:
            self._orders.clear()
            self._kanban_rows = None
            self._kanban_built_at = None
            self._kanban_stale = True
            self._generation += 1
            self._preloaded = False
            self._hits = 0
            self._misses = 0

    @property
    def is_preloaded(self) -> bool:
        return self._preloaded

    def warm_up(self, db: Session, size: Optional[int] = None) -> int:
        """Precargar las últimas órdenes con su detalle y movimientos"""
        size = size or settings.order_cache_warmup_size
        repository = OrdersRepository(db)
        reparaciones = repository.get_recent_orders(size)

        for reparacion in reparaciones:
            self.add_or_update(
                to_order_details(reparacion),
                repository.get_movements(reparacion.reparacion_id)
            )

        self.refresh_kanban(db)
        self._preloaded = True
        logger.info(f"Cache de órdenes precargado con {len(reparaciones)} órdenes")
        return len(reparaciones)

    # ===== KANBAN =====

    def refresh_kanban(self, db: Session) -> List[KanbanRow]:
        with self._lock:
            generation = self._generation
        rows = OrdersRepository(db).get_open_kanban_rows()
        with self._lock:
            self._kanban_rows = rows
            self._kanban_built_at = datetime.now()
            self._kanban_stale = generation != self._generation
        logger.info(f"Tablero Kanban actualizado: {len(rows)} órdenes abiertas")
        return rows

    def _kanban_expired(self) -> bool:
        if self._kanban_rows is None or self._kanban_stale:
            return True
        age = (datetime.now() - self._kanban_built_at).total_seconds()
        return age > self.refresh_seconds

    def get_kanban_rows(self, db: Session) -> List[KanbanRow]:
        with self._lock:
            expired = self._kanban_expired()
            rows = self._kanban_rows
        if expired:
            return self.refresh_kanban(db)
        return rows

    def stats(self) -> Dict:
        with self._lock:
            return {
                "orders_cached": len(self._orders),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "preloaded": self._preloaded,
                "kanban_rows": len(self._kanban_rows) if self._kanban_rows is not None else 0,
                "kanban_built_at": self._kanban_built_at,
                "kanban_stale": self._kanban_stale,
                "refresh_seconds": self.refresh_seconds,
            }


order_cache = OrderCacheService(
    max_entries=settings.order_cache_max_entries,
    refresh_seconds=settings.order_cache_refresh_seconds
)


def _refresh_with_new_session():
    db = SessionLocal()
    try:
        order_cache.refresh_kanban(db)
    finally:
        db.close()


async def run_refresh_loop(interval_seconds: int):
    """Tarea de fondo que mantiene actualizada la foto del tablero"""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(_refresh_with_new_session)
        except Exception:
            logger.exception("Error actualizando el cache del tablero Kanban")
