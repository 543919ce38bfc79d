import asyncio
from datetime import datetime

import pytest

import app.modules.orders.cache as cache_module
from app.modules.orders.cache import OrderCacheService, order_cache, run_refresh_loop
from app.modules.orders.repository import OrdersRepository
from app.modules.orders.schemas import (
    CustomerInfo, DeviceInfo, OrderDetails, RepairInfo
)


def _details(numero: int) -> OrderDetails:
    return OrderDetails(
        order_number=numero,
        status_id=1,
        status="INGRESADO",
        created_at=datetime(2024, 1, 1),
        customer=CustomerInfo(cliente_id=1, nombre="Ana"),
        device=DeviceInfo(tipo_dispositivo_id=1, marca_id=1),
        repair=RepairInfo(),
        technician_id=4,
        responsible_id=2
    )


class TestOrderCacheService:
    """Cache en memoria de órdenes."""

    def test_hit_y_miss(self):
        cache = OrderCacheService(max_entries=10)
        assert cache.try_get(1) is None

        cache.add_or_update(_details(1), [])
        assert cache.try_get(1).details.order_number == 1

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1

    def test_descarta_la_menos_usada(self):
        cache = OrderCacheService(max_entries=2)
        cache.add_or_update(_details(1), [])
        cache.add_or_update(_details(2), [])
        cache.try_get(1)
        cache.add_or_update(_details(3), [])

        assert cache.try_get(2) is None
        assert cache.try_get(1) is not None
        assert cache.try_get(3) is not None

    def test_invalidar_marca_tablero_viejo(self):
        cache = OrderCacheService()
        cache.add_or_update(_details(1), [])
        cache.invalidate(1)

        assert cache.try_get(1) is None
        assert cache.stats()["kanban_stale"] is True


class TestCacheConBase:

    def test_precarga(self, client_admin, nueva_orden, db):
        numero = nueva_orden()
        order_cache.clear()

        cargadas = order_cache.warm_up(db)
        assert cargadas == 1
        assert order_cache.is_preloaded
        assert order_cache.try_get(numero) is not None
        assert order_cache.stats()["kanban_rows"] == 1

    def test_estadisticas_solo_admin(self, client_admin, client_tecnico):
        assert client_tecnico.get("/api/v1/orders/cache/stats").status_code == 403
        assert client_admin.get("/api/v1/orders/cache/stats").status_code == 200

    def test_invalidacion_durante_reconstruccion_no_se_pierde(self, monkeypatch):
        cache = OrderCacheService()

        def leer_e_invalidar(repositorio):
            cache.invalidate(1)
            return []

        monkeypatch.setattr(OrdersRepository, "get_open_kanban_rows", leer_e_invalidar)
        cache.refresh_kanban(db=None)

        assert cache.stats()["kanban_stale"] is True

    def test_reconstruccion_sin_cambios_limpia_la_marca(self, monkeypatch):
        cache = OrderCacheService()
        monkeypatch.setattr(OrdersRepository, "get_open_kanban_rows", lambda repositorio: [])

        cache.refresh_kanban(db=None)
        assert cache.stats()["kanban_stale"] is False


class TestRefrescoEnSegundoPlano:

    async def test_sigue_despues_de_un_error_y_se_cancela(self, monkeypatch, caplog):
        llamadas = []

        def refrescar():
            llamadas.append(1)
            if len(llamadas) == 1:
                raise RuntimeError("base caída")

        monkeypatch.setattr(cache_module, "_refresh_with_new_session", refrescar)

        tarea = asyncio.create_task(run_refresh_loop(0))
        for _ in range(200):
            if len(llamadas) >= 2:
                break
            await asyncio.sleep(0.01)

        tarea.cancel()
        with pytest.raises(asyncio.CancelledError):
            await tarea

        assert len(llamadas) >= 2
        assert "Error actualizando el cache del tablero Kanban" in caplog.text
