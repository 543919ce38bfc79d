from datetime import datetime, timedelta

from app.modules.orders.kanban import (
    KANBAN_COLUMNS, build_board, days_since, format_customer, format_device
)
from app.modules.orders.schemas import KanbanRow
from app.modules.orders.workflow import Estado

AHORA = datetime(2024, 5, 20, 10, 0)


def _row(numero, status, **extra):
    data = {
        "order_number": numero,
        "status": status,
        "customer_nombre": "María",
        "customer_apellido": "González",
        "device_type": "Lavarropas",
        "brand": "Samsung",
        "model": "WW90",
        "technician_id": 4,
        "responsible_id": 2,
        "business_id": 1,
        "created_at": AHORA - timedelta(days=3),
    }
    data.update(extra)
    return KanbanRow(**data)


def _column(board, column_id):
    return next(c for c in board.columns if c.id == column_id)


class TestFormatos:

    def test_cliente_apellido_primero(self):
        assert format_customer("María", "González") == "GONZÁLEZ, MARÍA"

    def test_cliente_sin_nombre(self):
        assert format_customer(None, "Gómez") == "GÓMEZ"

    def test_dispositivo_omite_partes_vacias(self):
        assert format_device("Heladera", None, " ") == "HELADERA"
        assert format_device("Lavarropas", "LG", "F1400") == "LAVARROPAS-LG-F1400"

    def test_dias_desde_aviso(self):
        assert days_since(AHORA - timedelta(days=2, hours=20), AHORA) == 3
        assert days_since(None, AHORA) is None


class TestTablero:

    def test_columnas_en_orden(self):
        board = build_board([], max_per_column=50, now=AHORA)
        assert [c.id for c in board.columns] == [c for c, _ in KANBAN_COLUMNS]
        assert board.total_orders == 0

    def test_agrupa_estados_equivalentes(self):
        rows = [
            _row(1, Estado.REINGRESADO),
            _row(2, Estado.A_REPARAR),
            _row(3, Estado.PRESUP_DOMICILIO),
            _row(4, Estado.ARMADO),
        ]
        board = build_board(rows, max_per_column=50, now=AHORA)

        a_reparar = _column(board, "A_REPARAR")
        assert [c.order_number for c in a_reparar.orders] == [2, 1]
        assert a_reparar.orders[1].is_reentry is True
        assert _column(board, "PRESUPUESTADO").order_count == 1
        assert _column(board, "RECHAZADO").order_count == 1

    def test_ignora_ordenes_cerradas(self):
        rows = [_row(1, Estado.RETIRADO), _row(2, Estado.ARCHIVADO), _row(3, Estado.INGRESADO)]
        board = build_board(rows, max_per_column=50, now=AHORA)
        assert board.total_orders == 1

    def test_limite_por_columna(self):
        rows = [_row(n, Estado.INGRESADO) for n in range(1, 8)]
        board = build_board(rows, max_per_column=5, now=AHORA)

        ingresado = _column(board, "INGRESADO")
        assert ingresado.order_count == 7
        assert [c.order_number for c in ingresado.orders] == [7, 6, 5, 4, 3]

    def test_dias_desde_aviso_solo_en_columnas_de_aviso(self):
        informado = AHORA - timedelta(days=4)
        rows = [
            _row(1, Estado.PRESUPUESTADO, informed_at=informado),
            _row(2, Estado.INGRESADO, informed_at=informado),
        ]
        board = build_board(rows, max_per_column=50, now=AHORA)
        assert _column(board, "PRESUPUESTADO").orders[0].days_since_notification == 4
        assert _column(board, "INGRESADO").orders[0].days_since_notification is None

    def test_filtros(self):
        rows = [
            _row(1, Estado.INGRESADO, technician_id=4),
            _row(2, Estado.INGRESADO, technician_id=5),
            _row(3, Estado.INGRESADO, technician_id=4, created_at=AHORA - timedelta(days=30)),
        ]
        board = build_board(
            rows, max_per_column=50, now=AHORA,
            technician_id=4, from_date=AHORA - timedelta(days=7)
        )
        assert [c.order_number for c in _column(board, "INGRESADO").orders] == [1]

    def test_tarjeta_con_formato(self):
        board = build_board([_row(1, Estado.INGRESADO)], max_per_column=50, now=AHORA)
        card = _column(board, "INGRESADO").orders[0]
        assert card.customer == "GONZÁLEZ, MARÍA"
        assert card.device == "LAVARROPAS-SAMSUNG-WW90"
        assert card.last_activity_date == AHORA - timedelta(days=3)


class TestTableroApi:

    def test_tablero_refleja_transiciones(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()

        board = client_tecnico.get("/api/v1/orders/kanban").json()
        ingresado = next(c for c in board["columns"] if c["id"] == "INGRESADO")
        assert [o["order_number"] for o in ingresado["orders"]] == [numero]

        client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 1200})

        board = client_tecnico.get("/api/v1/orders/kanban").json()
        presupuestado = next(c for c in board["columns"] if c["id"] == "PRESUPUESTADO")
        assert [o["order_number"] for o in presupuestado["orders"]] == [numero]
        assert board["total_orders"] == 1

    def test_filtro_por_tecnico(self, client_admin, nueva_orden):
        nueva_orden()
        nueva_orden(tecnico_asignado_id=5, dni=20999888)

        board = client_admin.get("/api/v1/orders/kanban", params={"technician_id": 5}).json()
        assert board["total_orders"] == 1

    def test_filtro_por_fecha_con_zona_horaria(self, client_admin, nueva_orden):
        nueva_orden()

        response = client_admin.get("/api/v1/orders/kanban", params={"from_date": "2020-01-01T00:00:00Z"})
        assert response.status_code == 200
        assert response.json()["total_orders"] == 1

        response = client_admin.get("/api/v1/orders/kanban", params={"to_date": "2020-01-01T00:00:00+00:00"})
        assert response.status_code == 200
        assert response.json()["total_orders"] == 0

    def test_busqueda_por_fecha_con_zona_horaria(self, client_admin, nueva_orden):
        numero = nueva_orden()

        response = client_admin.get("/api/v1/orders/search", params={"from_date": "2020-01-01T00:00:00Z"})
        assert response.status_code == 200
        assert [o["order_number"] for o in response.json()] == [numero]

        response = client_admin.get("/api/v1/orders/search", params={"to_date": "2020-01-01T00:00:00Z"})
        assert response.json() == []
