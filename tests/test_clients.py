from datetime import datetime

import pytest

from app.modules.clients.service import normalize_text, score_term
from app.shared.database.models import Cliente, Direccion, Reparacion


@pytest.fixture
def clientes(db):
    direccion = Direccion(calle="Av. Colón", altura="1234", ciudad="Córdoba")
    db.add(direccion)
    db.flush()
    datos = [
        dict(dni=30111222, nombre="María", apellido="González", mail="maria@mail.com",
             telefono1="351-4445566", direccion="Av. Colón 1234", direccion_id=direccion.direccion_id),
        dict(dni=30111999, nombre="Mariano", apellido="Gonzalvez", telefono1="351-1112233"),
        dict(dni=25444555, nombre="José", apellido="Fernández", mail="jose@mail.com"),
        dict(dni=40123123, nombre="Ana", apellido="Paz"),
    ]
    for data in datos:
        db.add(Cliente(**data))
    db.commit()
    return {c.dni: c.cliente_id for c in db.query(Cliente).all()}


class TestPuntaje:

    def test_normaliza_acentos(self):
        assert normalize_text("  José  Fernández ") == "JOSE FERNANDEZ"

    def test_exacto_prefijo_y_contiene(self):
        campos = ["MARIANO", "GONZALVEZ"]
        assert score_term("MARIANO", campos) == 100
        assert score_term("MARI", campos) == 80
        assert score_term("ALVE", campos) == 60

    def test_error_de_tipeo(self):
        puntaje = score_term("GONSALEZ", ["GONZALEZ"])
        assert 0 < puntaje <= 40

    def test_sin_coincidencia(self):
        assert score_term("XYZ", ["ANA", "PAZ"]) == 0


class TestListado:

    def test_listado_paginado(self, client_admin, clientes):
        response = client_admin.get("/api/v1/clients/", params={"page_size": 3})
        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 4
        assert data["total_pages"] == 2
        # los más nuevos primero
        assert data["items"][0]["dni"] == 40123123

    def test_busqueda_por_texto(self, client_admin, clientes):
        data = client_admin.get("/api/v1/clients/", params={"search": "gonz"}).json()
        assert {c["dni"] for c in data["items"]} == {30111222, 30111999}

    def test_busqueda_por_dni_exacto(self, client_admin, clientes):
        data = client_admin.get("/api/v1/clients/", params={"search": "25444555"}).json()
        assert [c["dni"] for c in data["items"]] == [25444555]

    def test_cantidad_de_ordenes(self, client_admin, nueva_orden):
        nueva_orden()
        nueva_orden()
        data = client_admin.get("/api/v1/clients/").json()
        assert data["items"][0]["order_count"] == 2
        assert data["items"][0]["last_order_date"] is not None

    def test_tecnico_no_accede_al_listado(self, client_tecnico, clientes):
        assert client_tecnico.get("/api/v1/clients/").status_code == 403


class TestAutocompletado:

    def test_por_dni(self, client_tecnico, clientes):
        response = client_tecnico.get("/api/v1/clients/by-dni/30111222")
        assert response.status_code == 200
        data = response.json()
        assert data["apellido"] == "González"
        assert data["address"]["ciudad"] == "Córdoba"

    def test_dni_inexistente(self, client_tecnico, clientes):
        assert client_tecnico.get("/api/v1/clients/by-dni/11111111").status_code == 404

    def test_dni_no_numerico(self, client_tecnico, clientes):
        assert client_tecnico.get("/api/v1/clients/by-dni/abc").status_code == 404

    def test_prefijo_de_dni(self, client_tecnico, clientes):
        data = client_tecnico.get("/api/v1/clients/search/30111").json()
        assert {c["dni"] for c in data} == {30111222, 30111999}

    def test_prefijo_de_nombre(self, client_tecnico, clientes):
        data = client_tecnico.get("/api/v1/clients/search/pa").json()
        assert [c["apellido"] for c in data] == ["Paz"]


class TestBusquedaAproximada:

    def test_error_de_tipeo(self, client_admin, clientes):
        data = client_admin.get("/api/v1/clients/fuzzy", params={"q": "gonsalez"}).json()
        assert data[0]["dni"] == 30111222
        assert all(r["score"] > 0 for r in data)
        assert 25444555 not in [r["dni"] for r in data]

    def test_varias_palabras(self, client_admin, clientes):
        data = client_admin.get("/api/v1/clients/fuzzy", params={"q": "maria gonzalez"}).json()
        assert data[0]["dni"] == 30111222
        assert data[0]["score"] == 100

    def test_desempate_por_ultima_orden(self, client_admin, clientes, db):
        """Con igual puntaje gana el cliente con la orden más reciente."""
        db.add_all([
            Cliente(dni=50000001, nombre="Pedro", apellido="Ruiz"),
            Cliente(dni=50000002, nombre="Pedro", apellido="Ruiz"),
        ])
        db.commit()
        viejo, nuevo = [c.cliente_id for c in db.query(Cliente).filter(Cliente.apellido == "Ruiz").order_by(Cliente.dni)]
        for cliente_id, fecha in ((viejo, datetime(2023, 1, 1)), (nuevo, datetime(2024, 1, 1))):
            db.add(Reparacion(
                cliente_id=cliente_id, empleado_asignado_id=2, tecnico_asignado_id=4,
                estado_reparacion_id=1, marca_id=1, tipo_dispositivo_id=1, creado_en=fecha
            ))
        db.commit()

        data = client_admin.get("/api/v1/clients/fuzzy", params={"q": "pedro ruiz"}).json()
        assert [r["dni"] for r in data[:2]] == [50000002, 50000001]

    def test_sin_resultados(self, client_admin, clientes):
        assert client_admin.get("/api/v1/clients/fuzzy", params={"q": "zzzz"}).json() == []


class TestDetalle:

    def test_detalle_con_estadisticas(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        otra = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/rechazar", json={"observacion": "Sin arreglo"})
        client_admin.post(f"/api/v1/orders/{numero}/retira", json={"monto": 2500, "metodo_pago_id": 1})

        cliente_id = client_admin.get(f"/api/v1/orders/{numero}").json()["customer"]["cliente_id"]
        response = client_admin.get(f"/api/v1/clients/{cliente_id}")
        assert response.status_code == 200
        data = response.json()

        assert [o["order_number"] for o in data["orders"]] == [otra, numero]
        assert data["orders"][1]["status"] == "RETIRADO"
        assert data["orders"][1]["device"] == "LAVARROPAS-SAMSUNG-WW90"
        assert data["stats"]["total_orders"] == 2
        assert data["stats"]["completed_orders"] == 1
        assert data["stats"]["pending_orders"] == 1
        assert data["stats"]["total_spent"] == 2500

    def test_cliente_inexistente(self, client_admin, clientes):
        assert client_admin.get("/api/v1/clients/9999").status_code == 404
