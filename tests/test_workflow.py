import pytest
from fastapi import HTTPException

from app.modules.orders.schemas import parse_monto
from app.modules.orders.workflow import (
    Estado, TipoNovedadId, TRANSICIONES, TransicionInvalidaError,
    transicion_para_novedad, validar_transicion
)
from app.shared.database.models import Factura, Novedad, Venta


class TestTransiciones:
    """Tabla de transiciones sin base de datos."""

    def test_presupuesto_desde_ingresado(self):
        assert validar_transicion(TRANSICIONES["presupuesto"], Estado.INGRESADO) == Estado.PRESUPUESTADO

    def test_presupuesto_a_domicilio(self):
        """Una orden a domicilio queda en PRESUP. EN DOMICILIO."""
        destino = validar_transicion(TRANSICIONES["presupuesto"], Estado.INGRESADO, es_domicilio=True)
        assert destino == Estado.PRESUP_DOMICILIO

    def test_acepta_desde_presupuesto_domicilio(self):
        destino = validar_transicion(TRANSICIONES["acepta_presupuesto"], Estado.PRESUP_DOMICILIO)
        assert destino == Estado.A_REPARAR

    def test_confirma_no_cambia_estado(self):
        assert validar_transicion(TRANSICIONES["confirma_presupuesto"], Estado.PRESUPUESTADO) is None

    def test_reparado_desde_ingresado_es_invalido(self):
        with pytest.raises(TransicionInvalidaError) as exc:
            validar_transicion(TRANSICIONES["reparado"], Estado.INGRESADO)
        assert exc.value.status_code == 409

    def test_sena_en_orden_cerrada_es_invalida(self):
        with pytest.raises(TransicionInvalidaError):
            validar_transicion(TRANSICIONES["sena"], Estado.RETIRADO)

    def test_nota_se_permite_en_cualquier_estado(self):
        for estado in (Estado.INGRESADO, Estado.RETIRADO, Estado.ARCHIVADO):
            assert validar_transicion(TRANSICIONES["nota"], estado) is None

    def test_rep_domicilio_requiere_orden_a_domicilio(self):
        with pytest.raises(HTTPException) as exc:
            validar_transicion(TRANSICIONES["rep_domicilio"], Estado.A_REPARAR, es_domicilio=False)
        assert exc.value.status_code == 400

    def test_reingreso_solo_desde_completadas(self):
        assert validar_transicion(TRANSICIONES["reingreso"], Estado.ENTREGADO) == Estado.REINGRESADO
        with pytest.raises(TransicionInvalidaError):
            validar_transicion(TRANSICIONES["reingreso"], Estado.ARCHIVADO)

    def test_archivar_desde_armado(self):
        assert validar_transicion(TRANSICIONES["archivar"], Estado.ARMADO) == Estado.ARCHIVADO

    def test_novedad_generica(self):
        assert transicion_para_novedad(TipoNovedadId.NOTA).accion == "nota"
        assert transicion_para_novedad(TipoNovedadId.ENTREGA).accion == "entrega"

    def test_novedad_con_accion_propia_se_rechaza(self):
        with pytest.raises(HTTPException) as exc:
            transicion_para_novedad(TipoNovedadId.REPARADO)
        assert exc.value.status_code == 400

    def test_novedad_desconocida(self):
        with pytest.raises(HTTPException) as exc:
            transicion_para_novedad(999)
        assert exc.value.status_code == 400


class TestParseMonto:

    def test_formato_argentino(self):
        assert str(parse_monto("$ 1.234,50")) == "1234.50"

    def test_separador_de_miles(self):
        assert str(parse_monto("1.500")) == "1500"

    def test_punto_decimal(self):
        assert str(parse_monto("1234.5")) == "1234.5"

    def test_vacio(self):
        assert parse_monto("  ") is None

    def test_invalido(self):
        with pytest.raises(ValueError):
            parse_monto("doce")


class TestFlujoDeOrden:
    """Flujo completo por la API."""

    def test_alta_de_orden(self, client_admin, nueva_orden):
        numero = nueva_orden()

        response = client_admin.get(f"/api/v1/orders/{numero}")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == Estado.INGRESADO
        assert data["customer"]["dni"] == 30111222
        assert data["technician_id"] == 4
        assert data["responsible_id"] == 2

        movimientos = client_admin.get(f"/api/v1/orders/{numero}/movements").json()
        assert len(movimientos) == 1
        assert movimientos[0]["tipo_novedad_id"] == TipoNovedadId.INGRESO
        assert movimientos[0]["observacion"] == "No centrifuga"

    def test_alta_reutiliza_cliente_por_dni(self, client_admin, nueva_orden):
        primera = nueva_orden()
        segunda = nueva_orden(telefono="351-999999")

        uno = client_admin.get(f"/api/v1/orders/{primera}").json()
        dos = client_admin.get(f"/api/v1/orders/{segunda}").json()
        assert uno["customer"]["cliente_id"] == dos["customer"]["cliente_id"]
        assert dos["customer"]["telefono"] == "351-999999"

    def test_alta_con_tecnico_inexistente(self, client_admin):
        response = client_admin.post("/api/v1/orders/", json={
            "nombre": "Pedro", "apellido": "Lopez",
            "tipo_dispositivo_id": 1, "marca_id": 1, "tecnico_asignado_id": 99
        })
        assert response.status_code == 400

    def test_tecnico_no_puede_dar_de_alta(self, client_tecnico):
        response = client_tecnico.post("/api/v1/orders/", json={
            "nombre": "Pedro", "apellido": "Lopez",
            "tipo_dispositivo_id": 1, "marca_id": 1, "tecnico_asignado_id": 4
        })
        assert response.status_code == 403

    def test_sin_token(self, client):
        response = client.get("/api/v1/orders/1")
        assert response.status_code in [401, 403]

    def test_orden_inexistente(self, client_admin):
        response = client_admin.get("/api/v1/orders/9999")
        assert response.status_code == 404

    def test_flujo_completo_con_venta(self, client_admin, client_tecnico, nueva_orden, db):
        """Presupuesto, aceptación, reparación y retiro con cobro."""
        numero = nueva_orden()

        response = client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": "15.000"})
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["previous_status"] == Estado.INGRESADO
        assert data["new_status"] == Estado.PRESUPUESTADO
        assert float(data["monto"]) == 15000

        response = client_admin.post(f"/api/v1/orders/{numero}/informar-presupuesto", json={"accion": "acepta"})
        assert response.status_code == 200
        assert response.json()["new_status"] == Estado.A_REPARAR

        response = client_tecnico.post(
            f"/api/v1/orders/{numero}/reparado", json={"observacion": "Cambio de rulemanes"}
        )
        assert response.status_code == 200
        assert response.json()["new_status"] == Estado.REPARADO

        response = client_admin.post(f"/api/v1/orders/{numero}/retira", json={
            "monto": "15000", "metodo_pago_id": 1, "facturado": True,
            "tipo_factura_id": 2, "nro_factura": "0001-00001234"
        })
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["new_status"] == Estado.RETIRADO
        assert data["venta_id"] is not None
        assert data["factura_id"] is not None

        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["status"] == Estado.RETIRADO
        assert float(orden["repair"]["presupuesto"]) == 15000
        assert float(orden["repair"]["precio"]) == 15000
        assert orden["repair"]["reparacion_desc"] == "Cambio de rulemanes"
        assert orden["repair"]["fecha_entrega"] is not None

        db.expire_all()
        venta = db.query(Venta).filter(Venta.reparacion_id == numero).one()
        assert float(venta.monto) == 15000
        assert venta.facturado is True
        assert venta.punto_de_venta_id == 1
        assert db.query(Factura).count() == 1

        tipos = [m["tipo_novedad_id"] for m in client_admin.get(f"/api/v1/orders/{numero}/movements").json()]
        assert tipos == [
            TipoNovedadId.INGRESO, TipoNovedadId.PRESUPUESTADO, TipoNovedadId.ACEPTA,
            TipoNovedadId.REPARADO, TipoNovedadId.RETIRA
        ]

    def test_retiro_sin_cobro_no_genera_venta(self, client_admin, client_tecnico, nueva_orden, db):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/rechazar", json={"observacion": "Sin repuestos"})

        response = client_admin.post(f"/api/v1/orders/{numero}/retira", json={})
        assert response.status_code == 200
        assert response.json()["venta_id"] is None
        db.expire_all()
        assert db.query(Venta).count() == 0

    def test_transicion_invalida_devuelve_409(self, client_tecnico, nueva_orden, db):
        numero = nueva_orden()
        response = client_tecnico.post(f"/api/v1/orders/{numero}/reparado", json={})
        assert response.status_code == 409

        # No queda ninguna novedad parcial
        db.expire_all()
        assert db.query(Novedad).filter(Novedad.reparacion_id == numero).count() == 1

    def test_rechazo_requiere_observacion(self, client_tecnico, nueva_orden):
        numero = nueva_orden()
        response = client_tecnico.post(f"/api/v1/orders/{numero}/rechazar", json={"observacion": "  "})
        assert response.status_code == 400

    def test_presupuesto_en_cero(self, client_tecnico, nueva_orden):
        numero = nueva_orden()
        response = client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 0})
        assert response.status_code == 422

    def test_cobro_sin_metodo_de_pago(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/rechazar", json={"observacion": "No tiene arreglo"})

        response = client_admin.post(f"/api/v1/orders/{numero}/retira", json={"monto": 500})
        assert response.status_code == 400

    def test_factura_sin_numero(self, client_admin, nueva_orden):
        numero = nueva_orden()
        response = client_admin.post(f"/api/v1/orders/{numero}/sena", json={
            "monto": 1000, "metodo_pago_id": 1, "facturado": True, "tipo_factura_id": 1
        })
        assert response.status_code == 400

    def test_sena_no_cambia_estado(self, client_admin, nueva_orden):
        numero = nueva_orden()
        response = client_admin.post(f"/api/v1/orders/{numero}/sena", json={"monto": "2.000", "metodo_pago_id": 1})
        assert response.status_code == 200
        data = response.json()
        assert data["new_status"] == Estado.INGRESADO
        assert data["venta_id"] is not None

        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["repair"]["precio"] is None

    def test_rechazo_armado_y_archivo(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        assert client_tecnico.post(
            f"/api/v1/orders/{numero}/rechazar", json={"observacion": "Placa quemada"}
        ).json()["new_status"] == Estado.RECHAZADO
        assert client_tecnico.post(f"/api/v1/orders/{numero}/armado", json={}).json()["new_status"] == Estado.ARMADO

        response = client_admin.post(f"/api/v1/orders/{numero}/archivar", json={"ubicacion": "Estante 4"})
        assert response.status_code == 200
        assert response.json()["ubicacion"] == "Estante 4"

        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["status"] == Estado.ARCHIVADO
        assert orden["repair"]["ubicacion"] == "Estante 4"

    def test_rechazo_de_presupuesto(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 8000})

        response = client_admin.post(
            f"/api/v1/orders/{numero}/rechaza-presupuesto", json={"observacion": "Muy caro"}
        )
        assert response.status_code == 200
        assert response.json()["new_status"] == Estado.RECHAZO_PRESUP

    def test_reparacion_a_domicilio(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden(es_domicilio=True)

        response = client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 5000})
        assert response.json()["new_status"] == Estado.PRESUP_DOMICILIO

        response = client_tecnico.post(f"/api/v1/orders/{numero}/rep-domicilio", json={
            "monto": 5000, "metodo_pago_id": 2
        })
        assert response.status_code == 200, response.text
        assert response.json()["new_status"] == Estado.RETIRADO
        assert response.json()["venta_id"] is not None

    def test_rep_domicilio_en_taller(self, client_tecnico, nueva_orden):
        numero = nueva_orden()
        response = client_tecnico.post(f"/api/v1/orders/{numero}/rep-domicilio", json={})
        assert response.status_code == 400

    def test_reingreso_y_nueva_reparacion(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 1000})
        client_admin.post(f"/api/v1/orders/{numero}/informar-presupuesto", json={"accion": "acepta"})
        client_tecnico.post(f"/api/v1/orders/{numero}/reparado", json={})
        client_admin.post(f"/api/v1/orders/{numero}/retira", json={})

        response = client_admin.post(f"/api/v1/orders/{numero}/reingreso", json={"observacion": "Volvió a fallar"})
        assert response.status_code == 200
        assert response.json()["new_status"] == Estado.REINGRESADO

        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["repair"]["fecha_entrega"] is None

        response = client_tecnico.post(f"/api/v1/orders/{numero}/reparado", json={})
        assert response.json()["new_status"] == Estado.REPARADO

    def test_nota_generica(self, client_tecnico, nueva_orden):
        numero = nueva_orden()
        response = client_tecnico.post(f"/api/v1/orders/{numero}/novedades", json={
            "tipo_novedad_id": int(TipoNovedadId.NOTA), "observacion": "Cliente llamó"
        })
        assert response.status_code == 200
        assert response.json()["new_status"] == Estado.INGRESADO

    def test_entrega_generica_cierra_la_orden(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 1000})
        client_admin.post(f"/api/v1/orders/{numero}/informar-presupuesto", json={"accion": "acepta"})
        client_tecnico.post(f"/api/v1/orders/{numero}/reparado", json={})

        response = client_admin.post(f"/api/v1/orders/{numero}/novedades", json={
            "tipo_novedad_id": int(TipoNovedadId.ENTREGA), "observacion": "Entregado en mano"
        })
        assert response.status_code == 200
        assert response.json()["previous_status"] == Estado.REPARADO
        assert response.json()["new_status"] == Estado.ENTREGADO

        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["status"] == Estado.ENTREGADO
        assert orden["repair"]["fecha_entrega"] is not None

        board = client_admin.get("/api/v1/orders/kanban").json()
        assert board["total_orders"] == 0

    def test_llamado_marca_informado(self, client_admin, nueva_orden):
        numero = nueva_orden()
        client_admin.post(f"/api/v1/orders/{numero}/novedades", json={"tipo_novedad_id": int(TipoNovedadId.LLAMADO)})
        orden = client_admin.get(f"/api/v1/orders/{numero}").json()
        assert orden["repair"]["informado_en"] is not None

    def test_actualizar_orden(self, client_admin, nueva_orden):
        numero = nueva_orden()
        response = client_admin.put(f"/api/v1/orders/{numero}", json={
            "modelo": "WW80", "tecnico_asignado_id": 5, "telefono": "4222333"
        })
        assert response.status_code == 200
        data = response.json()
        assert data["device"]["modelo"] == "WW80"
        assert data["technician_id"] == 5
        assert data["customer"]["telefono"] == "4222333"


class TestBusquedaYEstados:

    def test_estados(self, client_tecnico, db):
        nombres = [e["nombre"] for e in client_tecnico.get("/api/v1/orders/statuses").json()]
        assert Estado.INGRESADO in nombres
        assert Estado.PRESUP_DOMICILIO in nombres

    def test_busqueda_por_dni(self, client_admin, nueva_orden):
        numero = nueva_orden()
        nueva_orden(dni=20999888, nombre="Jorge", apellido="Ruiz")

        response = client_admin.get("/api/v1/orders/search", params={"dni": 30111222})
        assert response.status_code == 200
        assert [o["order_number"] for o in response.json()] == [numero]
