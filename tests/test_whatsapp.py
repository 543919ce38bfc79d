from datetime import datetime
from decimal import Decimal

from app.modules.orders.workflow import TipoNovedadId
from app.modules.whatsapp.service import (
    format_fecha, format_moneda, normalize_phone, render_template
)


class TestFormatos:

    def test_moneda(self):
        assert format_moneda(Decimal("1234.56")) == "$ 1.234,56"
        assert format_moneda(15000) == "$ 15.000,00"
        assert format_moneda(None) == "N/A"

    def test_fecha(self):
        assert format_fecha(datetime(2024, 3, 5, 18, 30)) == "05/03/2024"
        assert format_fecha(None) == "N/A"

    def test_telefono_local(self):
        assert normalize_phone("0351 155-123456") == "54351155123456"

    def test_telefono_con_codigo_de_pais(self):
        assert normalize_phone("+54 9 351 123-4567") == "5493511234567"

    def test_telefono_vacio(self):
        assert normalize_phone(None) is None
        assert normalize_phone("sin teléfono") is None

    def test_render_reemplaza_placeholders(self):
        mensaje = render_template("Hola {{cliente}}, orden #{{ TICKET }}", {"cliente": "Ana", "ticket": "12"})
        assert mensaje == "Hola Ana, orden #12"

    def test_render_deja_desconocidos(self):
        assert render_template("Hola {{apodo}}", {"cliente": "Ana"}) == "Hola {{apodo}}"


class TestPlantillas:

    def test_plantillas_iniciales(self, client_tecnico):
        response = client_tecnico.get("/api/v1/whatsapp/templates")
        assert response.status_code == 200
        nombres = [t["nombre"] for t in response.json()]
        assert "Presupuesto listo" in nombres

    def test_recordatorios(self, client_admin):
        recordatorios = client_admin.get("/api/v1/whatsapp/templates/reminders").json()
        assert len(recordatorios) == 1
        assert recordatorios[0]["estado_reparacion_id"] is None

    def test_placeholders(self, client_admin):
        placeholders = [p["placeholder"] for p in client_admin.get("/api/v1/whatsapp/placeholders").json()]
        assert "{{ticket}}" in placeholders
        assert "{{presupuesto}}" in placeholders

    def test_nueva_predeterminada_reemplaza_la_anterior(self, client_admin):
        response = client_admin.post("/api/v1/whatsapp/templates", json={
            "nombre": "Presupuesto corto",
            "estado_reparacion_id": 2,
            "mensaje": "Presupuesto: {{presupuesto}}",
            "es_default": True
        })
        assert response.status_code == 201
        nueva_id = response.json()["whatsapp_template_id"]

        plantillas = client_admin.get("/api/v1/whatsapp/templates/state/2").json()
        assert plantillas[0]["whatsapp_template_id"] == nueva_id
        assert [t["es_default"] for t in plantillas] == [True, False]

        default = client_admin.get("/api/v1/whatsapp/templates/state/2/default").json()
        assert default["whatsapp_template_id"] == nueva_id

    def test_estado_cero_se_guarda_sin_estado(self, client_admin):
        response = client_admin.post("/api/v1/whatsapp/templates", json={
            "nombre": "Aviso general", "estado_reparacion_id": 0,
            "tipo_template": "recordatorio", "mensaje": "Hola {{cliente}}"
        })
        assert response.status_code == 201
        assert response.json()["estado_reparacion_id"] is None

    def test_estado_inexistente(self, client_admin):
        response = client_admin.post("/api/v1/whatsapp/templates", json={
            "nombre": "X", "estado_reparacion_id": 99, "mensaje": "Hola"
        })
        assert response.status_code == 400

    def test_mensaje_vacio(self, client_admin):
        response = client_admin.post("/api/v1/whatsapp/templates", json={"nombre": "X", "mensaje": "   "})
        assert response.status_code == 422

    def test_tecnico_no_puede_crear(self, client_tecnico):
        response = client_tecnico.post("/api/v1/whatsapp/templates", json={"nombre": "X", "mensaje": "Hola"})
        assert response.status_code == 403

    def test_editar_y_eliminar(self, client_admin):
        plantilla = client_admin.get("/api/v1/whatsapp/templates/state/4/default").json()
        template_id = plantilla["whatsapp_template_id"]

        response = client_admin.put(f"/api/v1/whatsapp/templates/{template_id}", json={
            "mensaje": "Listo {{cliente}}", "activo": False
        })
        assert response.status_code == 200
        assert response.json()["mensaje"] == "Listo {{cliente}}"
        assert response.json()["modificado_en"] is not None

        # inactiva: el estado queda sin plantillas
        assert client_admin.get("/api/v1/whatsapp/templates/state/4/default").status_code == 404

        assert client_admin.delete(f"/api/v1/whatsapp/templates/{template_id}").status_code == 200
        assert client_admin.get(f"/api/v1/whatsapp/templates/{template_id}").status_code == 404


class TestGeneracion:

    def test_mensaje_de_presupuesto(self, client_admin, client_tecnico, nueva_orden):
        numero = nueva_orden()
        client_tecnico.post(f"/api/v1/orders/{numero}/presupuesto", json={"monto": 15000})

        response = client_admin.post(f"/api/v1/whatsapp/generate/{numero}")
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["template_name"] == "Presupuesto listo"
        assert "Hola María" in data["message"]
        assert f"#{numero}" in data["message"]
        assert "$ 15.000,00" in data["message"]
        assert data["phone"] == "54351155123456"
        assert data["whatsapp_url"].startswith("https://wa.me/54351155123456?text=Hola%20Mar")

    def test_estado_sin_plantilla(self, client_admin, nueva_orden):
        numero = nueva_orden()
        response = client_admin.post(f"/api/v1/whatsapp/generate/{numero}")
        assert response.status_code == 404

    def test_plantilla_elegida_con_ultima_novedad(self, client_admin, nueva_orden):
        numero = nueva_orden()
        plantilla = client_admin.post("/api/v1/whatsapp/templates", json={
            "nombre": "Novedad", "mensaje": "{{cliente_completo}}: {{ultima_novedad}} ({{presupuesto}})"
        }).json()

        response = client_admin.post(
            f"/api/v1/whatsapp/templates/{plantilla['whatsapp_template_id']}/generate/{numero}"
        )
        assert response.status_code == 200
        assert response.json()["message"] == "María González: No centrifuga (N/A)"

    def test_ultima_novedad_y_fecha_de_modificacion(self, client_admin, nueva_orden):
        numero = nueva_orden()
        plantilla = client_admin.post("/api/v1/whatsapp/templates", json={
            "nombre": "Seguimiento", "mensaje": "{{ultima_novedad}} / {{fecha_estado}}"
        }).json()
        generar = f"/api/v1/whatsapp/templates/{plantilla['whatsapp_template_id']}/generate/{numero}"

        client_admin.post(f"/api/v1/orders/{numero}/novedades", json={
            "tipo_novedad_id": int(TipoNovedadId.NOTA), "observacion": "Llamar a la tarde"
        })
        hoy = datetime.now().strftime("%d/%m/%Y")
        assert client_admin.post(generar).json()["message"] == f"Llamar a la tarde / {hoy}"

        client_admin.post(f"/api/v1/orders/{numero}/novedades", json={
            "tipo_novedad_id": int(TipoNovedadId.LLAMADO)
        })
        assert client_admin.post(generar).json()["message"] == f"sin novedades / {hoy}"

    def test_orden_inexistente(self, client_admin):
        assert client_admin.post("/api/v1/whatsapp/generate/9999").status_code == 404
