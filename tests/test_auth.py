from app.core.auth.service import AuthService
from app.shared.database.models import Usuario


PASSWORD = "secret123"


class TestLogin:

    def test_login_json_por_usuario(self, client):
        response = client.post("/api/v1/auth/login-json", json={"username": "admin", "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role_ids"] == [3]

        payload = AuthService.verify_token(data["access_token"])
        assert payload["user_id"] == 2
        assert payload["roles"] == [3]

    def test_login_por_email(self, client):
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "tecnico@fastservice.com", "password": PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["user"]["login"] == "tecnico"

    def test_password_incorrecta(self, client):
        response = client.post("/api/v1/auth/login-json", json={"username": "admin", "password": "otra-clave"})
        assert response.status_code == 401

    def test_usuario_inactivo(self, client, db):
        usuario = db.get(Usuario, 5)
        usuario.activo = False
        db.commit()

        response = client.post("/api/v1/auth/login-json", json={"username": "tecnico2", "password": PASSWORD})
        assert response.status_code == 403

    def test_token_invalido(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer no-es-un-token"})
        assert response.status_code == 401

    def test_token_de_login_permite_operar(self, client):
        token = client.post(
            "/api/v1/auth/login-json", json={"username": "gerente", "password": PASSWORD}
        ).json()["access_token"]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["roles"] == ["Gerente"]


class TestPermisos:

    def test_menu_de_tecnico(self, client_tecnico):
        data = client_tecnico.get("/api/v1/auth/permissions").json()

        assert [item["nombre"] for item in data["menu"]] == ["Tablero", "Órdenes"]
        assert data["is_tecnico"] is True
        assert data["can_access_accounting"] is False
        assert data["can_access_kanban"] is True

    def test_menu_de_gerente(self, client_gerente):
        data = client_gerente.get("/api/v1/auth/permissions").json()

        ordenes = [item["orden"] for item in data["menu"]]
        assert ordenes == sorted(ordenes)
        assert "Contabilidad" in [item["nombre"] for item in data["menu"]]
        assert data["is_manager"] is True
        assert data["can_access_accounting"] is True


class TestCambioDePassword:

    def test_cambio_exitoso(self, client, client_admin):
        response = client_admin.post("/api/v1/auth/change-password", json={
            "current_password": PASSWORD, "new_password": "nueva123", "confirm_password": "nueva123"
        })
        assert response.status_code == 200

        login = client.post("/api/v1/auth/login-json", json={"username": "admin", "password": "nueva123"})
        assert login.status_code == 200

    def test_confirmacion_distinta(self, client_admin):
        response = client_admin.post("/api/v1/auth/change-password", json={
            "current_password": PASSWORD, "new_password": "nueva123", "confirm_password": "nueva124"
        })
        assert response.status_code == 400
