import os

# La base en memoria debe configurarse antes de importar la aplicación
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "clave-de-pruebas")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config.database import engine, SessionLocal, get_db
from app.core.auth.service import AuthService
from app.modules.orders.cache import order_cache
from app.shared.database.models import Base, Role, Usuario
from app.shared.database.seed import seed_catalogos

PASSWORD = "secret123"

# (user_id, login, nombre, apellido, rol_id)
USUARIOS = [
    (1, "gerente", "Carlos", "Gerente", 1),
    (2, "admin", "Ana", "Administradora", 3),
    (3, "electroshop", "Eva", "Electroshop", 2),
    (4, "tecnico", "Juan", "Perez", 4),
    (5, "tecnico2", "Luis", "Acosta", 4),
]


@pytest.fixture(scope="session")
def password_hash():
    return AuthService.get_password_hash(PASSWORD)


@pytest.fixture
def db(password_hash):
    """Base limpia con catálogos y usuarios para cada test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    order_cache.clear()

    session = SessionLocal()
    seed_catalogos(session)
    for user_id, login, nombre, apellido, rol_id in USUARIOS:
        usuario = Usuario(
            user_id=user_id,
            login=login,
            email=f"{login}@fastservice.com",
            nombre=nombre,
            apellido=apellido,
            password_hash=password_hash,
            activo=True
        )
        usuario.roles = [session.get(Role, rol_id)]
        session.add(usuario)
    session.commit()

    yield session

    session.close()
    order_cache.clear()


@pytest.fixture
def client(db):
    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _client_for(user_id: int) -> TestClient:
    token = AuthService.create_access_token({"user_id": user_id})
    test_client = TestClient(app)
    test_client.headers.update({"Authorization": f"Bearer {token}"})
    return test_client


@pytest.fixture
def client_admin(client):
    """Cliente autenticado como administrador de FastService"""
    return _client_for(2)


@pytest.fixture
def client_gerente(client):
    return _client_for(1)


@pytest.fixture
def client_tecnico(client):
    """Cliente autenticado como técnico"""
    return _client_for(4)


@pytest.fixture
def nueva_orden(client_admin):
    """Crea órdenes por la API y devuelve su número"""
    def _crear(**extra):
        payload = {
            "dni": 30111222,
            "nombre": "María",
            "apellido": "González",
            "telefono": "0351 155-123456",
            "direccion": "San Martín 123",
            "tipo_dispositivo_id": 1,
            "marca_id": 1,
            "modelo": "WW90",
            "tecnico_asignado_id": 4,
            "observacion": "No centrifuga",
        }
        payload.update(extra)
        response = client_admin.post("/api/v1/orders/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["order_number"]
    return _crear
