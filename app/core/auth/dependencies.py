from enum import IntEnum
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.shared.database.models import Usuario
from app.core.auth.service import AuthService

security = HTTPBearer()


class Rol(IntEnum):
    """Ids fijos de la tabla roles"""
    GERENTE = 1
    ELECTROSHOP_ADMIN = 2
    FASTSERVICE_ADMIN = 3
    TECNICO = 4


ROLES_ADMIN = [Rol.GERENTE, Rol.ELECTROSHOP_ADMIN, Rol.FASTSERVICE_ADMIN]
ROLES_TECNICO = [Rol.TECNICO, Rol.GERENTE]
ROLES_TODOS = [Rol.GERENTE, Rol.ELECTROSHOP_ADMIN, Rol.FASTSERVICE_ADMIN, Rol.TECNICO]


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Usuario:
    """Obtener usuario actual desde el token"""

    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    user_id: int = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError("Payload del token inválido")

    user = db.query(Usuario).filter(Usuario.user_id == user_id).first()

    if user is None:
        raise AuthenticationError("Usuario no encontrado")

    if not user.activo:
        raise AuthenticationError("Usuario inactivo")

    return user

def require_roles(allowed_roles: List[int]):
    """Factory para crear dependency que requiere alguno de los roles indicados"""
    def role_checker(current_user: Usuario = Depends(get_current_user)) -> Usuario:
        if not set(current_user.role_ids) & {int(r) for r in allowed_roles}:
            raise AuthorizationError(
                f"Roles {current_user.role_names} no autorizados para esta operación"
            )
        return current_user
    return role_checker

# Utility functions para verificación de permisos
def is_admin(user: Usuario) -> bool:
    return any(r in ROLES_ADMIN for r in user.role_ids)

def is_tecnico(user: Usuario) -> bool:
    return Rol.TECNICO in user.role_ids

def is_manager(user: Usuario) -> bool:
    return Rol.GERENTE in user.role_ids
