import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.service import AuthService
from app.core.auth.schemas import (
    UserLogin, TokenResponse, UserResponse, PermissionsResponse,
    MenuItemResponse, ChangePasswordRequest
)
from app.core.auth.dependencies import (
    get_current_user, is_admin, is_manager, is_tecnico
)
from app.shared.database.models import Usuario

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_response(user: Usuario) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        login=user.login,
        email=user.email,
        nombre=user.nombre,
        apellido=user.apellido,
        roles=user.role_names,
        role_ids=user.role_ids,
        activo=user.activo
    )


def _authenticate(db: Session, username: str, password: str) -> TokenResponse:
    """Validar credenciales por login o email y emitir el token"""
    user = AuthService.authenticate_user(db, username, password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.activo:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo"
        )

    access_token = AuthService.token_for_user(user)
    logger.info(f"Login exitoso: {user.login}")

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=_user_response(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Endpoint de login para obtener token de acceso

    **Parámetros:**
    - **username**: Login o email del usuario
    - **password**: Contraseña del usuario
    """
    return _authenticate(db, form_data.username, form_data.password)


@router.post("/login-json", response_model=TokenResponse)
async def login_json(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """Endpoint de login alternativo que acepta JSON"""
    return _authenticate(db, user_login.username, user_login.password)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: Usuario = Depends(get_current_user)
):
    """Obtener información del usuario actual"""
    return _user_response(current_user)


@router.post("/logout")
async def logout():
    """Logout (con JWT stateless, solo informativo)"""
    return {"message": "Logout exitoso. Elimina el token del cliente."}


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cambiar la contraseña del usuario actual"""
    if not request.passwords_match():
        raise HTTPException(status_code=400, detail="Las contraseñas no coinciden")

    if not AuthService.verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="La contraseña actual es incorrecta")

    current_user.password_hash = AuthService.get_password_hash(request.new_password)
    db.commit()
    return {"success": True, "message": "Contraseña actualizada"}


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(
    current_user: Usuario = Depends(get_current_user)
):
    """Menú y permisos del usuario actual según sus roles"""
    menu = {}
    for role in current_user.roles:
        for item in role.menu_items:
            if item.activo:
                menu[item.item_menu_id] = item

    admin = is_admin(current_user)
    tecnico = is_tecnico(current_user)

    return PermissionsResponse(
        user=_user_response(current_user),
        menu=[
            MenuItemResponse(
                item_menu_id=item.item_menu_id,
                nombre=item.nombre,
                url=item.url,
                icono=item.icono,
                orden=item.orden or 0
            )
            for item in sorted(menu.values(), key=lambda i: i.orden or 0)
        ],
        is_manager=is_manager(current_user),
        is_admin=admin,
        is_tecnico=tecnico,
        can_access_accounting=admin,
        can_access_orders=admin or tecnico,
        can_access_kanban=admin or tecnico
    )
