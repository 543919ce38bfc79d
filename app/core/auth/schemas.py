from pydantic import BaseModel, Field
from typing import List, Optional

class UserLogin(BaseModel):
    """Schema para login de usuario"""
    username: str = Field(..., description="Login o email del usuario")
    password: str = Field(..., min_length=4, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "username": "tecnico",
                "password": "tecnico123"
            }
        }

class UserResponse(BaseModel):
    """Schema para respuesta de usuario"""
    user_id: int
    login: str
    email: Optional[str] = None
    nombre: str
    apellido: str
    roles: List[str] = []
    role_ids: List[int] = []
    activo: bool

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "user_id": 3,
                "login": "tecnico",
                "email": "tecnico@fastservice.com.ar",
                "nombre": "Carlos",
                "apellido": "Gómez",
                "roles": ["Tecnico"],
                "role_ids": [4],
                "activo": True
            }
        }

class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class MenuItemResponse(BaseModel):
    item_menu_id: int
    nombre: str
    url: str
    icono: Optional[str] = None
    orden: int = 0

class PermissionsResponse(BaseModel):
    """Permisos calculados a partir de los roles del usuario"""
    user: UserResponse
    menu: List[MenuItemResponse]
    is_manager: bool
    is_admin: bool
    is_tecnico: bool
    can_access_accounting: bool
    can_access_orders: bool
    can_access_kanban: bool

class ChangePasswordRequest(BaseModel):
    """Schema para cambio de contraseña"""
    current_password: str = Field(..., min_length=4)
    new_password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)

    def passwords_match(self) -> bool:
        return self.new_password == self.confirm_password
