# app/core/auth/service.py
import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.shared.database.models import Usuario

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt solo considera los primeros 72 bytes
BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES].decode('utf-8', errors='ignore')


class AuthService:
    """Hash de contraseñas, búsqueda de usuarios y tokens JWT"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        if not hashed_password:
            return False
        try:
            return pwd_context.verify(_truncate(plain_password), hashed_password)
        except ValueError as e:
            logger.warning(f"Hash de contraseña inválido: {str(e)}")
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(_truncate(password))

    @staticmethod
    def find_user(db: Session, username: str) -> Optional[Usuario]:
        """Usuario por login o email"""
        return db.query(Usuario).filter(
            or_(Usuario.login == username, Usuario.email == username)
        ).first()

    @classmethod
    def authenticate_user(cls, db: Session, username: str, password: str) -> Optional[Usuario]:
        """Devuelve el usuario si la contraseña coincide, None en otro caso"""
        user = cls.find_user(db, username)
        if user is None or not cls.verify_password(password, user.password_hash):
            logger.warning(f"Login fallido para '{username}'")
            return None
        return user

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Firmar un token con `user_id` y vencimiento"""
        if "user_id" not in data:
            raise ValueError("user_id es requerido en el token")

        expire = datetime.utcnow() + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        to_encode = {**data, "exp": expire}
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @classmethod
    def token_for_user(cls, user: Usuario) -> str:
        return cls.create_access_token({
            "user_id": user.user_id,
            "login": user.login,
            "roles": user.role_ids
        })

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        try:
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return None
