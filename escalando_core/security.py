from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt  # pyjwt
from passlib.context import CryptContext

from .config import get_settings

ALGORITHM = "HS256"
RESET_PURPOSE = "password_reset"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass
class AuthUser:
    """Identidad extraída de un token de sesión."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise RuntimeError("JWT_SECRET no está configurada en el .env")
    return secret


def create_token(data: Dict[str, Any], expires_minutes: int | None = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes or get_settings().jwt_expire_minutes
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, _secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida firma y vencimiento.

    Raises:
        jwt.InvalidTokenError: Si el token es inválido o está vencido
    """
    return jwt.decode(token, _secret(), algorithms=[ALGORITHM])


def create_access_token(user) -> str:
    return create_token({"id": user.id, "email": user.email, "role": user.role})


def create_reset_token(user) -> str:
    return create_token({"userId": user.id, "purpose": RESET_PURPOSE, "jti": uuid.uuid4().hex})
