"""
Flujos de autenticación.

- Login con email/contraseña -> token de sesión (JWT)
- Olvidé mi contraseña: envía un enlace con un token de un solo uso
- Reset: valida el token, actualiza la contraseña y lo marca como usado
"""

from __future__ import annotations

import logging

import jwt  # pyjwt
from sqlalchemy.orm import Session

from .config import get_settings
from .db.helpers import get_user_by_email, get_user_by_id, is_token_used, mark_token_used, set_user_password
from .exceptions import AuthError, InvalidTokenError, ValidationError
from .mailer import Mailer
from .security import (
    RESET_PURPOSE,
    AuthUser,
    create_access_token,
    create_reset_token,
    decode_token,
    verify_password,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def authenticate(session: Session, email: str, password: str) -> str:
    """
    Valida credenciales y devuelve un token de sesión.

    Raises:
        AuthError: Mismo mensaje para email inexistente o contraseña incorrecta
    """
    if not email or not password:
        raise AuthError()
    user = get_user_by_email(session, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Login fallido para {email}")
        raise AuthError()
    return create_access_token(user)


def decode_access_token(token: str) -> AuthUser:
    """
    Extrae la identidad de un token de sesión.

    Raises:
        AuthError: Token faltante, inválido o vencido
    """
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError as e:
        raise AuthError("Token faltante o inválido") from e

    try:
        return AuthUser(id=int(payload["id"]), email=payload["email"], role=payload["role"])
    except (KeyError, TypeError, ValueError) as e:
        raise AuthError("Token faltante o inválido") from e


def request_password_reset(session: Session, email: str, mailer: Mailer) -> str | None:
    """
    Envía el enlace de recuperación si el email existe.

    El resultado no debe exponerse al cliente: la respuesta HTTP es la
    misma exista o no el usuario.

    Returns:
        El token emitido, o None si el email no está registrado
    """
    user = get_user_by_email(session, email)
    if not user:
        return None

    token = create_reset_token(user)
    reset_url = f"{get_settings().reset_url_base}?token={token}"
    mailer.send(
        to=user.email,
        subject="Recupera tu contraseña",
        html=(
            "<p>Haz clic en el siguiente enlace para restablecer tu contraseña:</p>"
            f'<a href="{reset_url}">{reset_url}</a>'
        ),
    )
    logger.info(f"password_reset_email_sent user_id={user.id}")
    return token


def reset_password(session: Session, token: str, new_password: str) -> None:
    """
    Aplica una nueva contraseña usando un token de recuperación.

    Raises:
        ValidationError: Contraseña demasiado corta
        InvalidTokenError: Token faltante, ya usado, inválido, vencido o con otro propósito
    """
    if not token or not new_password:
        raise InvalidTokenError("Token o nueva contraseña faltante")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
        )

    if is_token_used(session, token):
        raise InvalidTokenError("Token ya fue utilizado")

    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError() from e

    if payload.get("purpose") != RESET_PURPOSE:
        raise InvalidTokenError("Token inválido")

    user_id = payload.get("userId")
    user = get_user_by_id(session, user_id) if isinstance(user_id, int) else None
    if not user:
        raise InvalidTokenError("Token inválido")

    set_user_password(session, user.id, new_password)
    mark_token_used(session, token)
    logger.info(f"Contraseña actualizada para user_id={user.id}")
