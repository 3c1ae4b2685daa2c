"""
Dependencias de FastAPI.

Este módulo proporciona dependencias reutilizables para:
- Obtener una sesión de base de datos por request
- Obtener el usuario actual desde el token JWT (header Authorization)
- Exigir rol ADMIN
- Construir los colaboradores del core (traductor, mailer, motor de sync)
"""

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from escalando_core.auth import decode_access_token
from escalando_core.content_sync import ContentSyncEngine
from escalando_core.db import database
from escalando_core.exceptions import AuthError, ForbiddenError
from escalando_core.mailer import Mailer, get_mailer as build_mailer
from escalando_core.security import AuthUser
from escalando_core.translation import Translator, get_translator as build_translator

import logging

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    Sesión de base de datos por request.

    Commit si el endpoint termina bien, rollback ante cualquier excepción.
    """
    database.get_db_engine(echo=False)
    db = database.SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_translator() -> Translator:
    return build_translator()


def get_mailer() -> Mailer:
    return build_mailer()


def get_sync_engine(
    session: Session = Depends(get_db),
    translator: Translator = Depends(get_translator),
) -> ContentSyncEngine:
    return ContentSyncEngine(session, translator)


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> AuthUser:
    """
    Obtiene el usuario actual desde el token JWT.

    Args:
        authorization: Header Authorization con formato "Bearer <token>"

    Raises:
        AuthError: Si falta el header o el token es inválido / vencido
    """
    if not authorization or not authorization.startswith("Bearer "):
        logger.warning("Authorization header ausente o sin formato Bearer")
        raise AuthError("Token faltante o inválido")

    token = authorization.replace("Bearer ", "", 1).strip()
    return decode_access_token(token)


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """
    Dependencia que requiere rol ADMIN.

    Raises:
        ForbiddenError: Si el usuario no es administrador
    """
    if not user.is_admin:
        raise ForbiddenError()
    return user
