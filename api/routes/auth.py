"""
Endpoints de autenticación.

Este módulo maneja:
- POST /api/v1/auth/login: Email + contraseña -> token JWT
- POST /api/v1/auth/forgot: Envía enlace de recuperación (siempre 200)
- POST /api/v1/auth/reset: Aplica nueva contraseña con un token de un solo uso
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from escalando_core import auth
from escalando_core.mailer import Mailer

from ..dependencies import get_db, get_mailer
from ..models.requests import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

FORGOT_MESSAGE = "Si el email existe, se ha enviado un enlace de recuperación."


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, session: Session = Depends(get_db)):
    """
    Valida credenciales y devuelve un token de sesión.

    Raises:
        401: Email o contraseña incorrectos (mismo mensaje en ambos casos)
    """
    token = auth.authenticate(session, request.email, request.password)
    return TokenResponse(token=token)


@router.post("/forgot", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    session: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Responde siempre lo mismo para no revelar si el email existe.
    """
    auth.request_password_reset(session, request.email, mailer)
    return MessageResponse(message=FORGOT_MESSAGE)


@router.post("/reset", response_model=MessageResponse)
def reset_password(request: ResetPasswordRequest, session: Session = Depends(get_db)):
    """
    Raises:
        400: INVALID_TOKEN si el token ya fue usado, es inválido o venció
    """
    auth.reset_password(session, request.token, request.new_password)
    return MessageResponse(message="Contraseña actualizada")
