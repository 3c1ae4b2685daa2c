"""
Endpoint para gestionar usuarios (solo ADMIN).

Este endpoint maneja:
- GET /api/v1/users: Listar usuarios
- POST /api/v1/users: Crear un nuevo usuario
- PUT /api/v1/users/{user_id}: Actualizar email, nombre o rol
- DELETE /api/v1/users/{user_id}: Eliminar
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from escalando_core.db import helpers
from escalando_core.db.models import User
from escalando_core.security import AuthUser

from ..dependencies import get_db, require_admin
from ..models.requests import UserCreateRequest, UserResponse, UserUpdateRequest

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        created_at=user.created_at.isoformat(),
    )


@router.get("", response_model=list[UserResponse])
def list_users(
    admin: AuthUser = Depends(require_admin),
    session: Session = Depends(get_db),
):
    return [_to_response(u) for u in helpers.list_users(session)]


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    request: UserCreateRequest,
    admin: AuthUser = Depends(require_admin),
    session: Session = Depends(get_db),
):
    """
    Crea un nuevo usuario.

    Raises:
        409: Si el email ya está registrado
    """
    user = helpers.create_user(
        session,
        email=request.email,
        password=request.password,
        full_name=request.full_name,
        role=request.role,
    )
    return _to_response(user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    request: UserUpdateRequest,
    admin: AuthUser = Depends(require_admin),
    session: Session = Depends(get_db),
):
    user = helpers.update_user(session, user_id, request.model_dump(exclude_unset=True))
    return _to_response(user)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    admin: AuthUser = Depends(require_admin),
    session: Session = Depends(get_db),
):
    helpers.delete_user(session, user_id)
    return Response(status_code=204)
