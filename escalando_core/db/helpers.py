"""
Funciones helper de persistencia.

Todas reciben la `Session` explícitamente (sin cliente global) para que
la capa HTTP o los tests decidan el ciclo de vida de la transacción.

Incluye:
- Mapeo de errores de SQLAlchemy a la taxonomía del core
- Paginación genérica con filtros tipados
- Usuarios, testimonios y tokens consumidos
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from escalando_core import audit
from escalando_core.exceptions import ConflictError, NotFoundError, PersistenceError
from escalando_core.security import hash_password

from .filters import FilterBuilder, ListQuery, Page
from .models import Testimonial, UsedToken, User

logger = logging.getLogger(__name__)

USER_ROLES = ("ADMIN", "EDITOR")


@contextmanager
def db_errors(conflict_message: str | None = None):
    """
    Traduce errores de SQLAlchemy dentro del bloque:

    - IntegrityError (unicidad) -> ConflictError
    - cualquier otro SQLAlchemyError -> PersistenceError
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"Violación de integridad: {e.orig}")
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        logger.exception("Error de base de datos")
        raise PersistenceError(str(e)) from e


def paginate(session: Session, model, builder: FilterBuilder, query: ListQuery, order_by) -> Page:
    """
    Cuenta y trae una página de `model` aplicando los filtros del builder.
    """
    conditions = builder.compile()
    with db_errors():
        total = session.query(model).filter(*conditions).count()
        items = (
            session.query(model)
            .filter(*conditions)
            .order_by(order_by)
            .offset(query.offset)
            .limit(query.limit)
            .all()
        )
    return Page(items=items, total_items=total, current_page=query.page, limit=query.limit)


# =========================
# Usuarios
# =========================

def get_user_by_id(session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.query(User).filter_by(email=email).first()


def list_users(session: Session) -> list[User]:
    return session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(
    session: Session,
    email: str,
    password: str,
    full_name: str,
    role: str = "EDITOR",
) -> User:
    """
    Crea un usuario con la contraseña hasheada.

    Raises:
        ConflictError: Si el email ya está registrado
    """
    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
    )
    with db_errors("El email ya está registrado."):
        session.add(user)
        session.flush()
    logger.info(f"Usuario creado: {user.email} (id: {user.id}, rol: {user.role})")
    return user


def update_user(session: Session, user_id: int, fields: Dict[str, Any]) -> User:
    """
    Actualiza email, nombre y/o rol de un usuario.

    Raises:
        NotFoundError: Si el usuario no existe
        ConflictError: Si el nuevo email ya está registrado
    """
    user = get_user_by_id(session, user_id)
    if not user:
        raise NotFoundError("Usuario no encontrado.")

    for key in ("email", "full_name", "role"):
        if key in fields:
            setattr(user, key, fields[key])

    with db_errors("El email ya está registrado."):
        session.flush()
    return user


def set_user_password(session: Session, user_id: int, password: str) -> User:
    user = get_user_by_id(session, user_id)
    if not user:
        raise NotFoundError("Usuario no encontrado.")
    user.password_hash = hash_password(password)
    with db_errors():
        session.flush()
    return user


def delete_user(session: Session, user_id: int) -> None:
    user = get_user_by_id(session, user_id)
    if not user:
        raise NotFoundError("Usuario no encontrado.")
    with db_errors():
        session.delete(user)
        session.flush()
    logger.info(f"Usuario eliminado: {user_id}")


# =========================
# Testimonios
# =========================

TESTIMONIAL_FIELDS = ("author", "role", "body_es", "body_en", "image_url")


def list_testimonials(session: Session) -> list[Testimonial]:
    return (
        session.query(Testimonial)
        .order_by(Testimonial.created_at.desc(), Testimonial.id.desc())
        .all()
    )


def get_testimonial(session: Session, testimonial_id: int) -> Testimonial:
    testimonial = session.get(Testimonial, testimonial_id)
    if not testimonial:
        raise NotFoundError("Testimonial no encontrado.")
    return testimonial


def create_testimonial(
    session: Session,
    fields: Dict[str, Any],
    user_id: int | None = None,
) -> Testimonial:
    testimonial = Testimonial(**{k: fields[k] for k in TESTIMONIAL_FIELDS if k in fields})
    with db_errors():
        session.add(testimonial)
        session.flush()
    audit.record(session, "testimonial", "create", audit.serialize_record(testimonial), user_id)
    return testimonial


def update_testimonial(
    session: Session,
    testimonial_id: int,
    fields: Dict[str, Any],
    user_id: int | None = None,
) -> Testimonial:
    testimonial = get_testimonial(session, testimonial_id)
    for key in TESTIMONIAL_FIELDS:
        if key in fields:
            setattr(testimonial, key, fields[key])
    with db_errors():
        session.flush()
    audit.record(session, "testimonial", "update", audit.serialize_record(testimonial), user_id)
    return testimonial


def delete_testimonial(session: Session, testimonial_id: int, user_id: int | None = None) -> None:
    testimonial = get_testimonial(session, testimonial_id)
    with db_errors():
        session.delete(testimonial)
        session.flush()
    audit.record(session, "testimonial", "delete", {"id": testimonial_id}, user_id)


# =========================
# Tokens de recuperación
# =========================

def is_token_used(session: Session, token: str) -> bool:
    return session.query(UsedToken).filter_by(token=token).first() is not None


def mark_token_used(session: Session, token: str) -> UsedToken:
    used = UsedToken(token=token)
    with db_errors("Token ya fue utilizado"):
        session.add(used)
        session.flush()
    return used
