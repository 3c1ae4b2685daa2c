"""
Registro de auditoría.

Cada mutación (create / update / delete) y cada traducción automática
(deepl_translate) agrega una fila a `audit_logs`. Las filas nunca se
actualizan ni se borran.

La fila se agrega en la misma sesión que la mutación: si la auditoría
falla, la transacción completa hace rollback.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Sequence

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from .db.models import AuditLog

logger = logging.getLogger(__name__)

ACTIONS = ("create", "update", "delete", "deepl_translate")


def to_jsonable(value: Any) -> Any:
    """Convierte fechas a ISO 8601 recursivamente para guardar en JSON."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def serialize_record(obj, include_images: bool = True, exclude: Sequence[str] = ()) -> Dict[str, Any]:
    """
    Devuelve las columnas de una fila ORM como dict JSON-safe.

    Si el modelo tiene galería (`images`), se agrega ordenada por `order`.
    Las columnas en `exclude` se omiten (ej. cuerpos en listados).
    """
    mapper = inspect(obj).mapper
    data = {
        attr.key: getattr(obj, attr.key)
        for attr in mapper.column_attrs
        if attr.key not in exclude
    }
    if include_images and "images" in mapper.relationships:
        data["images"] = [
            serialize_record(image, include_images=False)
            for image in sorted(obj.images, key=lambda i: i.order)
        ]
    return to_jsonable(data)


def record(
    session: Session,
    resource: str,
    action: str,
    changes: Any,
    user_id: int | None = None,
) -> AuditLog:
    """
    Agrega un registro de auditoría.

    Args:
        session: Sesión de base de datos
        resource: Recurso afectado ("news", "event", "testimonial", "user")
        action: Acción ("create", "update", "delete", "deepl_translate")
        changes: Payload (diff traducido o registro completo)
        user_id: Usuario que realizó la acción (opcional)

    Returns:
        AuditLog creado (pendiente de commit)
    """
    if action not in ACTIONS:
        raise ValueError(f"Acción de auditoría desconocida: {action}")

    entry = AuditLog(
        user_id=user_id,
        resource=resource,
        action=action,
        changes=to_jsonable(changes),
    )
    session.add(entry)
    logger.debug(f"Audit {resource}.{action} (user={user_id})")
    return entry


def list_recent(session: Session, limit: int = 100) -> List[AuditLog]:
    """
    Últimos registros de auditoría, más recientes primero.
    """
    return (
        session.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
