"""
Consulta del registro de auditoría (solo lectura, solo ADMIN).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from escalando_core import audit
from escalando_core.security import AuthUser

from ..dependencies import get_db, require_admin

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get("")
def list_audit_logs(
    admin: AuthUser = Depends(require_admin),
    session: Session = Depends(get_db),
):
    """
    Returns:
        Los 100 registros más recientes, ordenados por fecha descendente
    """
    return [
        {
            "id": log.id,
            "user_id": log.user_id,
            "resource": log.resource,
            "action": log.action,
            "changes": log.changes,
            "created_at": log.created_at.isoformat(),
        }
        for log in audit.list_recent(session, limit=100)
    ]
