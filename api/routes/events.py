"""
Endpoints de eventos.

Este endpoint maneja:
- GET /api/v1/events: Listar eventos (paginado, búsqueda y rango de fechas)
- GET /api/v1/events/{event_id}: Detalle con galería
- POST /api/v1/events: Crear
- PUT /api/v1/events/{event_id}: Actualizar parcialmente
- DELETE /api/v1/events/{event_id}: Eliminar
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from escalando_core.audit import serialize_record
from escalando_core.content_sync import EVENT, SUMMARY_EXCLUDED, ContentSyncEngine
from escalando_core.db.filters import ListQuery
from escalando_core.security import AuthUser

from ..dependencies import get_current_user, get_sync_engine
from ..models.requests import EventCreateRequest, EventUpdateRequest, split_content_payload

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("")
def list_events(
    page: int = Query(1),
    limit: int = Query(10),
    q: str = Query(""),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """Lista eventos ordenados por fecha descendente (sin galería ni cuerpo)."""
    query = ListQuery(page=page, limit=limit, q=q, date_from=date_from, date_to=date_to)
    result = engine.list_records(EVENT, query)
    return {
        "items": [
            serialize_record(item, include_images=False, exclude=SUMMARY_EXCLUDED)
            for item in result.items
        ],
        "meta": result.meta(),
    }


@router.get("/{event_id}")
def get_event(event_id: int, engine: ContentSyncEngine = Depends(get_sync_engine)):
    return serialize_record(engine.get(EVENT, event_id))


@router.post("", status_code=201)
def create_event(
    request: EventCreateRequest,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """
    Crea un evento. Igual que noticias, más `phrase` y `credits` localizados.
    """
    data, images = split_content_payload(request)
    event = engine.create(EVENT, data, images=images, user_id=user.id)
    return serialize_record(event)


@router.put("/{event_id}")
def update_event(
    event_id: int,
    request: EventUpdateRequest,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    data, images = split_content_payload(request)
    event = engine.update(EVENT, event_id, data, images=images, user_id=user.id)
    return serialize_record(event)


@router.delete("/{event_id}", status_code=204)
def delete_event(
    event_id: int,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    engine.delete(EVENT, event_id, user_id=user.id)
    return Response(status_code=204)
