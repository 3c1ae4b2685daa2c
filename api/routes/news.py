"""
Endpoints de noticias.

Este endpoint maneja:
- GET /api/v1/news: Listar noticias (paginado, búsqueda y rango de fechas)
- GET /api/v1/news/{news_id}: Detalle con galería
- POST /api/v1/news: Crear (traduce automáticamente los `_en` faltantes)
- PUT /api/v1/news/{news_id}: Actualizar parcialmente
- DELETE /api/v1/news/{news_id}: Eliminar (primero la galería)
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from escalando_core.audit import serialize_record
from escalando_core.content_sync import NEWS, SUMMARY_EXCLUDED, ContentSyncEngine
from escalando_core.db.filters import ListQuery
from escalando_core.security import AuthUser

from ..dependencies import get_current_user, get_sync_engine
from ..models.requests import NewsCreateRequest, NewsUpdateRequest, split_content_payload

router = APIRouter(prefix="/api/v1/news", tags=["news"])


@router.get("")
def list_news(
    page: int = Query(1),
    limit: int = Query(10),
    q: str = Query(""),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """
    Lista noticias ordenadas por fecha descendente (sin galería ni cuerpo).

    Returns:
        {"items": [...], "meta": {"totalItems", "totalPages", "currentPage"}}
    """
    query = ListQuery(page=page, limit=limit, q=q, date_from=date_from, date_to=date_to)
    result = engine.list_records(NEWS, query)
    return {
        "items": [
            serialize_record(item, include_images=False, exclude=SUMMARY_EXCLUDED)
            for item in result.items
        ],
        "meta": result.meta(),
    }


@router.get("/{news_id}")
def get_news(news_id: int, engine: ContentSyncEngine = Depends(get_sync_engine)):
    """Detalle de una noticia con su galería ordenada."""
    return serialize_record(engine.get(NEWS, news_id))


@router.post("", status_code=201)
def create_news(
    request: NewsCreateRequest,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """
    Crea una noticia.

    Los `_en` omitidos se traducen desde su `_es` antes de guardar.

    Raises:
        400: Payload inválido
        502: Falla del servicio de traducción (no se guarda nada)
    """
    data, images = split_content_payload(request)
    news = engine.create(NEWS, data, images=images, user_id=user.id)
    return serialize_record(news)


@router.put("/{news_id}")
def update_news(
    news_id: int,
    request: NewsUpdateRequest,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """
    Actualiza solo los campos enviados.

    Un `_es` distinto del guardado regenera su `_en`. Si `images` viene
    con elementos, reemplaza la galería completa.

    Raises:
        404: Noticia no encontrada
    """
    data, images = split_content_payload(request)
    news = engine.update(NEWS, news_id, data, images=images, user_id=user.id)
    return serialize_record(news)


@router.delete("/{news_id}", status_code=204)
def delete_news(
    news_id: int,
    user: AuthUser = Depends(get_current_user),
    engine: ContentSyncEngine = Depends(get_sync_engine),
):
    """Elimina una noticia y su galería."""
    engine.delete(NEWS, news_id, user_id=user.id)
    return Response(status_code=204)
