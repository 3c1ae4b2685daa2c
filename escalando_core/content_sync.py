"""
escalando_core.content_sync
===========================

Sincronización de contenido bilingüe para noticias y eventos.

Cada campo localizable se guarda como par `{campo}_es` / `{campo}_en`.
El motor mantiene el `_en` consistente con su `_es`:

1. Detecta qué campos cambiaron (`detect_changes`), comparando contra el
   estado guardado en la base, no contra el propio payload.
2. Traduce solo esos campos, en paralelo (los tags se traducen uno por uno
   preservando orden y cantidad).
3. Escribe el registro (y su galería) en una sola pasada.
4. Registra en auditoría una entrada `deepl_translate` por campo traducido
   y una entrada `create` / `update` / `delete` con el registro resultante.

La traducción ocurre antes de cualquier escritura: si falla, no queda
nada persistido. El motor no reintenta ni recupera errores.

Uso
---
>>> engine = ContentSyncEngine(session, translator)
>>> news = engine.create(NEWS, {"title_es": "Hola", ...}, images=[...], user_id=1)
>>> engine.update(NEWS, news.id, {"title_es": "Adiós"})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import Session

from . import audit
from .config import get_settings
from .db.filters import ListQuery, Page, content_filters
from .db.helpers import db_errors, paginate
from .db.models import Event, EventImage, News, NewsImage
from .exceptions import NotFoundError, ValidationError
from .translation import Translator, translate_many

logger = logging.getLogger(__name__)

PLAIN_FIELDS = ("date", "author", "location_city", "location_country", "cover_image_url")

# Columnas omitidas en los listados (el detalle las incluye)
SUMMARY_EXCLUDED = ("body_es", "body_en")


@dataclass(frozen=True)
class ContentKind:
    """
    Describe un tipo de contenido sincronizable.

    Attributes
    ----------
    resource:
        Nombre del recurso en auditoría ("news" | "event").
    model / image_model:
        Modelos ORM del registro y de su galería.
    parent_fk:
        Columna de `image_model` que apunta al registro.
    localized:
        Campos con par `_es` / `_en`.
    not_found:
        Mensaje para NotFoundError.
    """

    resource: str
    model: type
    image_model: type
    parent_fk: str
    localized: tuple[str, ...]
    not_found: str

    @property
    def columns(self) -> tuple[str, ...]:
        pairs = tuple(f"{name}_{lang}" for name in self.localized for lang in ("es", "en"))
        return pairs + PLAIN_FIELDS


NEWS = ContentKind(
    resource="news",
    model=News,
    image_model=NewsImage,
    parent_fk="news_id",
    localized=("title", "body", "category", "tags"),
    not_found="Noticia no encontrada.",
)

EVENT = ContentKind(
    resource="event",
    model=Event,
    image_model=EventImage,
    parent_fk="event_id",
    localized=("title", "body", "category", "tags", "phrase", "credits"),
    not_found="Evento no encontrado.",
)


@dataclass(frozen=True)
class FieldChange:
    """
    Cambio detectado en un campo localizable.

    - old_value: `_es` guardado (None al crear)
    - new_value: `_es` entrante
    - explicit_en: `_en` enviado explícitamente y que debe respetarse (o None)
    - needs_translation: True si el `_en` debe regenerarse con el traductor
    """

    field: str
    old_value: Any
    new_value: Any
    explicit_en: Any
    needs_translation: bool

    @property
    def is_list(self) -> bool:
        return isinstance(self.new_value, (list, tuple))


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == ()


def _normalize(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def _blank_like(value: Any) -> Any:
    return [] if isinstance(value, (list, tuple)) else None


def detect_changes(
    kind: ContentKind,
    fields: Dict[str, Any],
    stored: Any | None = None,
) -> List[FieldChange]:
    """
    Devuelve los campos localizables que cambiaron.

    Al crear (`stored is None`) todo `_es` no vacío es un cambio, y requiere
    traducción si no vino su `_en`.

    Al actualizar, solo cuenta un `_es` presente en el payload y distinto del
    guardado (los tags se comparan como lista, respetando el orden). Se
    traduce salvo que el payload traiga un `_en` distinto del guardado: un
    `_en` idéntico al guardado es un eco del formulario y quedaría desfasado.
    """
    changes: List[FieldChange] = []
    for name in kind.localized:
        es_key, en_key = f"{name}_es", f"{name}_en"
        if es_key not in fields:
            continue

        new_es = _normalize(fields[es_key])
        supplied_en = _normalize(fields.get(en_key))
        has_en = en_key in fields and not _is_blank(supplied_en)

        if stored is None:
            if _is_blank(new_es):
                continue
            changes.append(FieldChange(
                field=name,
                old_value=None,
                new_value=new_es,
                explicit_en=supplied_en if has_en else None,
                needs_translation=not has_en,
            ))
            continue

        old_es = _normalize(getattr(stored, es_key))
        if new_es == old_es:
            continue

        explicit = has_en and supplied_en != _normalize(getattr(stored, en_key))
        changes.append(FieldChange(
            field=name,
            old_value=old_es,
            new_value=new_es,
            explicit_en=supplied_en if explicit else None,
            needs_translation=not explicit and not _is_blank(new_es),
        ))
    return changes


class ContentSyncEngine:
    """
    Orquesta comparar -> traducir -> escribir -> auditar para News / Event.

    Recibe la sesión y el traductor explícitamente; el commit / rollback
    queda a cargo de quien creó la sesión.
    """

    def __init__(
        self,
        session: Session,
        translator: Translator,
        max_workers: int | None = None,
    ):
        self.session = session
        self.translator = translator
        self.max_workers = max_workers or get_settings().translation_max_workers

    # -------------------------
    # Lectura
    # -------------------------

    def get(self, kind: ContentKind, record_id: int):
        record = self.session.get(kind.model, record_id)
        if record is None:
            raise NotFoundError(kind.not_found)
        return record

    def list_records(self, kind: ContentKind, query: ListQuery) -> Page:
        builder = content_filters(kind.model, query)
        return paginate(self.session, kind.model, builder, query, order_by=kind.model.date.desc())

    # -------------------------
    # Escritura
    # -------------------------

    def create(
        self,
        kind: ContentKind,
        fields: Dict[str, Any],
        images: Sequence[str] | None = None,
        user_id: int | None = None,
    ):
        data = self._known_fields(kind, fields)
        changes = detect_changes(kind, data)
        translated = self._translate(changes)

        for name, value in translated.items():
            data[f"{name}_en"] = value
        for name in kind.localized:
            # Listas vacías: el par queda como [] / [], igual que al actualizar
            if isinstance(data.get(f"{name}_es"), list) and data.get(f"{name}_en") is None:
                data[f"{name}_en"] = []

        record = kind.model(**data)
        with db_errors():
            self.session.add(record)
            self.session.flush()
            self._replace_gallery(kind, record, images or [])
            self.session.flush()

        self._audit_translations(kind, changes, translated, user_id)
        audit.record(self.session, kind.resource, "create", audit.serialize_record(record), user_id)
        logger.info(f"{kind.resource} {record.id} creado ({len(translated)} campos traducidos)")
        return record

    def update(
        self,
        kind: ContentKind,
        record_id: int,
        fields: Dict[str, Any],
        images: Sequence[str] | None = None,
        user_id: int | None = None,
    ):
        record = self.get(kind, record_id)
        data = self._known_fields(kind, fields)
        changes = detect_changes(kind, data, stored=record)
        translated = self._translate(changes)

        new_values = self._resolve_update(kind, record, data, changes, translated)
        replace_gallery = bool(images)

        if not new_values and not replace_gallery:
            logger.info(f"{kind.resource} {record_id}: sin cambios")
            return record

        for key, value in new_values.items():
            setattr(record, key, value)
        record.updated_at = datetime.utcnow()

        with db_errors():
            self.session.flush()
            if replace_gallery:
                self._replace_gallery(kind, record, images)
                self.session.flush()

        self._audit_translations(kind, changes, translated, user_id)
        audit.record(self.session, kind.resource, "update", audit.serialize_record(record), user_id)
        logger.info(
            f"{kind.resource} {record_id} actualizado "
            f"(campos: {sorted(new_values)}, galería reemplazada: {replace_gallery})"
        )
        return record

    def delete(self, kind: ContentKind, record_id: int, user_id: int | None = None) -> None:
        self.get(kind, record_id)
        fk = getattr(kind.image_model, kind.parent_fk)
        with db_errors():
            # Las imágenes primero: referencian al registro
            self.session.query(kind.image_model).filter(fk == record_id).delete()
            self.session.query(kind.model).filter(kind.model.id == record_id).delete()
            self.session.flush()
        audit.record(self.session, kind.resource, "delete", {"id": record_id}, user_id)
        logger.info(f"{kind.resource} {record_id} eliminado")

    # -------------------------
    # Internos
    # -------------------------

    def _known_fields(self, kind: ContentKind, fields: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(fields) - set(kind.columns))
        if unknown:
            raise ValidationError(f"Campos desconocidos para {kind.resource}: {', '.join(unknown)}")
        return {key: _normalize(value) for key, value in fields.items()}

    def _translate(self, changes: List[FieldChange]) -> Dict[str, Any]:
        """
        Traduce todos los campos pendientes en un solo fan-out.

        Los textos de todos los campos (y cada tag por separado) se envían
        juntos; luego se reagrupan por campo respetando el orden.
        """
        pending = [c for c in changes if c.needs_translation]
        if not pending:
            return {}

        texts: List[str] = []
        slices = []
        for change in pending:
            values = list(change.new_value) if change.is_list else [change.new_value]
            slices.append((change, len(texts), len(values)))
            texts.extend(values)

        logger.info(f"Traduciendo {len(texts)} textos ({[c.field for c in pending]})")
        try:
            results = translate_many(self.translator, texts, max_workers=self.max_workers)
        except Exception:
            logger.error(f"Falló la traducción de {[c.field for c in pending]}")
            raise

        translated: Dict[str, Any] = {}
        for change, start, count in slices:
            chunk = results[start:start + count]
            translated[change.field] = chunk if change.is_list else chunk[0]
        return translated

    def _resolve_update(
        self,
        kind: ContentKind,
        record,
        data: Dict[str, Any],
        changes: List[FieldChange],
        translated: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Calcula las columnas que efectivamente cambian respecto de lo guardado.
        """
        values: Dict[str, Any] = {}
        changed = {c.field: c for c in changes}

        for name in kind.localized:
            es_key, en_key = f"{name}_es", f"{name}_en"
            if name in changed:
                change = changed[name]
                values[es_key] = change.new_value
                if name in translated:
                    values[en_key] = translated[name]
                elif change.explicit_en is not None:
                    values[en_key] = change.explicit_en
                else:
                    values[en_key] = _blank_like(change.new_value)
            elif es_key not in data and en_key in data:
                # Corrección manual del inglés sin tocar el español
                values[en_key] = data[en_key]
            # `_es` presente y sin cambios: se conserva el `_en` guardado

        for key in PLAIN_FIELDS:
            if key in data:
                values[key] = data[key]

        return {
            key: value for key, value in values.items()
            if _normalize(getattr(record, key)) != value
        }

    def _replace_gallery(self, kind: ContentKind, record, images: Sequence[str]) -> None:
        """
        Reemplazo total de la galería: borra las imágenes previas y
        agrega las nuevas con `order` = posición en la lista.
        """
        fk = getattr(kind.image_model, kind.parent_fk)
        self.session.query(kind.image_model).filter(fk == record.id).delete()
        self.session.add_all([
            kind.image_model(**{kind.parent_fk: record.id, "image_url": url, "order": index})
            for index, url in enumerate(images)
        ])
        self.session.expire(record, ["images"])

    def _audit_translations(
        self,
        kind: ContentKind,
        changes: List[FieldChange],
        translated: Dict[str, Any],
        user_id: int | None,
    ) -> None:
        for change in changes:
            if change.field not in translated:
                continue
            audit.record(
                self.session,
                kind.resource,
                "deepl_translate",
                {
                    "field": change.field,
                    "original": change.new_value,
                    "translated": translated[change.field],
                },
                user_id,
            )
