"""
Tests del motor de sincronización bilingüe.

Prueba:
- Traducción automática de los `_en` faltantes al crear
- Detección de cambios contra el estado guardado al actualizar
- Auditoría: una entrada deepl_translate por campo + create/update/delete
- Fallas de traducción: no se persiste nada
- Reemplazo de galería y borrado en cascada manual
"""

from datetime import datetime

import pytest

from escalando_core.content_sync import EVENT, NEWS, ContentSyncEngine, detect_changes
from escalando_core.db.filters import ListQuery
from escalando_core.db.models import AuditLog, Event, EventImage, News, NewsImage
from escalando_core.exceptions import NotFoundError, TranslationError, ValidationError


def _audit_rows(session):
    session.flush()
    return session.query(AuditLog).order_by(AuditLog.id).all()


def _create(sync_engine, session, fields, images=None):
    record = sync_engine.create(NEWS, fields, images=images, user_id=1)
    session.commit()
    return record


# =========================
# Crear
# =========================

def test_create_traduce_campos_sin_en(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)

    assert sorted(translator.calls) == sorted([
        "Escalada en la Patagonia",
        "Una expedición al Fitz Roy.",
        "Expediciones",
        "montaña",
        "río",
    ])
    assert news.title_en == "EN:Escalada en la Patagonia"
    assert news.body_en == "EN:Una expedición al Fitz Roy."
    assert news.category_en == "EN:Expediciones"
    assert news.tags_en == ["EN:montaña", "EN:río"]


def test_create_audita_traducciones_y_creacion(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields)

    rows = _audit_rows(session)
    assert [r.action for r in rows] == ["deepl_translate"] * 4 + ["create"]
    assert [r.changes["field"] for r in rows[:4]] == ["title", "body", "category", "tags"]
    assert rows[3].changes == {
        "field": "tags",
        "original": ["montaña", "río"],
        "translated": ["EN:montaña", "EN:río"],
    }
    assert all(r.resource == "news" and r.user_id == 1 for r in rows)

    created = rows[-1].changes
    assert created["id"] == news.id
    assert created["date"] == "2024-05-10T12:00:00"
    assert created["images"] == []


def test_create_respeta_en_explicito(session, sync_engine, translator, news_fields):
    news_fields["title_en"] = "Climbing in Patagonia"
    news = _create(sync_engine, session, news_fields)

    assert "Escalada en la Patagonia" not in translator.calls
    assert news.title_en == "Climbing in Patagonia"
    fields = [r.changes["field"] for r in _audit_rows(session) if r.action == "deepl_translate"]
    assert "title" not in fields


def test_create_en_vacio_se_traduce(session, sync_engine, translator, news_fields):
    news_fields["title_en"] = ""
    news = _create(sync_engine, session, news_fields)

    assert news.title_en == "EN:Escalada en la Patagonia"


def test_create_evento_traduce_frase_y_creditos(session, translator, event_fields):
    engine = ContentSyncEngine(session, translator, max_workers=2)
    event = engine.create(EVENT, event_fields, user_id=1)

    assert len(translator.calls) == 7
    assert event.phrase_en == "EN:Subir juntos"
    assert event.credits_en == "EN:Fotos: Juan"


def test_create_con_galeria_ordenada(session, sync_engine, news_fields):
    urls = ["https://cdn/a.jpg", "https://cdn/b.jpg", "https://cdn/c.jpg"]
    news = _create(sync_engine, session, news_fields, images=urls)

    assert [(i.image_url, i.order) for i in news.images] == [(u, n) for n, u in enumerate(urls)]
    assert [i["image_url"] for i in _audit_rows(session)[-1].changes["images"]] == urls


def test_create_falla_traduccion_no_persiste(session, failing_translator, news_fields):
    engine = ContentSyncEngine(session, failing_translator, max_workers=4)

    with pytest.raises(TranslationError):
        engine.create(NEWS, news_fields, images=["https://cdn/a.jpg"], user_id=1)

    session.flush()
    assert session.query(News).count() == 0
    assert session.query(NewsImage).count() == 0
    assert session.query(AuditLog).count() == 0


def test_create_campo_desconocido(session, sync_engine, translator, news_fields):
    news_fields["slug"] = "escalada"

    with pytest.raises(ValidationError):
        sync_engine.create(NEWS, news_fields)
    assert translator.calls == []


# =========================
# Actualizar
# =========================

def test_update_traduce_solo_lo_que_cambio(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()
    before = len(_audit_rows(session))

    updated = sync_engine.update(NEWS, news.id, {"title_es": "Nuevo título"}, user_id=2)

    assert translator.calls == ["Nuevo título"]
    assert updated.title_en == "EN:Nuevo título"
    assert updated.body_en == "EN:Una expedición al Fitz Roy."

    rows = _audit_rows(session)[before:]
    assert [r.action for r in rows] == ["deepl_translate", "update"]
    assert rows[0].changes == {
        "field": "title",
        "original": "Nuevo título",
        "translated": "EN:Nuevo título",
    }
    assert rows[1].user_id == 2
    assert rows[1].changes["title_es"] == "Nuevo título"


def test_update_compara_contra_lo_guardado(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()
    before = len(_audit_rows(session))

    # El formulario reenvía todo tal cual está guardado
    echo = {
        "title_es": news.title_es,
        "title_en": news.title_en,
        "body_es": news.body_es,
        "tags_es": list(news.tags_es),
        "author": news.author,
    }
    result = sync_engine.update(NEWS, news.id, echo, user_id=1)

    assert translator.calls == []
    assert result.title_en == "EN:Escalada en la Patagonia"
    assert len(_audit_rows(session)) == before


def test_update_en_eco_se_retraduce(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()

    updated = sync_engine.update(
        NEWS, news.id, {"title_es": "Otro título", "title_en": news.title_en}
    )

    assert translator.calls == ["Otro título"]
    assert updated.title_en == "EN:Otro título"


def test_update_en_explicito_distinto_no_traduce(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()

    updated = sync_engine.update(
        NEWS, news.id, {"title_es": "Otro título", "title_en": "Another title"}
    )

    assert translator.calls == []
    assert updated.title_es == "Otro título"
    assert updated.title_en == "Another title"


def test_update_solo_en_corrige_ingles(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()

    updated = sync_engine.update(NEWS, news.id, {"body_en": "A Fitz Roy expedition."})

    assert translator.calls == []
    assert updated.body_es == "Una expedición al Fitz Roy."
    assert updated.body_en == "A Fitz Roy expedition."


def test_update_tags_reordenados_se_traducen(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()

    updated = sync_engine.update(NEWS, news.id, {"tags_es": ["río", "montaña"]})

    assert sorted(translator.calls) == ["montaña", "río"]
    assert updated.tags_en == ["EN:río", "EN:montaña"]


def test_update_null_explicito_limpia_el_par(session, translator, event_fields):
    engine = ContentSyncEngine(session, translator, max_workers=4)
    event = engine.create(EVENT, event_fields)
    translator.calls.clear()

    updated = engine.update(EVENT, event.id, {"phrase_es": None})

    assert translator.calls == []
    assert updated.phrase_es is None
    assert updated.phrase_en is None


def test_update_campos_planos(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, news_fields)
    translator.calls.clear()

    updated = sync_engine.update(
        NEWS, news.id, {"author": "Beto", "date": datetime(2024, 6, 1)}
    )

    assert translator.calls == []
    assert updated.author == "Beto"
    assert updated.date == datetime(2024, 6, 1)
    assert _audit_rows(session)[-1].action == "update"


def test_update_inexistente(session, sync_engine, translator):
    with pytest.raises(NotFoundError):
        sync_engine.update(NEWS, 999, {"title_es": "Hola"})
    assert translator.calls == []
    assert _audit_rows(session) == []


def test_update_falla_traduccion_no_modifica(session, translator, failing_translator, news_fields):
    news = ContentSyncEngine(session, translator).create(NEWS, news_fields)
    session.commit()
    before = len(_audit_rows(session))

    engine = ContentSyncEngine(session, failing_translator)
    with pytest.raises(TranslationError):
        engine.update(NEWS, news.id, {"title_es": "Otro", "author": "Beto"})

    session.rollback()
    stored = session.get(News, news.id)
    assert stored.title_es == "Escalada en la Patagonia"
    assert stored.author == "Ana"
    assert len(_audit_rows(session)) == before


def test_update_reemplaza_galeria(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields, images=["https://cdn/a.jpg", "https://cdn/b.jpg"])

    updated = sync_engine.update(NEWS, news.id, {}, images=["https://cdn/z.jpg"])
    session.commit()

    assert [(i.image_url, i.order) for i in updated.images] == [("https://cdn/z.jpg", 0)]
    assert session.query(NewsImage).count() == 1


def test_update_galeria_vacia_no_toca(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields, images=["https://cdn/a.jpg"])
    before = len(_audit_rows(session))

    sync_engine.update(NEWS, news.id, {}, images=[])

    assert session.query(NewsImage).count() == 1
    assert len(_audit_rows(session)) == before


# =========================
# Borrar / leer
# =========================

def test_delete_borra_galeria_y_registro(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields, images=["https://cdn/a.jpg"])
    news_id = news.id

    sync_engine.delete(NEWS, news_id, user_id=3)
    session.commit()

    assert session.query(News).count() == 0
    assert session.query(NewsImage).count() == 0
    last = _audit_rows(session)[-1]
    assert (last.action, last.changes, last.user_id) == ("delete", {"id": news_id}, 3)
    with pytest.raises(NotFoundError):
        sync_engine.get(NEWS, news_id)


def test_delete_inexistente(session, sync_engine):
    with pytest.raises(NotFoundError):
        sync_engine.delete(NEWS, 42)
    assert _audit_rows(session) == []


def test_list_records_pagina_y_filtra(session, sync_engine, news_fields):
    for day, tags in ((1, ["montaña"]), (2, ["río"]), (3, ["mar"])):
        fields = dict(news_fields, date=datetime(2024, 3, day), tags_es=tags)
        _create(sync_engine, session, fields)

    page = sync_engine.list_records(NEWS, ListQuery(page=1, limit=2))
    assert [n.date.day for n in page.items] == [3, 2]
    assert page.meta() == {"totalItems": 3, "totalPages": 2, "currentPage": 1}

    by_tag = sync_engine.list_records(NEWS, ListQuery(q="montaña"))
    assert [n.date.day for n in by_tag.items] == [1]

    by_title = sync_engine.list_records(NEWS, ListQuery(q="PATAGONIA"))
    assert by_title.total_items == 3

    ranged = sync_engine.list_records(
        NEWS,
        ListQuery(date_from=datetime(2024, 3, 2), date_to=datetime(2024, 3, 3)),
    )
    assert [n.date.day for n in ranged.items] == [3, 2]


# =========================
# detect_changes
# =========================

def test_detect_changes_ignora_campos_ausentes(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields)

    assert detect_changes(NEWS, {"author": "Beto"}, stored=news) == []


def test_detect_changes_create_omite_es_vacio():
    changes = detect_changes(NEWS, {"title_es": "Hola", "tags_es": []})

    assert [c.field for c in changes] == ["title"]
    assert changes[0].needs_translation


def test_escenario_hola_adios(session, translator, news_fields):
    translator.mapping = {"Hola": "Hello", "Adiós": "Goodbye"}
    engine = ContentSyncEngine(session, translator, max_workers=1)
    fields = dict(news_fields, title_es="Hola", body_en="b", category_en="c", tags_es=[])

    news = engine.create(NEWS, fields)
    assert news.title_en == "Hello"
    assert translator.calls == ["Hola"]

    engine.update(NEWS, news.id, {"title_es": "Hola"})
    assert translator.calls == ["Hola"]

    updated = engine.update(NEWS, news.id, {"title_es": "Adiós"})
    assert updated.title_en == "Goodbye"
    assert translator.calls == ["Hola", "Adiós"]
    translations = [r for r in _audit_rows(session) if r.action == "deepl_translate"]
    assert [r.changes["translated"] for r in translations] == ["Hello", "Goodbye"]


class TagFailingTranslator:
    """Traduce todo salvo un texto puntual, que falla como DeepL."""

    def __init__(self, failing_text):
        self.failing_text = failing_text
        self.calls = []

    def translate(self, text, target_lang="EN"):
        self.calls.append(text)
        if text == self.failing_text:
            raise TranslationError("DeepL API error: bad request")
        return f"EN:{text}"


def test_create_falla_un_solo_tag_no_persiste(session, news_fields):
    engine = ContentSyncEngine(session, TagFailingTranslator("río"), max_workers=4)

    with pytest.raises(TranslationError):
        engine.create(NEWS, news_fields, images=["https://cdn/a.jpg"], user_id=1)

    session.flush()
    assert session.query(News).count() == 0
    assert session.query(NewsImage).count() == 0
    assert session.query(AuditLog).count() == 0


def test_update_falla_un_solo_tag_no_modifica(session, translator, news_fields):
    news = _create(ContentSyncEngine(session, translator), session, news_fields)
    before = len(_audit_rows(session))

    engine = ContentSyncEngine(session, TagFailingTranslator("lago"), max_workers=4)
    with pytest.raises(TranslationError):
        engine.update(NEWS, news.id, {"title_es": "Otro", "tags_es": ["mar", "lago", "hielo"]})

    session.rollback()
    stored = session.get(News, news.id)
    assert stored.title_es == "Escalada en la Patagonia"
    assert stored.tags_en == ["EN:montaña", "EN:río"]
    assert len(_audit_rows(session)) == before


def test_update_reemplaza_galeria_con_varias_imagenes(session, sync_engine, news_fields):
    news = _create(sync_engine, session, news_fields, images=["https://cdn/a.jpg", "https://cdn/b.jpg"])
    urls = ["https://cdn/x.jpg", "https://cdn/y.jpg", "https://cdn/z.jpg"]

    updated = sync_engine.update(NEWS, news.id, {}, images=urls)
    session.commit()

    assert [(i.image_url, i.order) for i in updated.images] == [(u, n) for n, u in enumerate(urls)]
    stored = session.query(NewsImage).order_by(NewsImage.order).all()
    assert [i.image_url for i in stored] == urls
    assert [i["order"] for i in _audit_rows(session)[-1].changes["images"]] == [0, 1, 2]


def test_evento_update_y_delete(session, translator, event_fields):
    engine = ContentSyncEngine(session, translator, max_workers=4)
    event = engine.create(EVENT, event_fields, images=["https://cdn/e1.jpg"], user_id=1)
    session.commit()
    translator.calls.clear()

    updated = engine.update(
        EVENT,
        event.id,
        {"credits_es": "Fotos: Marta", "phrase_es": "Subir juntas"},
        images=["https://cdn/e2.jpg", "https://cdn/e3.jpg"],
        user_id=1,
    )
    session.commit()

    assert sorted(translator.calls) == ["Fotos: Marta", "Subir juntas"]
    assert updated.credits_en == "EN:Fotos: Marta"
    assert updated.phrase_en == "EN:Subir juntas"
    assert [(i.image_url, i.order) for i in updated.images] == [
        ("https://cdn/e2.jpg", 0),
        ("https://cdn/e3.jpg", 1),
    ]
    assert session.query(EventImage).count() == 2

    engine.delete(EVENT, event.id, user_id=1)
    session.commit()

    assert session.query(Event).count() == 0
    assert session.query(EventImage).count() == 0
    last = _audit_rows(session)[-1]
    assert (last.resource, last.action, last.changes) == ("event", "delete", {"id": event.id})


def test_create_tags_vacios_guarda_lista_vacia(session, sync_engine, translator, news_fields):
    news = _create(sync_engine, session, dict(news_fields, tags_es=[]))

    assert news.tags_es == []
    assert news.tags_en == []
    assert "montaña" not in translator.calls


def test_busqueda_sin_distinguir_mayusculas_con_acentos(session, sync_engine, news_fields):
    _create(sync_engine, session, dict(news_fields, title_es="Ártico y África"))

    assert sync_engine.list_records(NEWS, ListQuery(q="ártico")).total_items == 1
    assert sync_engine.list_records(NEWS, ListQuery(q="ÁRTICO")).total_items == 1
    assert sync_engine.list_records(NEWS, ListQuery(q="áfrica")).total_items == 1
