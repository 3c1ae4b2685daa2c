"""
Filtros tipados para consultas de listado.

En lugar de armar diccionarios `where` dinámicos, cada condición es un
`Predicate(field, op, value)` explícito que se valida contra un esquema
fijo por modelo (qué campos se pueden filtrar y con qué operadores) y
luego se compila a expresiones SQLAlchemy.

Operadores soportados
---------------------
- eq:         igualdad exacta
- icontains:  substring sin distinguir mayúsculas
- has:        la lista JSON del campo contiene el valor (tags)
- gte / lte:  rango (fechas)
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List

from sqlalchemy import String, cast, or_
from sqlalchemy.sql.elements import ColumnElement

from escalando_core.exceptions import ValidationError

OPERATORS = frozenset({"eq", "icontains", "has", "gte", "lte"})

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class Predicate:
    """Condición atómica: `field <op> value`."""

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class AnyOf:
    """Disyunción de predicados (OR)."""

    predicates: tuple[Predicate, ...]


# Esquema: campo -> operadores permitidos
_LOCALIZED_TEXT = frozenset({"eq", "icontains"})

CONTENT_FILTER_SCHEMA: Dict[str, FrozenSet[str]] = {
    "title_es": _LOCALIZED_TEXT,
    "title_en": _LOCALIZED_TEXT,
    "category_es": _LOCALIZED_TEXT,
    "category_en": _LOCALIZED_TEXT,
    "tags_es": frozenset({"has"}),
    "tags_en": frozenset({"has"}),
    "author": _LOCALIZED_TEXT,
    "location_city": _LOCALIZED_TEXT,
    "location_country": _LOCALIZED_TEXT,
    "date": frozenset({"eq", "gte", "lte"}),
}


class FilterBuilder:
    """
    Acumula predicados validados para un modelo y los compila a SQL.

    Ejemplo
    -------
    >>> builder = FilterBuilder(News, CONTENT_FILTER_SCHEMA)
    >>> builder.any_of(
    ...     Predicate("title_es", "icontains", "montaña"),
    ...     Predicate("tags_es", "has", "montaña"),
    ... ).where("date", "gte", datetime(2024, 1, 1))
    >>> session.query(News).filter(*builder.compile())
    """

    def __init__(self, model, schema: Dict[str, FrozenSet[str]]):
        self.model = model
        self.schema = schema
        self.clauses: List[Predicate | AnyOf] = []

    def _validate(self, predicate: Predicate) -> Predicate:
        if predicate.op not in OPERATORS:
            raise ValidationError(f"Operador de filtro desconocido: {predicate.op}")
        allowed = self.schema.get(predicate.field)
        if allowed is None:
            raise ValidationError(f"Campo no filtrable: {predicate.field}")
        if predicate.op not in allowed:
            raise ValidationError(
                f"Operador '{predicate.op}' no permitido para '{predicate.field}'"
            )
        if predicate.op in ("gte", "lte") and not isinstance(predicate.value, datetime):
            raise ValidationError(f"'{predicate.field}' requiere una fecha")
        return predicate

    def where(self, field_name: str, op: str, value: Any) -> "FilterBuilder":
        self.clauses.append(self._validate(Predicate(field_name, op, value)))
        return self

    def any_of(self, *predicates: Predicate) -> "FilterBuilder":
        if predicates:
            self.clauses.append(AnyOf(tuple(self._validate(p) for p in predicates)))
        return self

    def _compile_predicate(self, predicate: Predicate) -> ColumnElement:
        column = getattr(self.model, predicate.field)
        if predicate.op == "eq":
            return column == predicate.value
        if predicate.op == "icontains":
            return column.icontains(str(predicate.value), autoescape=True)
        if predicate.op == "has":
            # La lista se guarda como JSON; buscamos el elemento serializado con comillas.
            needle = json.dumps(str(predicate.value), ensure_ascii=False)
            return cast(column, String).contains(needle, autoescape=True)
        if predicate.op == "gte":
            return column >= predicate.value
        return column <= predicate.value

    def compile(self) -> List[ColumnElement]:
        compiled: List[ColumnElement] = []
        for clause in self.clauses:
            if isinstance(clause, AnyOf):
                compiled.append(or_(*(self._compile_predicate(p) for p in clause.predicates)))
            else:
                compiled.append(self._compile_predicate(clause))
        return compiled


def naive_utc(value: datetime | None) -> datetime | None:
    # Las fechas se guardan sin zona horaria (UTC)
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass
class ListQuery:
    """
    Parámetros de listado normalizados.

    - page >= 1
    - 1 <= limit <= 50
    - q: texto libre (título, tags, categoría, autor)
    - date_from / date_to: rango inclusivo sobre `date`
    """

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    q: str = ""
    date_from: datetime | None = None
    date_to: datetime | None = None

    def __post_init__(self):
        self.page = max(int(self.page or 1), 1)
        self.limit = min(max(int(self.limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        self.q = (self.q or "").strip()
        self.date_from = naive_utc(self.date_from)
        self.date_to = naive_utc(self.date_to)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def content_filters(model, query: ListQuery) -> FilterBuilder:
    """
    Construye los filtros de búsqueda estándar para News / Event.
    """
    builder = FilterBuilder(model, CONTENT_FILTER_SCHEMA)
    if query.q:
        builder.any_of(
            Predicate("title_es", "icontains", query.q),
            Predicate("title_en", "icontains", query.q),
            Predicate("tags_es", "has", query.q),
            Predicate("category_es", "icontains", query.q),
            Predicate("author", "icontains", query.q),
        )
    if query.date_from:
        builder.where("date", "gte", query.date_from)
    if query.date_to:
        builder.where("date", "lte", query.date_to)
    return builder


@dataclass
class Page:
    items: list
    total_items: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.limit) if self.limit else 0

    def meta(self) -> dict:
        return {
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
        }
