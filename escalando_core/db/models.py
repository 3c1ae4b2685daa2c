"""
Modelos de datos del backend.

Entidades:
- User: usuarios del panel (ADMIN | EDITOR)
- News / NewsImage: noticias bilingües y su galería ordenada
- Event / EventImage: eventos bilingües y su galería ordenada
- Testimonial: testimonios bilingües
- AuditLog: registro inmutable de cada mutación
- UsedToken: tokens de recuperación de contraseña ya consumidos
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class User(Base):
    """
    Usuario del panel de administración.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(20), default="EDITOR")  # "ADMIN" | "EDITOR"

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class News(Base):
    """
    Noticia con campos localizados `_es` / `_en`.

    El `_en` de cada par se genera automáticamente desde `_es`
    (ver escalando_core.content_sync) si no se envía explícitamente.
    """
    __tablename__ = "news"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Campos localizados
    title_es: Mapped[str] = mapped_column(String(300))
    title_en: Mapped[str | None] = mapped_column(String(300), nullable=True)
    body_es: Mapped[str] = mapped_column(Text)
    body_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_es: Mapped[str] = mapped_column(String(100))
    category_en: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tags_es: Mapped[list[str]] = mapped_column(JSON, default=list)
    tags_en: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=list)

    # Campos no localizados
    date: Mapped[datetime] = mapped_column(DateTime, index=True)
    author: Mapped[str] = mapped_column(String(200))
    location_city: Mapped[str] = mapped_column(String(100))
    location_country: Mapped[str] = mapped_column(String(100))
    cover_image_url: Mapped[str] = mapped_column(String(500), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Galería ordenada
    images: Mapped[list["NewsImage"]] = relationship(
        back_populates="news", order_by="NewsImage.order"
    )


class NewsImage(Base):
    __tablename__ = "news_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_id: Mapped[int] = mapped_column(Integer, ForeignKey("news.id"), index=True)
    image_url: Mapped[str] = mapped_column(String(500))
    order: Mapped[int] = mapped_column(Integer, default=0)

    news: Mapped["News"] = relationship(back_populates="images")


class Event(Base):
    """
    Evento: mismos campos que News más `phrase` y `credits` localizados.
    """
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Campos localizados
    title_es: Mapped[str] = mapped_column(String(300))
    title_en: Mapped[str | None] = mapped_column(String(300), nullable=True)
    body_es: Mapped[str] = mapped_column(Text)
    body_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_es: Mapped[str] = mapped_column(String(100))
    category_en: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tags_es: Mapped[list[str]] = mapped_column(JSON, default=list)
    tags_en: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=list)
    phrase_es: Mapped[str | None] = mapped_column(Text, nullable=True)
    phrase_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    credits_es: Mapped[str] = mapped_column(Text)
    credits_en: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Campos no localizados
    date: Mapped[datetime] = mapped_column(DateTime, index=True)
    author: Mapped[str] = mapped_column(String(200))
    location_city: Mapped[str] = mapped_column(String(100))
    location_country: Mapped[str] = mapped_column(String(100))
    cover_image_url: Mapped[str] = mapped_column(String(500), default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    images: Mapped[list["EventImage"]] = relationship(
        back_populates="event", order_by="EventImage.order"
    )


class EventImage(Base):
    __tablename__ = "event_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    image_url: Mapped[str] = mapped_column(String(500))
    order: Mapped[int] = mapped_column(Integer, default=0)

    event: Mapped["Event"] = relationship(back_populates="images")


class Testimonial(Base):
    __tablename__ = "testimonials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author: Mapped[str] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(200))
    body_es: Mapped[str] = mapped_column(Text)
    body_en: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuditLog(Base):
    """
    Registro de auditoría. Se inserta y nunca se modifica ni se borra.
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Usuario que realizó la acción (None para acciones anónimas / scripts)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    resource: Mapped[str] = mapped_column(String(50))  # "news" | "event" | "testimonial" | "user"
    action: Mapped[str] = mapped_column(String(30))  # "create" | "update" | "delete" | "deepl_translate"

    # Payload opaco: diff traducido o registro completo post-mutación
    changes: Mapped[Any] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)


class UsedToken(Base):
    """
    Token de recuperación de contraseña ya consumido (evita replay).
    """
    __tablename__ = "used_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(1000), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
