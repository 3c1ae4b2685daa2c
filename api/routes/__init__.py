"""Rutas de la API."""

from . import audit, auth, events, news, testimonials, users

__all__ = ["audit", "auth", "events", "news", "testimonials", "users"]
