"""Capa de persistencia (SQLAlchemy)."""
