"""
Core del backend de Escalando Fronteras.

Contiene la lógica reutilizable detrás de la API:
- Persistencia (modelos SQLAlchemy, helpers y filtros)
- Traducción automática ES -> EN (DeepL)
- Auditoría de cambios
- Sincronización de contenido bilingüe (noticias y eventos)
- Autenticación y recuperación de contraseña
"""
