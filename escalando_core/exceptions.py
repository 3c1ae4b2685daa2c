# escalando_core/exceptions.py
"""
Taxonomía de errores del core.

Cada excepción lleva un `code` estable que la capa HTTP traduce a un
status y a un cuerpo `{"code": ..., "message": ...}` (ver api/errors.py).
"""


class EscalandoError(Exception):
    """Error base del core."""

    code = "INTERNAL_ERROR"
    default_message = "Error inesperado."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(EscalandoError):
    """Payload o filtro mal formado; se rechaza antes de tocar la base."""

    code = "INVALID_PAYLOAD"
    default_message = "Payload inválido"

    def __init__(self, message: str | None = None, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(EscalandoError):
    code = "NOT_FOUND"
    default_message = "Recurso no encontrado."


class ConflictError(EscalandoError):
    """Violación de unicidad (ej. email ya registrado)."""

    code = "CONFLICT"
    default_message = "El recurso ya existe."


class TranslationError(EscalandoError):
    """
    Falla del servicio de traducción (status no 2xx, payload inesperado,
    error de red o falta de credenciales). Aborta el create/update completo.
    """

    code = "TRANSLATION_ERROR"
    default_message = "Error del servicio de traducción."


class PersistenceError(EscalandoError):
    """Falla de I/O en la base de datos; se expone como error interno."""

    code = "INTERNAL_ERROR"
    default_message = "Error de persistencia."


class AuthError(EscalandoError):
    code = "UNAUTHORIZED"
    default_message = "Email o contraseña incorrectos"


class ForbiddenError(EscalandoError):
    code = "FORBIDDEN"
    default_message = "Solo un administrador puede realizar esta acción."


class InvalidTokenError(EscalandoError):
    """Token de recuperación inválido, vencido, con otro propósito o ya usado."""

    code = "INVALID_TOKEN"
    default_message = "Token inválido o expirado"
