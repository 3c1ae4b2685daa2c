"""
Modelos de request para la API.

Estos modelos validan el payload antes de pasarlo al core. Un payload
inválido se responde con 400 / INVALID_PAYLOAD sin tocar la base.

Convención para los modelos de actualización (PUT): los campos obligatorios
se declaran con su tipo real y default None. Si el campo no viene, no se
toca; si viene `null`, la validación falla. Los campos opcionales aceptan
`null` explícito.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from escalando_core.db.filters import naive_utc


# =========================
# Auth
# =========================

class LoginRequest(BaseModel):
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., description="Contraseña")


class TokenResponse(BaseModel):
    token: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., alias="newPassword")


class MessageResponse(BaseModel):
    message: str


# =========================
# Usuarios
# =========================

class UserCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=3, alias="fullName")
    role: Literal["ADMIN", "EDITOR"]


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = None
    full_name: str = Field(default=None, min_length=3, alias="fullName")
    role: Literal["ADMIN", "EDITOR"] = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: str
    created_at: str


# =========================
# Noticias y eventos
# =========================

class _ContentFields(BaseModel):
    """Campos comunes de creación de News / Event."""

    model_config = ConfigDict(populate_by_name=True)

    title_es: str = Field(..., min_length=1)
    title_en: Optional[str] = Field(default=None, min_length=1)
    body_es: str = Field(..., min_length=1)
    body_en: Optional[str] = Field(default=None, min_length=1)
    category_es: str = Field(..., min_length=1)
    category_en: Optional[str] = Field(default=None, min_length=1)
    tags_es: List[str] = Field(default_factory=list)
    tags_en: Optional[List[str]] = None
    date: datetime
    author: str = Field(..., min_length=1)
    location_city: str = Field(..., min_length=1)
    location_country: str = Field(..., min_length=1)
    cover_image_url: str = Field(default="", alias="coverImageUrl")
    images: Optional[List[str]] = Field(default=None, description="URLs de la galería, en orden")

    @field_validator("date")
    @classmethod
    def _date_naive_utc(cls, value):
        return naive_utc(value)


class NewsCreateRequest(_ContentFields):
    pass


class EventCreateRequest(_ContentFields):
    phrase_es: Optional[str] = None
    phrase_en: Optional[str] = None
    credits_es: str = Field(..., min_length=1)
    credits_en: Optional[str] = Field(default=None, min_length=1)


class _ContentUpdateFields(BaseModel):
    """Campos comunes de actualización parcial de News / Event."""

    model_config = ConfigDict(populate_by_name=True)

    title_es: str = Field(default=None, min_length=1)
    title_en: Optional[str] = None
    body_es: str = Field(default=None, min_length=1)
    body_en: Optional[str] = None
    category_es: str = Field(default=None, min_length=1)
    category_en: Optional[str] = None
    tags_es: List[str] = None
    tags_en: Optional[List[str]] = None
    date: datetime = None
    author: str = Field(default=None, min_length=1)
    location_city: str = Field(default=None, min_length=1)
    location_country: str = Field(default=None, min_length=1)
    cover_image_url: str = Field(default=None, alias="coverImageUrl")
    images: Optional[List[str]] = Field(default=None, description="Si viene no vacía, reemplaza la galería")

    @field_validator("date")
    @classmethod
    def _date_naive_utc(cls, value):
        return naive_utc(value)


class NewsUpdateRequest(_ContentUpdateFields):
    pass


class EventUpdateRequest(_ContentUpdateFields):
    phrase_es: Optional[str] = None
    phrase_en: Optional[str] = None
    credits_es: str = Field(default=None, min_length=1)
    credits_en: Optional[str] = None


def split_content_payload(request: BaseModel) -> tuple[dict, list[str] | None]:
    """
    Separa los campos del registro de la lista de imágenes.

    Solo incluye los campos enviados explícitamente (exclude_unset), así
    el core distingue "no vino" de "vino null".
    """
    data = request.model_dump(exclude_unset=True)
    images = data.pop("images", None)
    return data, images


# =========================
# Testimonios
# =========================

class TestimonialCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    author: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    body_es: str = Field(..., min_length=1)
    body_en: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1, alias="imageUrl")


class TestimonialUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    author: str = Field(default=None, min_length=1)
    role: str = Field(default=None, min_length=1)
    body_es: str = Field(default=None, min_length=1)
    body_en: str = Field(default=None, min_length=1)
    image_url: str = Field(default=None, min_length=1, alias="imageUrl")
