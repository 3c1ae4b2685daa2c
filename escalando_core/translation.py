"""
Cliente de traducción automática (DeepL).

El core solo conoce el protocolo `Translator`:

    translate(text, target_lang="EN") -> str

El idioma de origen es siempre español. Cualquier falla (status no 2xx,
error de red, JSON inválido o falta de `translations[0].text`) se expone
como `TranslationError` para que el create/update se aborte sin escribir.
No hay reintentos.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import List, Protocol, Sequence

import requests

from .config import get_settings
from .exceptions import TranslationError

logger = logging.getLogger(__name__)

SOURCE_LANG = "ES"
DEFAULT_TARGET_LANG = "EN"


class Translator(Protocol):
    """Interfaz mínima que consume el motor de sincronización."""

    def translate(self, text: str, target_lang: str = DEFAULT_TARGET_LANG) -> str:
        ...


class DeepLTranslator:
    """
    Adaptador HTTP para la API v2 de DeepL.

    Envía un POST form-encoded con `auth_key`, `text`, `target_lang` y
    `source_lang=ES`, y espera `{"translations": [{"text": ...}]}`.
    """

    def __init__(
        self,
        auth_key: str,
        api_url: str = "https://api-free.deepl.com/v2/translate",
        timeout: float = 10.0,
        http: requests.Session | None = None,
    ):
        self.auth_key = auth_key
        self.api_url = api_url
        self.timeout = timeout
        self.http = http or requests.Session()

    def translate(self, text: str, target_lang: str = DEFAULT_TARGET_LANG) -> str:
        if not self.auth_key:
            raise TranslationError("DEEPL_API_KEY no está configurada en el .env")
        data = {
            "auth_key": self.auth_key,
            "text": text,
            "target_lang": target_lang,
            "source_lang": SOURCE_LANG,
        }
        try:
            response = self.http.post(self.api_url, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error de red llamando a DeepL: {e}")
            raise TranslationError(f"DeepL API error: {e}") from e

        if not response.ok:
            logger.error(f"DeepL respondió {response.status_code}: {response.text[:200]}")
            raise TranslationError(f"DeepL API error: {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TranslationError("Respuesta inesperada de DeepL") from e

        try:
            translated = payload["translations"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise TranslationError("Respuesta inesperada de DeepL") from e

        if not isinstance(translated, str) or not translated:
            raise TranslationError("Respuesta inesperada de DeepL")
        return translated


def translate_many(
    translator: Translator,
    texts: Sequence[str],
    target_lang: str = DEFAULT_TARGET_LANG,
    max_workers: int = 4,
) -> List[str]:
    """
    Traduce varios textos en paralelo preservando orden y cantidad.

    Si alguna traducción falla, se propaga la primera excepción
    (en orden de entrada) y se descarta el resto.
    """
    if not texts:
        return []
    if len(texts) == 1:
        return [translator.translate(texts[0], target_lang)]

    workers = max(1, min(max_workers, len(texts)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(translator.translate, text, target_lang) for text in texts]
        return [future.result() for future in futures]


@lru_cache
def get_translator() -> Translator:
    """
    Devuelve el traductor único del proceso, construido desde la configuración.

    Se cachea como `get_settings`: todos los requests comparten la misma
    `requests.Session` (y su pool de conexiones).

    Si DEEPL_API_KEY no está configurada, el error (TranslationError) se
    lanza recién al intentar traducir.
    """
    settings = get_settings()
    return DeepLTranslator(
        auth_key=settings.deepl_api_key,
        api_url=settings.deepl_api_url,
        timeout=settings.deepl_timeout,
    )
