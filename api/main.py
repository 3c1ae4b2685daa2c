"""
API HTTP principal de Escalando Fronteras.

Esta aplicación FastAPI expone el CMS bilingüe (noticias, eventos,
testimonios, usuarios, auditoría) usando el core interno
(escalando_core.content_sync) para la traducción automática ES -> EN.

Uso:
    uvicorn api.main:app --reload --port 8000
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from escalando_core.config import get_settings

from .errors import register_error_handlers
from .routes import audit, auth, events, news, testimonials, users

# Cargar variables de entorno
load_dotenv()

settings = get_settings()

# Configurar logging según ambiente
log_level = getattr(logging, settings.log_level, logging.INFO)
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)
logger.info(f"🚀 Iniciando API en ambiente: {settings.environment}")

app = FastAPI(
    title="Escalando Fronteras API",
    description="Backend del CMS bilingüe con traducción automática",
    version="0.1.0",
)

logger.info(f"🌐 CORS origins configurados: {settings.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Registrar rutas
app.include_router(auth.router)
app.include_router(news.router)
app.include_router(events.router)
app.include_router(testimonials.router)
app.include_router(users.router)
app.include_router(audit.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "escalando-api"}


@app.get("/health")
async def health():
    """Health check detallado."""
    return {
        "status": "ok",
        "service": "escalando-api",
        "version": "0.1.0",
        "environment": settings.environment,
    }
