"""
API HTTP de Escalando Fronteras.

Esta capa expone endpoints REST que usan el core interno (escalando_core)
para publicar contenido bilingüe con traducción automática.

La API está diseñada para ser consumida por:
- El sitio público (lecturas sin autenticación)
- El panel de administración (mutaciones con token JWT)
"""
