"""
Router principal de la API.
Agrupa los routers de cada dominio bajo sus prefijos.
"""

from fastapi import APIRouter

from app.routes import (
    asistencia_routes,
    auth_routes,
    catequizando_routes,
    grupo_routes,
    inscripcion_routes,
    nivel_routes,
    parroquia_routes,
    usuario_routes
)

api_router = APIRouter()

api_router.include_router(auth_routes.router, prefix="/auth", tags=["auth"])
api_router.include_router(parroquia_routes.router, prefix="/parroquias", tags=["parroquias"])
api_router.include_router(usuario_routes.router, prefix="/usuarios", tags=["usuarios"])
api_router.include_router(nivel_routes.router, prefix="/niveles", tags=["niveles"])
api_router.include_router(catequizando_routes.router, prefix="/catequizandos", tags=["catequizandos"])
api_router.include_router(grupo_routes.router, prefix="/grupos", tags=["grupos"])
api_router.include_router(inscripcion_routes.router, prefix="/inscripciones", tags=["inscripciones"])
api_router.include_router(asistencia_routes.router, prefix="/asistencias", tags=["asistencias"])
