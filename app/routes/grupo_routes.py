"""
Rutas de grupos de catequesis y asignación de catequistas.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, Request
from sqlalchemy.orm import Session

from app.core.response_handler import (
    created_response,
    get_pagination_params,
    paginated_response,
    success_response
)
from app.database.connection import get_db
from app.middleware.auth_middleware import get_current_user
from app.services.catequesis.grupo_service import GrupoService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> GrupoService:
    return GrupoService(db, current_user)


@router.post("")
def create_grupo(data: Dict[str, Any] = Body(...), service: GrupoService = Depends(get_service)):
    return created_response(service.create(data), "Grupo creado exitosamente")


@router.get("")
def list_grupos(
    request: Request,
    activo: Optional[bool] = None,
    parroquia_id: Optional[int] = None,
    nivel_id: Optional[int] = None,
    periodo: Optional[str] = None,
    service: GrupoService = Depends(get_service)
):
    filtros = {
        key: value for key, value in {
            'activo': activo,
            'parroquia_id': parroquia_id,
            'nivel_id': nivel_id,
            'periodo': periodo
        }.items()
        if value is not None
    }
    return paginated_response(service.get_all(filtros, **get_pagination_params(request.query_params)))


@router.get("/{grupo_id}")
def get_grupo(grupo_id: int = Path(..., gt=0), service: GrupoService = Depends(get_service)):
    return success_response(service.get_by_id(grupo_id))


@router.get("/{grupo_id}/estadisticas")
def get_estadisticas_grupo(grupo_id: int = Path(..., gt=0), service: GrupoService = Depends(get_service)):
    return success_response(service.get_estadisticas(grupo_id))


@router.put("/{grupo_id}")
def update_grupo(
    grupo_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: GrupoService = Depends(get_service)
):
    return success_response(service.update(grupo_id, data), "Grupo actualizado exitosamente")


@router.delete("/{grupo_id}")
def delete_grupo(grupo_id: int = Path(..., gt=0), service: GrupoService = Depends(get_service)):
    service.delete(grupo_id)
    return success_response(None, "Grupo desactivado exitosamente")


# ==========================================
# CATEQUISTAS DEL GRUPO
# ==========================================

@router.get("/{grupo_id}/catequistas")
def list_catequistas_grupo(grupo_id: int = Path(..., gt=0), service: GrupoService = Depends(get_service)):
    return success_response(service.get_catequistas(grupo_id))


@router.post("/{grupo_id}/catequistas")
def asignar_catequista(
    grupo_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: GrupoService = Depends(get_service)
):
    """Asigna un catequista al grupo (un solo coordinador activo por grupo)."""
    return created_response(service.asignar_catequista(grupo_id, data), "Catequista asignado exitosamente")


@router.delete("/{grupo_id}/catequistas/{usuario_id}")
def remover_catequista(
    grupo_id: int = Path(..., gt=0),
    usuario_id: int = Path(..., gt=0),
    service: GrupoService = Depends(get_service)
):
    return success_response(service.remover_catequista(grupo_id, usuario_id), "Catequista removido del grupo")
