"""
Rutas del catálogo de niveles de catequesis.
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
from app.services.catequesis.nivel_service import NivelService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> NivelService:
    return NivelService(db, current_user)


@router.post("")
def create_nivel(data: Dict[str, Any] = Body(...), service: NivelService = Depends(get_service)):
    return created_response(service.create(data), "Nivel creado exitosamente")


@router.get("")
def list_niveles(
    request: Request,
    activo: Optional[bool] = None,
    service: NivelService = Depends(get_service)
):
    filtros = {'activo': activo} if activo is not None else {}
    return paginated_response(service.get_all(filtros, **get_pagination_params(request.query_params)))


@router.get("/ordenados")
def list_niveles_ordenados(solo_activos: bool = True, service: NivelService = Depends(get_service)):
    return success_response(service.get_ordenados(solo_activos))


@router.get("/buscar")
def buscar_niveles(q: str, service: NivelService = Depends(get_service)):
    return success_response(service.buscar(q))


@router.get("/{nivel_id}")
def get_nivel(nivel_id: int = Path(..., gt=0), service: NivelService = Depends(get_service)):
    return success_response(service.get_by_id(nivel_id))


@router.put("/{nivel_id}")
def update_nivel(
    nivel_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: NivelService = Depends(get_service)
):
    return success_response(service.update(nivel_id, data), "Nivel actualizado exitosamente")


@router.delete("/{nivel_id}")
def delete_nivel(nivel_id: int = Path(..., gt=0), service: NivelService = Depends(get_service)):
    service.delete(nivel_id)
    return success_response(None, "Nivel desactivado exitosamente")
