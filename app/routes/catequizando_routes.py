"""
Rutas de catequizandos.
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
from app.services.catequesis.catequizando_service import CatequizandoService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> CatequizandoService:
    return CatequizandoService(db, current_user)


@router.post("")
def create_catequizando(data: Dict[str, Any] = Body(...), service: CatequizandoService = Depends(get_service)):
    return created_response(service.create(data), "Catequizando registrado exitosamente")


@router.get("")
def list_catequizandos(
    request: Request,
    activo: Optional[bool] = None,
    parroquia_id: Optional[int] = None,
    service: CatequizandoService = Depends(get_service)
):
    filtros = {
        key: value for key, value in {'activo': activo, 'parroquia_id': parroquia_id}.items()
        if value is not None
    }
    return paginated_response(service.get_all(filtros, **get_pagination_params(request.query_params)))


@router.get("/buscar")
def buscar_catequizandos(q: str, service: CatequizandoService = Depends(get_service)):
    """Búsqueda por nombres, apellidos o documento."""
    return success_response(service.buscar(q))


@router.get("/{catequizando_id}")
def get_catequizando(catequizando_id: int = Path(..., gt=0), service: CatequizandoService = Depends(get_service)):
    return success_response(service.get_by_id(catequizando_id))


@router.get("/{catequizando_id}/historial")
def get_historial_catequizando(
    catequizando_id: int = Path(..., gt=0),
    service: CatequizandoService = Depends(get_service)
):
    return success_response(service.get_historial(catequizando_id))


@router.put("/{catequizando_id}")
def update_catequizando(
    catequizando_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: CatequizandoService = Depends(get_service)
):
    return success_response(service.update(catequizando_id, data), "Catequizando actualizado exitosamente")


@router.delete("/{catequizando_id}")
def delete_catequizando(catequizando_id: int = Path(..., gt=0), service: CatequizandoService = Depends(get_service)):
    service.delete(catequizando_id)
    return success_response(None, "Catequizando desactivado exitosamente")
