"""
Rutas de parroquias.
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
from app.services.parroquias.parroquia_service import ParroquiaService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> ParroquiaService:
    return ParroquiaService(db, current_user)


@router.post("")
def create_parroquia(data: Dict[str, Any] = Body(...), service: ParroquiaService = Depends(get_service)):
    return created_response(service.create(data), "Parroquia creada exitosamente")


@router.get("")
def list_parroquias(
    request: Request,
    activa: Optional[bool] = None,
    service: ParroquiaService = Depends(get_service)
):
    filtros = {'activa': activa} if activa is not None else {}
    return paginated_response(service.get_all(filtros, **get_pagination_params(request.query_params)))


@router.get("/{parroquia_id}")
def get_parroquia(parroquia_id: int = Path(..., gt=0), service: ParroquiaService = Depends(get_service)):
    return success_response(service.get_by_id(parroquia_id))


@router.get("/{parroquia_id}/resumen")
def get_resumen_parroquia(parroquia_id: int = Path(..., gt=0), service: ParroquiaService = Depends(get_service)):
    """Parroquia con el total de usuarios y grupos activos."""
    return success_response(service.get_resumen(parroquia_id))


@router.put("/{parroquia_id}")
def update_parroquia(
    parroquia_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: ParroquiaService = Depends(get_service)
):
    return success_response(service.update(parroquia_id, data), "Parroquia actualizada exitosamente")


@router.delete("/{parroquia_id}")
def delete_parroquia(parroquia_id: int = Path(..., gt=0), service: ParroquiaService = Depends(get_service)):
    service.delete(parroquia_id)
    return success_response(None, "Parroquia desactivada exitosamente")
