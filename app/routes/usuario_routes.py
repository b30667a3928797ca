"""
Rutas de usuarios del sistema.
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
from app.services.seguridad.usuario_service import UsuarioService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> UsuarioService:
    return UsuarioService(db, current_user)


@router.post("")
def create_usuario(data: Dict[str, Any] = Body(...), service: UsuarioService = Depends(get_service)):
    return created_response(service.create(data), "Usuario creado exitosamente")


@router.get("")
def list_usuarios(
    request: Request,
    activo: Optional[bool] = None,
    parroquia_id: Optional[int] = None,
    service: UsuarioService = Depends(get_service)
):
    filtros = {
        key: value for key, value in {'activo': activo, 'parroquia_id': parroquia_id}.items()
        if value is not None
    }
    return paginated_response(service.get_all(filtros, **get_pagination_params(request.query_params)))


@router.get("/catequistas")
def list_catequistas(parroquia_id: Optional[int] = None, service: UsuarioService = Depends(get_service)):
    """Catequistas activos, opcionalmente de una parroquia."""
    return success_response(service.get_catequistas(parroquia_id))


@router.get("/{usuario_id}")
def get_usuario(usuario_id: int = Path(..., gt=0), service: UsuarioService = Depends(get_service)):
    return success_response(service.get_by_id(usuario_id))


@router.put("/{usuario_id}")
def update_usuario(
    usuario_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: UsuarioService = Depends(get_service)
):
    return success_response(service.update(usuario_id, data), "Usuario actualizado exitosamente")


@router.delete("/{usuario_id}")
def delete_usuario(usuario_id: int = Path(..., gt=0), service: UsuarioService = Depends(get_service)):
    service.delete(usuario_id)
    return success_response(None, "Usuario desactivado exitosamente")
