"""
Rutas de inscripciones: ciclo de vida, pagos, calificaciones y observaciones.
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
from app.services.catequesis.inscripcion_service import InscripcionService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> InscripcionService:
    return InscripcionService(db, current_user)


@router.post("")
def create_inscripcion(data: Dict[str, Any] = Body(...), service: InscripcionService = Depends(get_service)):
    """Inscribe un catequizando en un grupo; la inscripción queda pendiente."""
    return created_response(service.create(data), "Inscripción creada exitosamente")


@router.get("")
def list_inscripciones(request: Request, service: InscripcionService = Depends(get_service)):
    """Listado paginado; acepta estado, activa, grupo_id, catequizando_id y parroquia_id."""
    params = request.query_params
    return paginated_response(service.get_all(dict(params), **get_pagination_params(params)))


@router.get("/estadisticas")
def get_estadisticas(
    parroquia_id: Optional[int] = None,
    grupo_id: Optional[int] = None,
    service: InscripcionService = Depends(get_service)
):
    return success_response(service.get_estadisticas(parroquia_id=parroquia_id, grupo_id=grupo_id))


@router.get("/pendientes-pago")
def get_pendientes_pago(parroquia_id: Optional[int] = None, service: InscripcionService = Depends(get_service)):
    return success_response(service.get_pendientes_pago(parroquia_id))


@router.get("/grupo/{grupo_id}")
def get_inscripciones_grupo(grupo_id: int = Path(..., gt=0), service: InscripcionService = Depends(get_service)):
    return success_response(service.get_by_grupo(grupo_id))


@router.get("/catequizando/{catequizando_id}")
def get_inscripciones_catequizando(
    catequizando_id: int = Path(..., gt=0),
    service: InscripcionService = Depends(get_service)
):
    return success_response(service.get_by_catequizando(catequizando_id))


@router.get("/{inscripcion_id}")
def get_inscripcion(inscripcion_id: int = Path(..., gt=0), service: InscripcionService = Depends(get_service)):
    return success_response(service.get_by_id(inscripcion_id))


@router.put("/{inscripcion_id}")
def update_inscripcion(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return success_response(service.update(inscripcion_id, data), "Inscripción actualizada exitosamente")


@router.delete("/{inscripcion_id}")
def delete_inscripcion(inscripcion_id: int = Path(..., gt=0), service: InscripcionService = Depends(get_service)):
    service.delete(inscripcion_id)
    return success_response(None, "Inscripción eliminada exitosamente")


# ==========================================
# ESTADOS
# ==========================================

@router.put("/{inscripcion_id}/estado")
def cambiar_estado(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return success_response(service.cambiar_estado(inscripcion_id, data), "Estado actualizado exitosamente")


@router.put("/{inscripcion_id}/aprobar")
def aprobar_inscripcion(inscripcion_id: int = Path(..., gt=0), service: InscripcionService = Depends(get_service)):
    return success_response(service.aprobar(inscripcion_id), "Inscripción aprobada exitosamente")


@router.put("/{inscripcion_id}/transferir")
def transferir_inscripcion(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return success_response(service.transferir_grupo(inscripcion_id, data), "Inscripción transferida exitosamente")


# ==========================================
# PAGOS, CALIFICACIONES Y OBSERVACIONES
# ==========================================

@router.post("/{inscripcion_id}/pagos")
def registrar_pago(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return created_response(service.registrar_pago(inscripcion_id, data), "Pago registrado exitosamente")


@router.post("/{inscripcion_id}/calificaciones")
def registrar_calificacion(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return created_response(
        service.registrar_calificacion(inscripcion_id, data), "Calificación registrada exitosamente"
    )


@router.post("/{inscripcion_id}/observaciones")
def agregar_observacion(
    inscripcion_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: InscripcionService = Depends(get_service)
):
    return created_response(service.agregar_observacion(inscripcion_id, data), "Observación agregada exitosamente")
