"""
Rutas de asistencia: registro individual y por grupo, seguimiento y reportes.
"""

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Path, Request
from sqlalchemy.orm import Session

from app.core.response_handler import created_response, success_response
from app.database.connection import get_db
from app.middleware.auth_middleware import get_current_user
from app.services.catequesis.asistencia_service import AsistenciaService

router = APIRouter()


def get_service(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
) -> AsistenciaService:
    return AsistenciaService(db, current_user)


@router.post("")
def registrar_asistencia(data: Dict[str, Any] = Body(...), service: AsistenciaService = Depends(get_service)):
    return created_response(service.create(data), "Asistencia registrada exitosamente")


@router.post("/grupo")
def registrar_asistencia_grupo(data: Dict[str, Any] = Body(...), service: AsistenciaService = Depends(get_service)):
    """Registra la asistencia de varios catequizandos del grupo en una sola operación."""
    registros = service.registrar_grupo(data)
    return created_response(registros, f"{len(registros)} asistencias registradas exitosamente")


@router.get("/inscripcion/{inscripcion_id}")
def get_asistencias_inscripcion(
    request: Request,
    inscripcion_id: int = Path(..., gt=0),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.get_by_inscripcion(inscripcion_id, dict(request.query_params)))


@router.get("/grupo/{grupo_id}/fecha/{fecha}")
def get_asistencias_grupo_fecha(
    grupo_id: int = Path(..., gt=0),
    fecha: date = Path(...),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.get_by_grupo_y_fecha(grupo_id, fecha))


@router.get("/grupo/{grupo_id}/estadisticas")
def get_estadisticas_grupo(
    request: Request,
    grupo_id: int = Path(..., gt=0),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.get_estadisticas_grupo(grupo_id, dict(request.query_params)))


@router.get("/parroquia/{parroquia_id}/estadisticas")
def get_estadisticas_parroquia(
    request: Request,
    parroquia_id: int = Path(..., gt=0),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.get_estadisticas_parroquia(parroquia_id, dict(request.query_params)))


@router.get("/reporte")
def get_reporte(request: Request, service: AsistenciaService = Depends(get_service)):
    """Una fila por catequizando; acepta grupo_id, fecha_desde y fecha_hasta."""
    return success_response(service.get_reporte(dict(request.query_params)))


@router.get("/ausencias-pendientes")
def get_ausencias_pendientes(service: AsistenciaService = Depends(get_service)):
    return success_response(service.get_ausencias_por_notificar())


@router.put("/{asistencia_id}")
def update_asistencia(
    asistencia_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.update(asistencia_id, data), "Asistencia actualizada exitosamente")


@router.delete("/{asistencia_id}")
def delete_asistencia(asistencia_id: int = Path(..., gt=0), service: AsistenciaService = Depends(get_service)):
    service.delete(asistencia_id)
    return success_response(None, "Asistencia eliminada exitosamente")


@router.post("/{asistencia_id}/observaciones")
def agregar_observacion(
    asistencia_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: AsistenciaService = Depends(get_service)
):
    return created_response(service.agregar_observacion(asistencia_id, data), "Observación agregada exitosamente")


@router.post("/{asistencia_id}/tareas")
def registrar_tarea(
    asistencia_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: AsistenciaService = Depends(get_service)
):
    return created_response(service.registrar_tarea(asistencia_id, data), "Tarea registrada exitosamente")


@router.put("/{asistencia_id}/notificacion")
def marcar_notificacion(
    asistencia_id: int = Path(..., gt=0),
    data: Dict[str, Any] = Body(...),
    service: AsistenciaService = Depends(get_service)
):
    return success_response(service.marcar_notificacion(asistencia_id, data), "Notificación registrada")
