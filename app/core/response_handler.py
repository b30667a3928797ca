"""
Manejador de respuestas estandarizado para el Sistema de Catequesis.
Proporciona un formato consistente para todas las respuestas de la API.
"""

from typing import Any, Dict, Mapping

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from marshmallow import ValidationError as MarshmallowValidationError

from app.core.exceptions import ValidationError
from app.schemas.base_schema import PaginationSchema


def success_response(
    data: Any = None,
    message: str = "Operación exitosa",
    status_code: int = 200
) -> JSONResponse:
    """
    Crea una respuesta exitosa estandarizada.

    Args:
        data: Datos a incluir en la respuesta
        message: Mensaje descriptivo
        status_code: Código de estado HTTP

    Returns:
        JSONResponse con el formato {success, message, data}
    """
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "success": True,
            "message": message,
            "data": data
        })
    )


def created_response(data: Any = None, message: str = "Recurso creado exitosamente") -> JSONResponse:
    return success_response(data, message, 201)


def paginated_response(result: Dict[str, Any], message: str = "Consulta exitosa") -> JSONResponse:
    """
    Respuesta para listados paginados.

    Args:
        result: Dict con 'items' y 'pagination' devuelto por los servicios
        message: Mensaje descriptivo
    """
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder({
            "success": True,
            "message": message,
            "data": result['items'],
            "pagination": result['pagination']
        })
    )


def get_pagination_params(query_params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Valida los parámetros de paginación y ordenamiento de un request.

    Raises:
        ValidationError: Si page, per_page o sort_order no son válidos
    """
    try:
        return PaginationSchema().load(dict(query_params))
    except MarshmallowValidationError as e:
        raise ValidationError("Parámetros de paginación inválidos", details=e.messages)
