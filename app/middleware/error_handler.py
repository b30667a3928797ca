"""
Middleware para manejo centralizado de errores y excepciones.
Traduce las excepciones del dominio a respuestas JSON consistentes.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Dict, Any
import logging
import uuid

from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CatequesisBaseException,
    ConflictError,
    ValidationError
)
from app.utils.date_utils import get_current_datetime

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware para manejo centralizado de errores."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Procesa request y maneja errores."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Maneja diferentes tipos de excepciones.

        Args:
            request: Request HTTP
            exc: Excepción capturada

        Returns:
            JSONResponse con error formateado
        """
        error_id = self._generate_error_id()
        self._log_error(request, exc, error_id)

        if isinstance(exc, CatequesisBaseException):
            return error_response(exc.error_code, exc.message, exc.status_code, exc.details, error_id)

        if isinstance(exc, IntegrityError):
            return error_response(
                'DUPLICATE_RECORD', "El registro viola una restricción de unicidad", 409, error_id=error_id
            )

        if isinstance(exc, SQLAlchemyError):
            return error_response(
                'DATABASE_ERROR', "Error temporal de base de datos. Intente nuevamente.", 500, error_id=error_id
            )

        message = str(exc) if self.debug else "Error interno del servidor"
        return error_response('INTERNAL_ERROR', message, 500, error_id=error_id)

    def _log_error(self, request: Request, exc: Exception, error_id: str) -> None:
        """
        Registra error en logs.

        Errores del dominio como warning; el resto como error con traceback.
        """
        context = (
            f"[{error_id}] {request.method} {request.url.path} -> "
            f"{type(exc).__name__}: {getattr(exc, 'message', str(exc))}"
        )

        if isinstance(exc, (ValidationError, ConflictError, AuthenticationError, AuthorizationError)):
            logger.info(f"Error manejado: {context}")
        elif isinstance(exc, CatequesisBaseException) and exc.status_code < 500:
            logger.warning(f"Error manejado: {context}")
        else:
            logger.error(f"Error crítico: {context}", exc_info=exc)

    def _generate_error_id(self) -> str:
        """Genera ID único para el error."""
        return f"ERR_{get_current_datetime().strftime('%Y%m%d')}_{str(uuid.uuid4())[:8]}"


def error_response(
    error_code: str,
    message: str,
    status_code: int = 400,
    details: Dict[str, Any] = None,
    error_id: str = None
) -> JSONResponse:
    """
    Crea respuesta de error estandarizada.

    Args:
        error_code: Código de error
        message: Mensaje descriptivo
        status_code: Código HTTP
        details: Detalles adicionales
        error_id: ID del error para correlacionar con los logs

    Returns:
        JSONResponse formateada
    """
    content = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message,
            "timestamp": get_current_datetime().isoformat()
        }
    }

    if details:
        content["error"]["details"] = details
    if error_id:
        content["error"]["error_id"] = error_id

    return JSONResponse(status_code=status_code, content=content)
