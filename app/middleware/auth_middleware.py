"""
Middleware de autenticación.
Valida el token JWT de cada request y deja el usuario actual en request.state.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Dict, Any, List, Optional
import logging

from app.core.exceptions import AuthenticationError
from app.middleware.error_handler import error_response
from app.services.seguridad.auth_service import decode_token

logger = logging.getLogger(__name__)

PUBLIC_PATHS = [
    "/",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/auth/login"
]


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware principal de autenticación."""

    def __init__(self, app, public_paths: List[str] = None):
        super().__init__(app)
        # Rutas públicas (sin autenticación)
        self.public_paths = set(public_paths or PUBLIC_PATHS)

    async def dispatch(self, request: Request, call_next):
        """Procesa autenticación en cada request."""
        request.state.current_user = None

        if self._is_public_path(request.url.path) or request.method == "OPTIONS":
            return await call_next(request)

        try:
            request.state.current_user = self._authenticate_jwt(request)
        except AuthenticationError as e:
            logger.warning(f"Autenticación rechazada en {request.url.path}: {e.message}")
            return error_response(e.error_code, e.message, e.status_code)

        return await call_next(request)

    def _authenticate_jwt(self, request: Request) -> Dict[str, Any]:
        """
        Extrae y valida el token Bearer.

        Returns:
            Dict con el usuario actual

        Raises:
            AuthenticationError: Si falta el token o no es válido
        """
        authorization = request.headers.get("authorization", "")
        scheme, _, token = authorization.partition(" ")

        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Token de autenticación requerido")

        return decode_token(token.strip())

    def _is_public_path(self, path: str) -> bool:
        return path.rstrip("/") in self.public_paths or path in self.public_paths


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Dependencia de FastAPI con el usuario autenticado.

    Raises:
        AuthenticationError: Si el request no pasó por la autenticación
    """
    current_user = getattr(request.state, 'current_user', None)
    if not current_user:
        raise AuthenticationError("Usuario no autenticado")
    return current_user


def get_current_user_optional(request: Request) -> Optional[Dict[str, Any]]:
    return getattr(request.state, 'current_user', None)
