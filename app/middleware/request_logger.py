"""
Middleware para logging de requests HTTP y configuración del logging.
Registra información de entrada, salida y tiempo de procesamiento.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from logging.handlers import RotatingFileHandler
import logging
import time
import json
import uuid
from typing import Dict, Any, Optional, List

from app.config.settings import get_config

logger = logging.getLogger(__name__)

CAMPOS_SENSIBLES = ('password', 'password_hash', 'access_token')


def setup_logging(level: str = None, log_file: str = None) -> None:
    """
    Configura el logger raíz de la aplicación.

    Args:
        level: Nivel de logging (por defecto LOG_LEVEL)
        log_file: Archivo con rotación (opcional, por defecto LOG_FILE)
    """
    config = get_config()
    level = (level or config.LOG_LEVEL).upper()
    log_file = log_file if log_file is not None else config.LOG_FILE
    formatter = logging.Formatter(config.LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Evitar handlers duplicados al recrear la app
    for handler in list(root.handlers):
        if getattr(handler, '_catequesis', False):
            root.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._catequesis = True
        root.addHandler(handler)

    # SQLAlchemy tiene su propio flag de eco
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Middleware para logging de requests."""

    def __init__(
        self,
        app,
        log_level: str = "INFO",
        include_request_body: bool = False,
        exclude_paths: List[str] = None,
        sensitive_headers: List[str] = None,
        max_body_size: int = 1024 * 10  # 10KB
    ):
        super().__init__(app)
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.include_request_body = include_request_body
        self.exclude_paths = exclude_paths or ["/health"]
        self.sensitive_headers = sensitive_headers or ["authorization", "cookie"]
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next):
        """Procesa request con logging de entrada y salida."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.time()
        request_info = await self._capture_request_info(request, request_id)
        logger.log(self.log_level, f"REQUEST IN: {json.dumps(request_info, default=str)}")

        try:
            response = await call_next(request)
        except Exception as exc:
            error_info = {
                "request_id": request_id,
                "error_type": type(exc).__name__,
                "process_time": round((time.time() - start_time) * 1000, 2)
            }
            logger.error(f"REQUEST ERROR: {json.dumps(error_info)}")
            raise

        process_time = time.time() - start_time
        response_info = self._capture_response_info(request, response, request_id, process_time)
        logger.log(self.log_level, f"REQUEST OUT: {json.dumps(response_info, default=str)}")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 6))
        return response

    async def _capture_request_info(self, request: Request, request_id: str) -> Dict[str, Any]:
        """
        Captura información del request.

        Args:
            request: Objeto Request
            request_id: ID único del request

        Returns:
            Dict con información del request
        """
        info = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
            "headers": self._filter_headers(dict(request.headers)),
            "query_params": dict(request.query_params) if request.query_params else None
        }

        if self.include_request_body and request.method in ["POST", "PUT", "PATCH"]:
            body = await self._read_request_body(request)
            if body is not None:
                info["body"] = body

        return info

    def _capture_response_info(
        self,
        request: Request,
        response: Response,
        request_id: str,
        process_time: float
    ) -> Dict[str, Any]:
        info = {
            "request_id": request_id,
            "status_code": response.status_code,
            "process_time": round(process_time * 1000, 2),  # en milisegundos
            "content_length": response.headers.get("content-length")
        }

        current_user = getattr(request.state, 'current_user', None)
        if current_user:
            info["user"] = {"id": current_user.get("id"), "rol": current_user.get("rol")}

        return info

    async def _read_request_body(self, request: Request) -> Optional[Any]:
        """Lee el body JSON del request ocultando campos sensibles."""
        body_bytes = await request.body()
        if not body_bytes or len(body_bytes) > self.max_body_size:
            return None

        try:
            body = json.loads(body_bytes.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return {"raw": "[no JSON]"}

        if isinstance(body, dict):
            body = {k: "[FILTERED]" if k in CAMPOS_SENSIBLES else v for k, v in body.items()}
        return body

    def _filter_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Oculta headers sensibles."""
        return {
            key: "[FILTERED]" if key.lower() in self.sensitive_headers else value
            for key, value in headers.items()
        }


def setup_request_logging(app, log_level: str = "INFO", include_bodies: bool = False):
    """
    Configura middleware de logging para la aplicación.

    Args:
        app: Aplicación FastAPI
        log_level: Nivel de logging de requests
        include_bodies: Incluir bodies JSON en logs
    """
    app.add_middleware(
        RequestLoggerMiddleware,
        log_level=log_level,
        include_request_body=include_bodies
    )
    logger.info("Logging de requests configurado")
