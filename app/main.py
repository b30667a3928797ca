"""
Punto de entrada de la API del Sistema de Catequesis.

Arma la aplicación FastAPI: logging, middleware, creación de tablas
e inclusión de los routers bajo /api. Para ejecutarla::

    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from app.config.settings import get_config
from app.core.response_handler import success_response
from app.database.connection import init_db, check_database_connection
from app.middleware.auth_middleware import AuthenticationMiddleware
from app.middleware.error_handler import ErrorHandlerMiddleware, error_response
from app.middleware.request_logger import setup_logging, setup_request_logging
from app.routes.router import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Aplicación iniciada")
    yield
    logger.info("Aplicación detenida")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Errores de parámetros de ruta o query con el mismo formato que el resto."""
    errores = {}
    for error in exc.errors():
        campo = ".".join(str(parte) for parte in error.get('loc', ()) if parte not in ('body', 'query', 'path'))
        errores.setdefault(campo or 'request', []).append(error.get('msg'))
    return error_response('VALIDATION_ERROR', "Parámetros inválidos", 400, jsonable_encoder(errores))


def create_app() -> FastAPI:
    """
    Crea y configura la aplicación FastAPI.

    Returns:
        FastAPI configurada y lista para servir
    """
    config = get_config()
    setup_logging()

    app = FastAPI(title=config.APP_NAME, version=config.APP_VERSION, lifespan=lifespan)

    # El último middleware agregado es el más externo
    app.add_middleware(AuthenticationMiddleware)
    setup_request_logging(app, include_bodies=config.LOG_REQUEST_BODIES)
    app.add_middleware(ErrorHandlerMiddleware, debug=config.DEBUG)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["health"])
    def health():
        return success_response({
            'status': 'ok',
            'version': config.APP_VERSION,
            'database': check_database_connection()
        })

    return app


app = create_app()
