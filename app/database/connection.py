"""
Conexión a la base de datos del Sistema de Catequesis.
Expone el engine de SQLAlchemy, la fábrica de sesiones y la dependencia get_db.
"""

import logging
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.settings import get_config

logger = logging.getLogger(__name__)
config = get_config()


class Base(DeclarativeBase):
    """Base declarativa de todos los modelos."""
    pass


def build_engine(database_url: str = None, echo: bool = None) -> Engine:
    """
    Crea un engine de SQLAlchemy según la URL configurada.

    Args:
        database_url: URL de conexión (por defecto la de la configuración)
        echo: Mostrar SQL generado

    Returns:
        Engine configurado
    """
    url = database_url or config.DATABASE_URL
    kwargs: Dict[str, Any] = {
        'echo': config.DB_ECHO if echo is None else echo,
        'future': True
    }

    if url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            kwargs['poolclass'] = StaticPool
    else:
        kwargs['pool_pre_ping'] = True

    engine = create_engine(url, **kwargs)

    if url.startswith('sqlite'):
        @event.listens_for(engine, 'connect')
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    return engine


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Dependencia de FastAPI: una sesión por request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Crea las tablas que aún no existen."""
    # Asistencia importa, en cadena, el resto de modelos
    from app.models.catequesis import asistencia_model  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Tablas verificadas: {', '.join(sorted(inspect(target).get_table_names()))}")


def check_database_connection() -> Dict[str, Any]:
    """
    Prueba la conexión a la base de datos.

    Returns:
        Dict con el resultado de la prueba
    """
    try:
        with engine.connect() as connection:
            connection.execute(text('SELECT 1'))
        return {'success': True, 'message': 'Conexión exitosa', 'dialect': engine.dialect.name}
    except SQLAlchemyError as e:
        logger.error(f"Error probando conexión a la base de datos: {str(e)}")
        return {'success': False, 'message': 'No se pudo conectar a la base de datos'}
