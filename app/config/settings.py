"""
Configuración principal del Sistema de Catequesis.
Maneja las configuraciones por ambiente (desarrollo, producción, testing).
"""

import os
from datetime import timedelta
from dotenv import load_dotenv

# Cargar variables de entorno
load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).lower() in ['true', '1', 'yes']


class Config:
    """Configuración base compartida entre todos los ambientes."""

    APP_NAME = os.getenv('APP_NAME', 'Sistema de Catequesis')
    APP_VERSION = os.getenv('APP_VERSION', '1.0.0')
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = False
    TESTING = False

    # Configuración de base de datos
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./catequesis.db')
    DB_ECHO = _as_bool(os.getenv('DB_ECHO', 'False'))

    # Configuración JWT
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '86400')))
    JWT_ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')

    # Hash de contraseñas (bcrypt)
    PASSWORD_HASH_ROUNDS = int(os.getenv('PASSWORD_HASH_ROUNDS', '12'))

    # Configuración de logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', '')
    LOG_MAX_BYTES = int(os.getenv('LOG_MAX_BYTES', '10485760'))  # 10MB
    LOG_BACKUP_COUNT = int(os.getenv('LOG_BACKUP_COUNT', '5'))
    LOG_FORMAT = os.getenv('LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    LOG_REQUEST_BODIES = _as_bool(os.getenv('LOG_REQUEST_BODIES', 'False'))

    # Paginación
    DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', '20'))
    MAX_PAGE_SIZE = int(os.getenv('MAX_PAGE_SIZE', '100'))

    # Configuración específica del dominio
    CAPACIDAD_GRUPO_DEFAULT = int(os.getenv('CAPACIDAD_GRUPO_DEFAULT', '25'))

    # Timezone y localización
    TIMEZONE = os.getenv('TIMEZONE', 'America/Guayaquil')
    DATE_FORMAT = os.getenv('DATE_FORMAT', '%d/%m/%Y')


class DevelopmentConfig(Config):
    """Configuración para ambiente de desarrollo."""

    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Configuración para ambiente de producción."""

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')


class TestingConfig(Config):
    """Configuración para ambiente de testing."""

    DEBUG = True
    TESTING = True

    # Base de datos en memoria
    DATABASE_URL = 'sqlite://'

    # JWT con expiración corta para tests
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # bcrypt barato en tests
    PASSWORD_HASH_ROUNDS = 4

    LOG_LEVEL = 'WARNING'


# Diccionario de configuraciones por ambiente
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """
    Obtiene la configuración basada en la variable de entorno APP_ENV.

    Returns:
        Config: Clase de configuración correspondiente al ambiente.
    """
    env = os.getenv('APP_ENV', 'development')
    return config_by_name.get(env, config_by_name['default'])
