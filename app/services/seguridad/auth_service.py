"""
Servicio de autenticación para el sistema de catequesis.
Maneja login, emisión y verificación de tokens de acceso y contraseñas.
"""

from typing import Dict, Any
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from passlib.context import CryptContext
import jwt
import logging

from app.config.settings import get_config
from app.models.seguridad.usuario_model import Usuario
from app.schemas.seguridad.auth_schema import LoginSchema
from app.schemas.seguridad.usuario_schema import UsuarioResponseSchema
from app.core.exceptions import (
    AuthenticationError, InvalidCredentialsError, InvalidTokenError, TokenExpiredError,
    RecordNotFoundError, ValidationError
)
from app.utils.date_utils import get_current_datetime
from marshmallow import ValidationError as SchemaValidationError

logger = logging.getLogger(__name__)

config = get_config()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.PASSWORD_HASH_ROUNDS
)


def hash_password(password: str) -> str:
    """Genera el hash bcrypt de una contraseña."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña contra su hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(claims: Dict[str, Any]) -> str:
    """
    Firma un token de acceso con los datos del usuario.

    Args:
        claims: Datos a incluir (sub, username, rol, parroquia_id)

    Returns:
        str: Token JWT firmado
    """
    ahora = datetime.now(timezone.utc)
    payload = dict(claims)
    payload.update({
        'iat': ahora,
        'exp': ahora + config.JWT_ACCESS_TOKEN_EXPIRES
    })
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida un token de acceso.

    Returns:
        Dict con el usuario actual: id, username, rol, parroquia_id

    Raises:
        TokenExpiredError: Si el token expiró
        InvalidTokenError: Si la firma o el contenido no son válidos
    """
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()

    try:
        usuario_id = int(payload['sub'])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError()

    return {
        'id': usuario_id,
        'username': payload.get('username'),
        'rol': payload.get('rol'),
        'parroquia_id': payload.get('parroquia_id')
    }


class AuthService:
    """Servicio de autenticación."""

    def __init__(self, db: Session):
        self.db = db

    # ==========================================
    # AUTENTICACIÓN PRINCIPAL
    # ==========================================

    def login(self, login_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Autentica un usuario y emite un token de acceso.

        Args:
            login_data: username y password

        Returns:
            Dict con access_token, token_type, expires_in y usuario

        Raises:
            ValidationError: Si faltan datos
            InvalidCredentialsError: Si las credenciales son inválidas
            AuthenticationError: Si el usuario está inactivo
        """
        try:
            validated_data = LoginSchema().load(login_data or {})
        except SchemaValidationError as e:
            raise ValidationError("Datos de login inválidos", details=e.messages)

        username = validated_data['username']
        user = self.db.query(Usuario).filter(Usuario.username == username).first()

        if not user or not verify_password(validated_data['password'], user.password_hash):
            logger.warning(f"Login fallido para '{username}'")
            raise InvalidCredentialsError()

        if not user.activo:
            logger.warning(f"Login de usuario inactivo: {username}")
            raise AuthenticationError("Usuario inactivo. Contacte al administrador.")

        user.ultimo_acceso = get_current_datetime()
        self.db.commit()

        access_token = create_access_token(user.to_token_claims())
        logger.info(f"Login exitoso: {username} ({user.rol.value})")

        return {
            'access_token': access_token,
            'token_type': 'bearer',
            'expires_in': int(config.JWT_ACCESS_TOKEN_EXPIRES.total_seconds()),
            'usuario': UsuarioResponseSchema().dump(user)
        }

    def me(self, current_user: Dict[str, Any]) -> Dict[str, Any]:
        """Perfil del usuario autenticado."""
        user = self.db.get(Usuario, current_user['id'])
        if user is None:
            raise RecordNotFoundError('Usuario', 'id', current_user['id'])
        return UsuarioResponseSchema().dump(user)
