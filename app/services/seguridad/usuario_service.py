"""
Servicio de gestión de usuarios para el sistema de catequesis.
"""

from typing import Dict, Any, Type
import logging

from app.services.base_service import BaseService
from app.services.seguridad.auth_service import hash_password
from app.services.seguridad.permission_service import Accion
from app.models.seguridad.usuario_model import Usuario
from app.models.parroquias.parroquia_model import Parroquia
from app.schemas.seguridad.usuario_schema import (
    UsuarioCreateSchema, UsuarioUpdateSchema, UsuarioResponseSchema
)
from app.core.exceptions import AuthorizationError, DuplicateRecordError, ValidationError
from app.utils.constants import Rol

logger = logging.getLogger(__name__)


class UsuarioService(BaseService):
    """Servicio para gestión de usuarios."""

    @property
    def model(self) -> Type[Usuario]:
        return Usuario

    @property
    def create_schema(self) -> Type[UsuarioCreateSchema]:
        return UsuarioCreateSchema

    @property
    def update_schema(self) -> Type[UsuarioUpdateSchema]:
        return UsuarioUpdateSchema

    @property
    def response_schema(self) -> Type[UsuarioResponseSchema]:
        return UsuarioResponseSchema

    @property
    def accion_escritura(self) -> Accion:
        return Accion.GESTIONAR_USUARIOS

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """Verifica unicidad, alcance de parroquia y hashea la contraseña."""
        if self.db.query(Usuario).filter(Usuario.username == data['username']).first():
            raise DuplicateRecordError('usuario', f"El username '{data['username']}' ya está registrado")

        if data.get('email') and self.db.query(Usuario).filter(Usuario.email == data['email']).first():
            raise DuplicateRecordError('usuario', f"El email '{data['email']}' ya está registrado")

        self._verificar_perfil(data.get('rol'), data.get('parroquia_id'))

        data['password_hash'] = hash_password(data.pop('password'))
        return data

    def _before_update(self, instance: Usuario, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        rol = data.get('rol', instance.rol)
        parroquia_id = data.get('parroquia_id', instance.parroquia_id)
        if 'rol' in data or 'parroquia_id' in data:
            if rol != Rol.ADMIN and not parroquia_id:
                raise ValidationError("La parroquia es requerida para este perfil", 'parroquia_id')
            self._verificar_perfil(rol, parroquia_id)

        if data.get('password'):
            data['password_hash'] = hash_password(data.pop('password'))
        else:
            data.pop('password', None)
        return data

    def _verificar_perfil(self, rol: Rol, parroquia_id: int) -> None:
        """
        Solo el administrador crea administradores o usuarios de otra parroquia.

        Raises:
            AuthorizationError: Si el perfil o la parroquia exceden el alcance
            RecordNotFoundError: Si la parroquia no existe
        """
        if rol == Rol.ADMIN and not self.politica.es_admin:
            raise AuthorizationError("Solo un administrador puede crear administradores")

        if parroquia_id is not None:
            self._find(Parroquia, parroquia_id, 'Parroquia')
            self.politica.exigir_parroquia(parroquia_id)

    def get_catequistas(self, parroquia_id: int = None) -> list:
        """Usuarios que pueden asignarse como catequistas de un grupo."""
        query = self._build_base_query().filter(
            Usuario.activo.is_(True),
            Usuario.rol.in_([Rol.CATEQUISTA, Rol.PARROCO])
        )
        if parroquia_id:
            query = query.filter(Usuario.parroquia_id == parroquia_id)
        return [self._serialize_response(u) for u in query.order_by(Usuario.apellidos).all()]
