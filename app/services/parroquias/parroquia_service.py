"""
Servicio de gestión de parroquias para el sistema de catequesis.
"""

from typing import Any, Dict, Type
import logging

from app.services.base_service import BaseService
from app.models.parroquias.parroquia_model import Parroquia
from app.models.seguridad.usuario_model import Usuario
from app.models.catequesis.grupo_model import Grupo
from app.schemas.parroquias.parroquia_schema import (
    ParroquiaCreateSchema, ParroquiaUpdateSchema, ParroquiaResponseSchema
)
from app.core.exceptions import DuplicateRecordError
from app.services.seguridad.permission_service import Accion

logger = logging.getLogger(__name__)


class ParroquiaService(BaseService):
    """Servicio para gestión de parroquias."""

    @property
    def model(self) -> Type[Parroquia]:
        return Parroquia

    @property
    def create_schema(self) -> Type[ParroquiaCreateSchema]:
        return ParroquiaCreateSchema

    @property
    def update_schema(self) -> Type[ParroquiaUpdateSchema]:
        return ParroquiaUpdateSchema

    @property
    def response_schema(self) -> Type[ParroquiaResponseSchema]:
        return ParroquiaResponseSchema

    @property
    def accion_escritura(self) -> Accion:
        return Accion.GESTIONAR_PARROQUIAS

    @property
    def parroquia_column(self):
        # Un usuario no administrador solo ve su propia parroquia
        return Parroquia.id

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        self._verificar_nombre_unico(data['nombre'])
        return data

    def _before_update(self, instance: Parroquia, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        if data.get('nombre') and data['nombre'] != instance.nombre:
            self._verificar_nombre_unico(data['nombre'])
        return data

    def _verificar_nombre_unico(self, nombre: str) -> None:
        if self.db.query(Parroquia).filter(Parroquia.nombre == nombre).first():
            raise DuplicateRecordError('parroquia', f"Ya existe una parroquia con el nombre '{nombre}'")

    def get_resumen(self, parroquia_id: int) -> Dict[str, Any]:
        """
        Resumen de la parroquia con conteos básicos.

        Args:
            parroquia_id: ID de la parroquia

        Returns:
            Dict con la parroquia y sus totales de usuarios y grupos activos
        """
        parroquia = self._get_instance_by_id(parroquia_id)

        usuarios = self.db.query(Usuario).filter(
            Usuario.parroquia_id == parroquia_id, Usuario.activo.is_(True)
        ).count()
        grupos = self.db.query(Grupo).filter(
            Grupo.parroquia_id == parroquia_id, Grupo.activo.is_(True)
        ).count()

        return {
            'parroquia': self._serialize_response(parroquia),
            'usuarios_activos': usuarios,
            'grupos_activos': grupos
        }
