"""
Servicio de gestión de niveles de catequesis.
"""

from typing import Dict, Any, List, Type
from sqlalchemy import or_
import logging

from app.services.base_service import BaseService
from app.services.seguridad.permission_service import Accion
from app.models.catequesis.nivel_model import Nivel
from app.models.catequesis.grupo_model import Grupo
from app.schemas.catequesis.nivel_schema import (
    NivelCreateSchema, NivelUpdateSchema, NivelResponseSchema
)
from app.core.exceptions import DependentRecordsError, DuplicateRecordError, ValidationError

logger = logging.getLogger(__name__)


class NivelService(BaseService):
    """Servicio para gestión de niveles de catequesis."""

    @property
    def model(self) -> Type[Nivel]:
        return Nivel

    @property
    def create_schema(self) -> Type[NivelCreateSchema]:
        return NivelCreateSchema

    @property
    def update_schema(self) -> Type[NivelUpdateSchema]:
        return NivelUpdateSchema

    @property
    def response_schema(self) -> Type[NivelResponseSchema]:
        return NivelResponseSchema

    @property
    def accion_escritura(self) -> Accion:
        return Accion.GESTIONAR_CATALOGO

    @property
    def parroquia_column(self):
        # Los niveles son compartidos por todas las parroquias
        return None

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        if self.db.query(Nivel).filter(Nivel.nombre == data['nombre']).first():
            raise DuplicateRecordError('nivel', f"Ya existe un nivel con el nombre '{data['nombre']}'")
        return data

    def _before_update(self, instance: Nivel, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        edad_minima = data.get('edad_minima', instance.edad_minima)
        edad_maxima = data.get('edad_maxima', instance.edad_maxima)
        if edad_minima is not None and edad_maxima is not None and edad_minima > edad_maxima:
            raise ValidationError("La edad mínima no puede ser mayor a la edad máxima", 'edad_minima')

        if data.get('nombre') and data['nombre'] != instance.nombre:
            if self.db.query(Nivel).filter(Nivel.nombre == data['nombre']).first():
                raise DuplicateRecordError('nivel', f"Ya existe un nivel con el nombre '{data['nombre']}'")
        return data

    def delete(self, id: int, **kwargs) -> bool:
        """Desactiva el nivel si no tiene grupos activos."""
        grupos = self.db.query(Grupo).filter(Grupo.nivel_id == id, Grupo.activo.is_(True)).count()
        if grupos:
            raise DependentRecordsError('El nivel', 'grupos activos', grupos)
        return super().delete(id, **kwargs)

    def get_ordenados(self, solo_activos: bool = True) -> List[Dict[str, Any]]:
        """Niveles en orden curricular."""
        query = self.db.query(Nivel)
        if solo_activos:
            query = query.filter(Nivel.activo.is_(True))
        return [self._serialize_response(n) for n in query.order_by(Nivel.orden, Nivel.nombre).all()]

    def buscar(self, texto: str) -> List[Dict[str, Any]]:
        termino = f"%{texto}%"
        query = self.db.query(Nivel).filter(
            or_(Nivel.nombre.ilike(termino), Nivel.descripcion.ilike(termino))
        )
        return [self._serialize_response(n) for n in query.order_by(Nivel.orden).all()]
