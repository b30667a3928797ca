"""
Servicio de gestión de catequizandos.
"""

from typing import Dict, Any, List, Type
from sqlalchemy import or_
import logging

from app.services.base_service import BaseService
from app.services.seguridad.permission_service import Accion
from app.models.catequesis.catequizando_model import Catequizando
from app.models.catequesis.inscripcion_model import Inscripcion
from app.models.parroquias.parroquia_model import Parroquia
from app.schemas.catequesis.catequizando_schema import (
    CatequizandoCreateSchema, CatequizandoUpdateSchema, CatequizandoResponseSchema
)
from app.core.exceptions import DuplicateRecordError

logger = logging.getLogger(__name__)


class CatequizandoService(BaseService):
    """Servicio para gestión de catequizandos."""

    @property
    def model(self) -> Type[Catequizando]:
        return Catequizando

    @property
    def create_schema(self) -> Type[CatequizandoCreateSchema]:
        return CatequizandoCreateSchema

    @property
    def update_schema(self) -> Type[CatequizandoUpdateSchema]:
        return CatequizandoUpdateSchema

    @property
    def response_schema(self) -> Type[CatequizandoResponseSchema]:
        return CatequizandoResponseSchema

    @property
    def accion_escritura(self) -> Accion:
        return Accion.GESTIONAR_CATALOGO

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """Asigna la parroquia del usuario y verifica el documento."""
        if not self.politica.es_admin or not data.get('parroquia_id'):
            data['parroquia_id'] = data.get('parroquia_id') or self.politica.parroquia_id

        if data.get('parroquia_id'):
            self._find(Parroquia, data['parroquia_id'], 'Parroquia')
            self.politica.exigir_parroquia(data['parroquia_id'])

        self._verificar_documento(data['documento_identidad'])
        return data

    def _before_update(self, instance: Catequizando, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        documento = data.get('documento_identidad')
        if documento and documento != instance.documento_identidad:
            self._verificar_documento(documento)

        if 'parroquia_id' in data and data['parroquia_id'] != instance.parroquia_id:
            self.politica.exigir_parroquia(data['parroquia_id'])
        return data

    def _verificar_documento(self, documento: str) -> None:
        existe = self.db.query(Catequizando).filter(Catequizando.documento_identidad == documento).first()
        if existe:
            raise DuplicateRecordError(
                'catequizando', f"Ya existe un catequizando con documento '{documento}'"
            )

    def buscar(self, texto: str) -> List[Dict[str, Any]]:
        """Busca por nombres, apellidos o documento dentro del alcance del usuario."""
        termino = f"%{texto}%"
        query = self._build_base_query().filter(
            or_(
                Catequizando.nombres.ilike(termino),
                Catequizando.apellidos.ilike(termino),
                Catequizando.documento_identidad.ilike(termino)
            )
        )
        return [self._serialize_response(c) for c in query.order_by(Catequizando.apellidos).limit(50).all()]

    def get_historial(self, catequizando_id: int) -> Dict[str, Any]:
        """Catequizando con el resumen de sus inscripciones."""
        catequizando = self._get_instance_by_id(catequizando_id)
        inscripciones = self.db.query(Inscripcion).filter(
            Inscripcion.catequizando_id == catequizando_id
        ).order_by(Inscripcion.fecha_inscripcion.desc()).all()

        return {
            'catequizando': self._serialize_response(catequizando),
            'inscripciones': [{
                'id': i.id,
                'grupo_id': i.grupo_id,
                'grupo': i.grupo.nombre if i.grupo else None,
                'periodo': i.grupo.periodo if i.grupo else None,
                'estado': i.estado.value,
                'nota_final': i.nota_final,
                'aprobado': i.aprobado,
                'porcentaje_asistencia': i.porcentaje_asistencia
            } for i in inscripciones]
        }
