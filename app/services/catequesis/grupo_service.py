"""
Servicio de gestión de grupos de catequesis.
Maneja CRUD de grupos, asignación de catequistas y estadísticas derivadas.
"""

from typing import Dict, Any, Type
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.config.settings import get_config
from app.services.base_service import BaseService
from app.services.seguridad.permission_service import Accion, require_permission
from app.models.catequesis.grupo_model import Grupo, GrupoCatequista
from app.models.catequesis.nivel_model import Nivel
from app.models.catequesis.inscripcion_model import Inscripcion
from app.models.catequesis.asistencia_model import Asistencia
from app.models.parroquias.parroquia_model import Parroquia
from app.models.seguridad.usuario_model import Usuario
from app.schemas.catequesis.grupo_schema import (
    AsignacionCatequistaSchema, GrupoCatequistaResponseSchema, GrupoCreateSchema,
    GrupoResponseSchema, GrupoUpdateSchema
)
from app.core.exceptions import (
    ConflictError, DependentRecordsError, DuplicateRecordError, RecordNotFoundError, ValidationError
)
from app.utils.constants import Rol, RolCatequista
from app.utils.date_utils import get_current_datetime
from app.utils.helpers import promedio, to_json_compatible

logger = logging.getLogger(__name__)

config = get_config()

ROLES_ASIGNABLES = (Rol.CATEQUISTA, Rol.PARROCO, Rol.ADMIN)


class GrupoService(BaseService):
    """Servicio para gestión de grupos de catequesis."""

    @property
    def model(self) -> Type[Grupo]:
        return Grupo

    @property
    def create_schema(self) -> Type[GrupoCreateSchema]:
        return GrupoCreateSchema

    @property
    def update_schema(self) -> Type[GrupoUpdateSchema]:
        return GrupoUpdateSchema

    @property
    def response_schema(self) -> Type[GrupoResponseSchema]:
        return GrupoResponseSchema

    @property
    def accion_escritura(self) -> Accion:
        return Accion.GESTIONAR_CATALOGO

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """Hook pre-creación para validaciones adicionales."""
        if not self.politica.es_admin or not data.get('parroquia_id'):
            data['parroquia_id'] = data.get('parroquia_id') or self.politica.parroquia_id
        if not data.get('parroquia_id'):
            raise ValidationError("La parroquia es requerida", 'parroquia_id')

        self._find(Parroquia, data['parroquia_id'], 'Parroquia')
        self.politica.exigir_parroquia(data['parroquia_id'])

        # Verificar que el nivel existe y está activo
        nivel = self._find(Nivel, data['nivel_id'], 'Nivel')
        if not nivel.activo:
            raise ValidationError("El nivel no está activo", 'nivel_id')

        self._verificar_nombre_unico(data['nombre'], data['parroquia_id'], data['periodo'])

        data['horarios'] = to_json_compatible(data.get('horarios') or [])
        data.setdefault('capacidad_maxima', config.CAPACIDAD_GRUPO_DEFAULT)
        return data

    def _before_update(self, instance: Grupo, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """Hook pre-actualización para validaciones."""
        data.pop('parroquia_id', None)

        if 'nivel_id' in data:
            self._find(Nivel, data['nivel_id'], 'Nivel')

        if 'horarios' in data:
            data['horarios'] = to_json_compatible(data['horarios'])

        nombre = data.get('nombre', instance.nombre)
        periodo = data.get('periodo', instance.periodo)
        if (nombre, periodo) != (instance.nombre, instance.periodo):
            self._verificar_nombre_unico(nombre, instance.parroquia_id, periodo)

        # Validar capacidad
        if 'capacidad_maxima' in data:
            activas = self._contar_activas(instance.id)
            if data['capacidad_maxima'] < activas:
                raise ValidationError(
                    f"La capacidad no puede ser menor a las {activas} inscripciones activas",
                    'capacidad_maxima'
                )

        inicio = data.get('fecha_inicio_clases', instance.fecha_inicio_clases)
        fin = data.get('fecha_fin_clases', instance.fecha_fin_clases)
        if inicio and fin and fin <= inicio:
            raise ValidationError("La fecha de fin debe ser posterior a la de inicio", 'fecha_fin_clases')

        return data

    def delete(self, id: int, **kwargs) -> bool:
        """Desactiva el grupo si no tiene inscripciones activas."""
        activas = self._contar_activas(id)
        if activas:
            raise DependentRecordsError('el grupo', 'inscripciones activas', activas)
        return super().delete(id, **kwargs)

    def _verificar_nombre_unico(self, nombre: str, parroquia_id: int, periodo: str) -> None:
        existe = self.db.query(Grupo).filter(
            Grupo.nombre == nombre,
            Grupo.parroquia_id == parroquia_id,
            Grupo.periodo == periodo
        ).first()
        if existe:
            raise DuplicateRecordError('grupo', f"Ya existe el grupo '{nombre}' en el período {periodo}")

    def _contar_activas(self, grupo_id: int) -> int:
        return self.db.query(Inscripcion).filter(
            Inscripcion.grupo_id == grupo_id, Inscripcion.activa.is_(True)
        ).count()

    # ==========================================
    # CATEQUISTAS DEL GRUPO
    # ==========================================

    @require_permission(Accion.GESTIONAR_CATALOGO)
    def asignar_catequista(self, grupo_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Asigna un catequista a un grupo.

        Args:
            grupo_id: ID del grupo
            data: usuario_id y rol (coordinador, catequista o auxiliar)

        Returns:
            Dict con el grupo actualizado

        Raises:
            ValidationError: Si el usuario no puede ser catequista del grupo
            ConflictError: Si ya hay un coordinador activo o ya está asignado
        """
        grupo = self._get_instance_by_id(grupo_id)
        validated = self._load(AsignacionCatequistaSchema, data)
        usuario = self._validar_catequista(validated['usuario_id'], grupo.parroquia_id)
        rol = validated['rol']

        if rol == RolCatequista.COORDINADOR:
            coordinador = grupo.coordinador_activo()
            if coordinador and coordinador.usuario_id != usuario.id:
                raise ConflictError("El grupo ya tiene un coordinador activo", 'COORDINATOR_EXISTS')

        asignacion = next((c for c in grupo.catequistas if c.usuario_id == usuario.id), None)
        if asignacion is None:
            asignacion = GrupoCatequista(usuario_id=usuario.id, rol=rol, activo=True)
            grupo.catequistas.append(asignacion)
        elif asignacion.activo:
            raise DuplicateRecordError('asignación', "El catequista ya está asignado a este grupo")
        else:
            asignacion.activo = True
            asignacion.rol = rol
            asignacion.fecha_asignacion = get_current_datetime()

        self._commit()
        logger.info(f"Catequista {usuario.id} asignado como {rol.value} al grupo {grupo_id}")
        return self._serialize_response(grupo)

    @require_permission(Accion.GESTIONAR_CATALOGO)
    def remover_catequista(self, grupo_id: int, usuario_id: int) -> Dict[str, Any]:
        """Desactiva la asignación de un catequista."""
        grupo = self._get_instance_by_id(grupo_id)

        asignacion = next((c for c in grupo.catequistas_activos if c.usuario_id == usuario_id), None)
        if asignacion is None:
            raise RecordNotFoundError('Asignación de catequista', 'usuario_id', usuario_id)

        asignacion.activo = False
        self._commit()

        logger.info(f"Catequista {usuario_id} removido del grupo {grupo_id}")
        return self._serialize_response(grupo)

    def get_catequistas(self, grupo_id: int) -> list:
        grupo = self._get_instance_by_id(grupo_id)
        return GrupoCatequistaResponseSchema(many=True).dump(grupo.catequistas_activos)

    def _validar_catequista(self, usuario_id: int, parroquia_id: int) -> Usuario:
        """Valida que el usuario existe y puede ser asignado."""
        usuario = self._find(Usuario, usuario_id, 'Usuario')

        if not usuario.activo:
            raise ValidationError("El catequista no está activo", 'usuario_id')

        if usuario.rol not in ROLES_ASIGNABLES:
            raise ValidationError("El usuario debe tener perfil de catequista", 'usuario_id')

        if usuario.rol != Rol.ADMIN and usuario.parroquia_id != parroquia_id:
            raise ValidationError("El catequista debe pertenecer a la misma parroquia que el grupo", 'usuario_id')

        return usuario

    # ==========================================
    # ESTADÍSTICAS
    # ==========================================

    def actualizar_estadisticas(self, grupo_id: int) -> Dict[str, Any]:
        """
        Recalcula y guarda las estadísticas del grupo.

        Returns:
            Dict con las estadísticas calculadas
        """
        grupo = self._find(Grupo, grupo_id, 'Grupo')

        inscripciones = self.db.query(Inscripcion).filter(Inscripcion.grupo_id == grupo_id).all()
        activas = [i for i in inscripciones if i.activa]

        total_clases = self.db.query(func.count(func.distinct(Asistencia.fecha))).join(
            Inscripcion, Asistencia.inscripcion_id == Inscripcion.id
        ).filter(Inscripcion.grupo_id == grupo_id).scalar() or 0

        grupo.total_inscripciones = len(inscripciones)
        grupo.inscripciones_activas = len(activas)
        grupo.promedio_asistencia = promedio(i.porcentaje_asistencia for i in activas) or 0
        grupo.promedio_edad = promedio(i.catequizando.edad for i in activas if i.catequizando) or 0
        grupo.total_clases_impartidas = total_clases
        grupo.estadisticas_actualizadas_en = get_current_datetime()

        self.db.commit()
        logger.debug(f"Estadísticas del grupo {grupo_id} actualizadas")
        return GrupoResponseSchema(only=('id', 'estadisticas')).dump(grupo)['estadisticas']

    def refrescar_estadisticas(self, grupo_id: int) -> bool:
        """
        Actualiza las estadísticas sin afectar la operación que la invoca.

        La escritura principal ya fue confirmada; un fallo aquí solo se registra.

        Returns:
            True si se actualizaron
        """
        try:
            self.actualizar_estadisticas(grupo_id)
            return True
        except (SQLAlchemyError, RecordNotFoundError) as e:
            self.db.rollback()
            logger.warning(f"No se pudieron actualizar las estadísticas del grupo {grupo_id}: {str(e)}")
            return False

    def get_estadisticas(self, grupo_id: int) -> Dict[str, Any]:
        self._get_instance_by_id(grupo_id)
        return self.actualizar_estadisticas(grupo_id)
