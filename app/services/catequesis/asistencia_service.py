"""
Servicio de gestión de asistencia a clases de catequesis.
Maneja registro, corrección, seguimiento y estadísticas de asistencia.

Cada escritura recalcula explícitamente el porcentaje de asistencia de la
inscripción afectada dentro de la misma transacción; las estadísticas del
grupo se refrescan después, sin bloquear la operación.
"""

from typing import Dict, Any, Iterable, List, Type
from datetime import date
from sqlalchemy.exc import IntegrityError
import logging

from app.services.base_service import BaseService
from app.services.catequesis.grupo_service import GrupoService
from app.services.catequesis.inscripcion_service import InscripcionService
from app.services.seguridad.permission_service import Accion, require_permission
from app.models.catequesis.asistencia_model import Asistencia
from app.models.catequesis.inscripcion_model import Inscripcion
from app.models.catequesis.catequizando_model import Catequizando
from app.models.catequesis.grupo_model import Grupo
from app.models.parroquias.parroquia_model import Parroquia
from app.schemas.catequesis.asistencia_schema import (
    AsistenciaResponseSchema, AsistenciaUpdateSchema, EstadisticasAsistenciaSchema,
    NotificacionSchema, ObservacionAsistenciaSchema, RegistroAsistenciaSchema,
    RegistroMasivoSchema, TareaSchema
)
from app.core.exceptions import (
    DuplicateAttendanceError, InactiveGroupError, ValidationError
)
from app.utils.constants import MetodoRegistro
from app.utils.date_utils import ventana_notificacion
from app.utils.helpers import calculate_percentage, redondear, to_json_compatible

logger = logging.getLogger(__name__)


class AsistenciaService(BaseService):
    """Servicio para gestión de asistencia."""

    @property
    def model(self) -> Type[Asistencia]:
        return Asistencia

    @property
    def create_schema(self) -> Type[RegistroAsistenciaSchema]:
        return RegistroAsistenciaSchema

    @property
    def update_schema(self) -> Type[AsistenciaUpdateSchema]:
        return AsistenciaUpdateSchema

    @property
    def response_schema(self) -> Type[AsistenciaResponseSchema]:
        return AsistenciaResponseSchema

    @property
    def inscripcion_service(self) -> InscripcionService:
        return InscripcionService(self.db, politica=self.politica)

    @property
    def grupo_service(self) -> GrupoService:
        return GrupoService(self.db, politica=self.politica)

    def _build_base_query(self):
        """Asistencias visibles a través de la parroquia de su inscripción."""
        query = self.db.query(Asistencia).join(Inscripcion, Asistencia.inscripcion_id == Inscripcion.id)
        return self.politica.aplicar_filtro(query, Inscripcion.parroquia_id)

    def _check_scope(self, instance: Asistencia) -> None:
        self.politica.exigir_parroquia(instance.inscripcion.parroquia_id)

    # ==========================================
    # REGISTRO DE ASISTENCIA
    # ==========================================

    @require_permission(Accion.REGISTRAR_ASISTENCIA)
    def create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Registra la asistencia de una inscripción en una fecha.

        Args:
            data: inscripcion_id, fecha, asistio y detalles opcionales

        Returns:
            Dict con la asistencia registrada

        Raises:
            RecordNotFoundError: Si la inscripción no existe
            ParishScopeError: Si la inscripción es de otra parroquia
            CatequistNotAssignedError: Si el catequista no está asignado al grupo
            DuplicateAttendanceError: Si ya hay registro para ese día
            ValidationError: Si los datos no son válidos
        """
        validated = self._load(RegistroAsistenciaSchema, data)

        inscripcion = self._find(Inscripcion, validated['inscripcion_id'], 'Inscripción')
        self.politica.exigir_parroquia(inscripcion.parroquia_id)
        self.politica.exigir_asignacion(inscripcion.grupo)

        self._verificar_duplicados([inscripcion.id], validated['fecha'])

        asistencia = self._nueva_asistencia(validated, MetodoRegistro.MANUAL)
        self._guardar([asistencia])

        logger.info(
            f"Asistencia registrada: inscripción {inscripcion.id}, fecha {asistencia.fecha}, "
            f"asistió={asistencia.asistio}"
        )
        self.grupo_service.refrescar_estadisticas(inscripcion.grupo_id)
        return self._serialize_response(asistencia)

    @require_permission(Accion.REGISTRAR_ASISTENCIA)
    def registrar_grupo(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Registra la asistencia de un grupo completo en una fecha.

        Todo o nada: si alguna inscripción ya tiene registro para el día,
        o no pertenece al grupo, no se guarda ninguna.

        Args:
            data: grupo_id, fecha, tipo_clase, tema y lista de asistencias

        Returns:
            Lista de asistencias registradas
        """
        validated = self._load(RegistroMasivoSchema, data)

        grupo = self._find(Grupo, validated['grupo_id'], 'Grupo')
        self.politica.exigir_parroquia(grupo.parroquia_id)
        self.politica.exigir_asignacion(grupo)
        if not grupo.activo:
            raise InactiveGroupError(grupo.id)

        ids = [item['inscripcion_id'] for item in validated['asistencias']]
        del_grupo = {
            i.id for i in self.db.query(Inscripcion).filter(
                Inscripcion.id.in_(ids), Inscripcion.grupo_id == grupo.id
            )
        }
        ajenas = [i for i in ids if i not in del_grupo]
        if ajenas:
            raise ValidationError(
                "Hay inscripciones que no pertenecen al grupo",
                details={'asistencias': [f"Inscripción {i} no pertenece al grupo {grupo.id}" for i in ajenas]}
            )

        self._verificar_duplicados(ids, validated['fecha'])

        asistencias = []
        for item in validated['asistencias']:
            item.update({
                'fecha': validated['fecha'],
                'tipo_clase': validated['tipo_clase'],
                'tema': validated.get('tema')
            })
            asistencias.append(self._nueva_asistencia(item, MetodoRegistro.LISTA))

        self._guardar(asistencias)

        logger.info(
            f"Asistencia masiva registrada: grupo {grupo.id}, fecha {validated['fecha']}, "
            f"{len(asistencias)} registros"
        )
        self.grupo_service.refrescar_estadisticas(grupo.id)
        return [self._serialize_response(a) for a in asistencias]

    @require_permission(Accion.ACTUALIZAR_ASISTENCIA)
    def update(self, id: int, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Corrige en sitio un registro de asistencia.

        Raises:
            ValidationError: Si el registro resultante no es válido
        """
        asistencia = self._get_instance_by_id(id)
        self.politica.exigir_asignacion(asistencia.inscripcion.grupo)
        validated = self._load(AsistenciaUpdateSchema, data)

        if validated.get('asistio') is True and 'motivo_ausencia' not in validated:
            validated['motivo_ausencia'] = None
        if 'actividades' in validated:
            validated['actividades'] = to_json_compatible(validated['actividades'])

        justificacion = validated.pop('ausencia_justificada', None)
        for key, value in validated.items():
            setattr(asistencia, key, value)

        if justificacion is not None:
            asistencia.ausencia_justificada = justificacion
        elif 'asistio' in validated or 'motivo_ausencia' in validated:
            asistencia.ausencia_justificada = asistencia.justificacion_por_defecto()

        try:
            asistencia.validar()
        except ValidationError:
            self.db.rollback()
            raise

        self.inscripcion_service.recalcular_asistencia(asistencia.inscripcion_id, commit=False)
        self._commit()

        logger.info(f"Asistencia actualizada: {id}")
        self.grupo_service.refrescar_estadisticas(asistencia.inscripcion.grupo_id)
        return self._serialize_response(asistencia)

    @require_permission(Accion.ELIMINAR_ASISTENCIA)
    def delete(self, id: int, **kwargs) -> bool:
        """Elimina un registro y recalcula la inscripción."""
        asistencia = self._get_instance_by_id(id)
        inscripcion_id = asistencia.inscripcion_id
        grupo_id = asistencia.inscripcion.grupo_id

        self.db.delete(asistencia)
        self.inscripcion_service.recalcular_asistencia(inscripcion_id, commit=False)
        self._commit()

        logger.info(f"Asistencia eliminada: {id}")
        self.grupo_service.refrescar_estadisticas(grupo_id)
        return True

    # ==========================================
    # SEGUIMIENTO
    # ==========================================

    @require_permission(Accion.AGREGAR_OBSERVACION)
    def agregar_observacion(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        asistencia = self._get_instance_by_id(id)
        self.politica.exigir_asignacion(asistencia.inscripcion.grupo)
        validated = self._load(ObservacionAsistenciaSchema, data)

        asistencia.agregar_observacion(validated['contenido'], validated['tipo'], self.politica.usuario_id)
        self._commit()
        return self._serialize_response(asistencia)

    @require_permission(Accion.ACTUALIZAR_ASISTENCIA)
    def registrar_tarea(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """La fecha de entrega y la calificación solo se guardan si la tarea fue entregada."""
        asistencia = self._get_instance_by_id(id)
        self.politica.exigir_asignacion(asistencia.inscripcion.grupo)
        validated = self._load(TareaSchema, data)

        asistencia.registrar_tarea(
            validated['descripcion'],
            validated['entregada'],
            validated.get('calificacion'),
            validated.get('observaciones')
        )
        self._commit()
        return self._serialize_response(asistencia)

    @require_permission(Accion.GESTIONAR_NOTIFICACIONES)
    def marcar_notificacion(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        asistencia = self._get_instance_by_id(id)
        validated = self._load(NotificacionSchema, data)

        asistencia.marcar_notificacion(validated['tipo'])
        self._commit()

        logger.info(f"Notificación '{validated['tipo'].value}' marcada en asistencia {id}")
        return self._serialize_response(asistencia)

    def get_ausencias_por_notificar(self) -> List[Dict[str, Any]]:
        """
        Ausencias de ayer y hoy que aún no se han notificado.

        Returns:
            Lista de asistencias pendientes de notificación
        """
        desde, hasta = ventana_notificacion()
        query = self._build_base_query().filter(
            Asistencia.asistio.is_(False),
            Asistencia.ausencia_notificada.is_(False),
            Asistencia.fecha >= desde,
            Asistencia.fecha <= hasta
        ).order_by(Asistencia.fecha, Asistencia.id)
        return [self._serialize_response(a) for a in query.all()]

    # ==========================================
    # CONSULTAS
    # ==========================================

    def get_by_inscripcion(self, inscripcion_id: int, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        inscripcion = self._find(Inscripcion, inscripcion_id, 'Inscripción')
        self.politica.exigir_parroquia(inscripcion.parroquia_id)
        rango = self._load(EstadisticasAsistenciaSchema, params or {})

        query = self._filtrar_rango(
            self.db.query(Asistencia).filter(Asistencia.inscripcion_id == inscripcion_id), rango
        )
        return [self._serialize_response(a) for a in query.order_by(Asistencia.fecha).all()]

    def get_by_grupo_y_fecha(self, grupo_id: int, fecha: date) -> List[Dict[str, Any]]:
        grupo = self._find(Grupo, grupo_id, 'Grupo')
        self.politica.exigir_parroquia(grupo.parroquia_id)

        asistencias = self.db.query(Asistencia).join(
            Inscripcion, Asistencia.inscripcion_id == Inscripcion.id
        ).join(
            Catequizando, Inscripcion.catequizando_id == Catequizando.id
        ).filter(
            Inscripcion.grupo_id == grupo_id,
            Asistencia.fecha == fecha
        ).order_by(Catequizando.apellidos, Catequizando.nombres).all()
        return [self._serialize_response(a) for a in asistencias]

    def get_estadisticas_grupo(self, grupo_id: int, params: Dict[str, Any] = None) -> Dict[str, Any]:
        """
        Estadísticas de asistencia de un grupo en un rango de fechas opcional.

        Returns:
            Dict con totales, porcentaje y promedio de asistentes por clase
        """
        grupo = self._find(Grupo, grupo_id, 'Grupo')
        self.politica.exigir_parroquia(grupo.parroquia_id)
        rango = self._load(EstadisticasAsistenciaSchema, params or {})

        query = self.db.query(Asistencia).join(
            Inscripcion, Asistencia.inscripcion_id == Inscripcion.id
        ).filter(Inscripcion.grupo_id == grupo_id)
        estadisticas = self._agregar(self._filtrar_rango(query, rango).all())
        estadisticas['grupo_id'] = grupo_id
        return estadisticas

    def get_estadisticas_parroquia(self, parroquia_id: int, params: Dict[str, Any] = None) -> Dict[str, Any]:
        self._find(Parroquia, parroquia_id, 'Parroquia')
        self.politica.exigir_parroquia(parroquia_id)
        rango = self._load(EstadisticasAsistenciaSchema, params or {})

        query = self.db.query(Asistencia).join(
            Inscripcion, Asistencia.inscripcion_id == Inscripcion.id
        ).filter(Inscripcion.parroquia_id == parroquia_id)
        if rango.get('grupo_id'):
            query = query.filter(Inscripcion.grupo_id == rango['grupo_id'])

        estadisticas = self._agregar(self._filtrar_rango(query, rango).all())
        estadisticas['parroquia_id'] = parroquia_id
        return estadisticas

    def get_reporte(self, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        """
        Reporte por catequizando, ordenado por apellido.

        Args:
            params: grupo_id, fecha_desde y fecha_hasta opcionales

        Returns:
            Una fila por catequizando con sus totales de asistencia
        """
        filtros = self._load(EstadisticasAsistenciaSchema, params or {})
        query = self._build_base_query()
        if filtros.get('grupo_id'):
            query = query.filter(Inscripcion.grupo_id == filtros['grupo_id'])
        asistencias = self._filtrar_rango(query, filtros).all()

        filas: Dict[int, Dict[str, Any]] = {}
        for asistencia in asistencias:
            catequizando = asistencia.inscripcion.catequizando
            fila = filas.setdefault(catequizando.id, {
                'catequizando_id': catequizando.id,
                'nombres': catequizando.nombres,
                'apellidos': catequizando.apellidos,
                'total_clases': 0,
                'asistencias': 0,
                'ausencias': 0,
                'ausencias_justificadas': 0,
                'llegadas_tarde': 0
            })
            fila['total_clases'] += 1
            if asistencia.asistio:
                fila['asistencias'] += 1
            else:
                fila['ausencias'] += 1
                if asistencia.ausencia_justificada:
                    fila['ausencias_justificadas'] += 1
            if asistencia.llegada_tarde:
                fila['llegadas_tarde'] += 1

        reporte = sorted(filas.values(), key=lambda f: (f['apellidos'], f['nombres']))
        for fila in reporte:
            fila['porcentaje_asistencia'] = calculate_percentage(fila['asistencias'], fila['total_clases'])
        return reporte

    # ==========================================
    # MÉTODOS AUXILIARES
    # ==========================================

    def _nueva_asistencia(self, datos: Dict[str, Any], metodo: MetodoRegistro) -> Asistencia:
        """Construye y valida un registro nuevo."""
        asistencia = Asistencia(
            inscripcion_id=datos['inscripcion_id'],
            fecha=datos['fecha'],
            asistio=datos['asistio'],
            tipo_clase=datos['tipo_clase'],
            tema=datos.get('tema'),
            hora_llegada=datos.get('hora_llegada'),
            hora_salida=datos.get('hora_salida'),
            llegada_tarde=datos.get('llegada_tarde', False),
            salida_temprana=datos.get('salida_temprana', False),
            motivo_ausencia=None if datos['asistio'] else datos.get('motivo_ausencia'),
            participo=datos.get('participo', False),
            nivel_participacion=datos.get('nivel_participacion'),
            actividades=to_json_compatible(datos.get('actividades') or []),
            comportamiento=datos['comportamiento'],
            observaciones=[],
            tareas=[],
            registrado_por_id=self.politica.usuario_id,
            metodo_registro=metodo
        )
        justificada = datos.get('ausencia_justificada')
        asistencia.ausencia_justificada = (
            asistencia.justificacion_por_defecto() if justificada is None else justificada
        )
        asistencia.validar()
        return asistencia

    def _verificar_duplicados(self, inscripcion_ids: Iterable[int], fecha: date) -> None:
        existente = self.db.query(Asistencia).filter(
            Asistencia.inscripcion_id.in_(list(inscripcion_ids)),
            Asistencia.fecha == fecha
        ).first()
        if existente:
            raise DuplicateAttendanceError(existente.inscripcion_id, fecha)

    def _guardar(self, asistencias: List[Asistencia]) -> None:
        """
        Inserta los registros y recalcula sus inscripciones en una sola transacción.

        Raises:
            DuplicateAttendanceError: Si otra petición registró el mismo día
        """
        self.db.add_all(asistencias)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            primera = asistencias[0]
            logger.warning(f"Asistencia duplicada detectada al guardar: inscripción {primera.inscripcion_id}")
            raise DuplicateAttendanceError(primera.inscripcion_id, primera.fecha)

        for inscripcion_id in {a.inscripcion_id for a in asistencias}:
            self.inscripcion_service.recalcular_asistencia(inscripcion_id, commit=False)
        self._commit()

    @staticmethod
    def _filtrar_rango(query, rango: Dict[str, Any]):
        if rango.get('fecha_desde'):
            query = query.filter(Asistencia.fecha >= rango['fecha_desde'])
        if rango.get('fecha_hasta'):
            query = query.filter(Asistencia.fecha <= rango['fecha_hasta'])
        return query

    @staticmethod
    def _agregar(asistencias: List[Asistencia]) -> Dict[str, Any]:
        """Totales de un conjunto de registros de asistencia."""
        total = len(asistencias)
        presentes = len([a for a in asistencias if a.asistio])
        fechas = {a.fecha for a in asistencias}

        return {
            'total_registros': total,
            'total_asistencias': presentes,
            'total_ausencias': total - presentes,
            'ausencias_justificadas': len([a for a in asistencias if a.es_ausencia_justificada]),
            'llegadas_tarde': len([a for a in asistencias if a.llegada_tarde]),
            'salidas_tempranas': len([a for a in asistencias if a.salida_temprana]),
            'total_clases': len(fechas),
            'total_catequizandos': len({a.inscripcion.catequizando_id for a in asistencias if a.inscripcion}),
            'porcentaje_asistencia': calculate_percentage(presentes, total),
            'promedio_asistentes_por_clase': redondear(presentes / len(fechas)) if fechas else 0
        }
