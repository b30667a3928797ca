"""
Servicio de gestión de inscripciones a catequesis.
Maneja el ciclo de vida de la inscripción: creación, estados, aprobación,
pagos, calificaciones, observaciones y recálculo de asistencia.
"""

from typing import Dict, Any, List, Optional, Type
from sqlalchemy import case, func
import logging

from app.services.base_service import BaseService
from app.services.catequesis.grupo_service import GrupoService
from app.services.seguridad.permission_service import Accion, require_permission
from app.models.catequesis.inscripcion_model import Inscripcion, PagoInscripcion
from app.models.catequesis.asistencia_model import Asistencia
from app.models.catequesis.catequizando_model import Catequizando
from app.models.catequesis.grupo_model import Grupo
from app.schemas.catequesis.inscripcion_schema import (
    CalificacionResponseSchema, CalificacionSchema, CambioEstadoSchema, InscripcionCreateSchema,
    InscripcionFiltroSchema, InscripcionResponseSchema, InscripcionUpdateSchema,
    ObservacionResponseSchema, ObservacionSchema, PagoResponseSchema, PagoSchema, TransferenciaSchema
)
from app.core.exceptions import (
    DependentRecordsError, DuplicateRecordError, GroupCapacityError, InactiveGroupError,
    InvalidStateError, ValidationError
)
from app.utils.constants import ConceptoPago, EstadoInscripcion, TipoObservacion
from app.utils.date_utils import get_current_datetime
from app.utils.helpers import calculate_percentage, promedio, redondear, to_json_compatible

logger = logging.getLogger(__name__)


class InscripcionService(BaseService):
    """Servicio para gestión completa de inscripciones."""

    @property
    def model(self) -> Type[Inscripcion]:
        return Inscripcion

    @property
    def create_schema(self) -> Type[InscripcionCreateSchema]:
        return InscripcionCreateSchema

    @property
    def update_schema(self) -> Type[InscripcionUpdateSchema]:
        return InscripcionUpdateSchema

    @property
    def response_schema(self) -> Type[InscripcionResponseSchema]:
        return InscripcionResponseSchema

    @property
    def grupo_service(self) -> GrupoService:
        return GrupoService(self.db, politica=self.politica)

    def _serialize_response(self, instance: Inscripcion) -> Dict[str, Any]:
        """Las observaciones privadas no se muestran a perfiles de consulta."""
        schema = InscripcionResponseSchema(ocultar_privadas=not self.politica.ve_observaciones_privadas)
        return schema.dump(instance)

    # ==========================================
    # CREACIÓN Y CONSULTAS
    # ==========================================

    @require_permission(Accion.CREAR_INSCRIPCION)
    def create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Inscribe un catequizando en un grupo.

        La inscripción queda en estado pendiente y abierta (activa).

        Args:
            data: catequizando_id, grupo_id, cuotas y documentos_presentados

        Returns:
            Dict con la inscripción creada

        Raises:
            RecordNotFoundError: Si el catequizando o el grupo no existen
            InactiveGroupError: Si el grupo no está activo
            DuplicateRecordError: Si ya existe la inscripción
            GroupCapacityError: Si el grupo está lleno
        """
        validated = self._load(InscripcionCreateSchema, data)

        catequizando = self._find(Catequizando, validated['catequizando_id'], 'Catequizando')
        grupo = self._find(Grupo, validated['grupo_id'], 'Grupo')
        self.politica.exigir_parroquia(grupo.parroquia_id)
        self._validar_grupo_destino(grupo, catequizando.id)

        ahora = get_current_datetime()
        inscripcion = Inscripcion(
            catequizando_id=catequizando.id,
            grupo_id=grupo.id,
            parroquia_id=grupo.parroquia_id,
            fecha_inscripcion=ahora,
            fecha_inicio=ahora,
            activa=True,
            estado=EstadoInscripcion.PENDIENTE,
            registrado_por_id=self.politica.usuario_id,
            documentos_presentados=to_json_compatible(validated.get('documentos_presentados') or [])
        )
        self._configurar_cuotas(inscripcion, validated.get('cuotas'))

        self.db.add(inscripcion)
        self._commit()

        logger.info(
            f"Inscripción creada: {inscripcion.id} (catequizando {catequizando.id}, grupo {grupo.id})"
        )
        self.grupo_service.refrescar_estadisticas(grupo.id)
        return self._serialize_response(inscripcion)

    def get_all(self, filters: Dict[str, Any] = None, **kwargs) -> Dict[str, Any]:
        """Lista inscripciones filtrando por estado, activa, grupo, catequizando o parroquia."""
        filtros = self._load(InscripcionFiltroSchema, filters or {})
        return super().get_all(filtros, **kwargs)

    def get_by_grupo(self, grupo_id: int) -> List[Dict[str, Any]]:
        """Inscripciones de un grupo ordenadas por apellido del catequizando."""
        grupo = self._find(Grupo, grupo_id, 'Grupo')
        self.politica.exigir_parroquia(grupo.parroquia_id)

        inscripciones = self.db.query(Inscripcion).join(
            Catequizando, Inscripcion.catequizando_id == Catequizando.id
        ).filter(Inscripcion.grupo_id == grupo_id).order_by(Catequizando.apellidos, Catequizando.nombres).all()
        return [self._serialize_response(i) for i in inscripciones]

    def get_by_catequizando(self, catequizando_id: int) -> List[Dict[str, Any]]:
        """Historial de inscripciones visibles de un catequizando."""
        self._find(Catequizando, catequizando_id, 'Catequizando')
        query = self._build_base_query().filter(Inscripcion.catequizando_id == catequizando_id)
        return [self._serialize_response(i) for i in query.order_by(Inscripcion.fecha_inscripcion.desc()).all()]

    # ==========================================
    # ACTUALIZACIÓN Y ESTADOS
    # ==========================================

    @require_permission(Accion.ACTUALIZAR_INSCRIPCION)
    def update(self, id: int, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        return super().update(id, data, **kwargs)

    def _before_update(self, instance: Inscripcion, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """Aplica cuotas, documentos, validaciones y seguimiento."""
        if 'cuotas' in data:
            self._configurar_cuotas(instance, data.pop('cuotas'))

        if 'documentos_presentados' in data:
            data['documentos_presentados'] = to_json_compatible(data['documentos_presentados'])

        if 'validaciones' in data:
            validaciones = dict(instance.validaciones or {})
            validaciones.update(data['validaciones'])
            data['validaciones'] = validaciones

        campos_seguimiento = ('requiere_atencion_especial', 'motivo_atencion', 'responsable_seguimiento_id')
        if any(campo in data for campo in campos_seguimiento):
            requiere = data.get('requiere_atencion_especial', instance.requiere_atencion_especial)
            motivo = data.get('motivo_atencion', instance.motivo_atencion)
            if requiere and not motivo:
                raise ValidationError(
                    "El motivo de atención es requerido si requiere atención especial", 'motivo_atencion'
                )
            data['ultima_revision'] = get_current_datetime()

        return data

    @require_permission(Accion.CAMBIAR_ESTADO_INSCRIPCION)
    def cambiar_estado(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cambia el estado de una inscripción según la tabla de transiciones.

        Raises:
            InvalidStateError: Si la transición no está permitida
            ValidationError: Si falta el motivo para suspender o retirar
        """
        inscripcion = self._get_instance_by_id(id)
        validated = self._load(CambioEstadoSchema, data)

        try:
            inscripcion.cambiar_estado(validated['estado'], validated.get('motivo'), self.politica.usuario_id)
        except (InvalidStateError, ValidationError):
            self.db.rollback()
            raise
        self._commit()

        self.grupo_service.refrescar_estadisticas(inscripcion.grupo_id)
        return self._serialize_response(inscripcion)

    @require_permission(Accion.APROBAR_INSCRIPCION)
    def aprobar(self, id: int) -> Dict[str, Any]:
        """
        Aprobación final: la inscripción pendiente pasa a activa.

        Raises:
            InvalidStateError: Si la inscripción no está pendiente
        """
        inscripcion = self._get_instance_by_id(id)
        inscripcion.aprobar(self.politica.usuario_id)
        self._commit()

        logger.info(f"Inscripción {id} aprobada por usuario {self.politica.usuario_id}")
        self.grupo_service.refrescar_estadisticas(inscripcion.grupo_id)
        return self._serialize_response(inscripcion)

    @require_permission(Accion.ACTUALIZAR_INSCRIPCION)
    def transferir_grupo(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Transfiere una inscripción activa a otro grupo del mismo nivel y parroquia.

        Raises:
            ValidationError: Si el grupo destino es el mismo, de otra parroquia o de otro nivel
            InvalidStateError: Si la inscripción no está activa
            InactiveGroupError, GroupCapacityError, DuplicateRecordError: según el grupo destino
        """
        inscripcion = self._get_instance_by_id(id)
        validated = self._load(TransferenciaSchema, data)

        if inscripcion.estado != EstadoInscripcion.ACTIVA:
            raise InvalidStateError('La inscripción', inscripcion.estado.value, 'transferida')

        grupo_anterior_id = inscripcion.grupo_id
        if validated['grupo_id'] == grupo_anterior_id:
            raise ValidationError("El grupo destino es el mismo grupo actual", 'grupo_id')

        destino = self._find(Grupo, validated['grupo_id'], 'Grupo')
        if destino.parroquia_id != inscripcion.parroquia_id:
            raise ValidationError("El grupo destino debe pertenecer a la misma parroquia", 'grupo_id')
        if destino.nivel_id != inscripcion.grupo.nivel_id:
            raise ValidationError("El nuevo grupo debe ser del mismo nivel", 'grupo_id')
        self._validar_grupo_destino(destino, inscripcion.catequizando_id)

        inscripcion.grupo = destino
        inscripcion.agregar_observacion(
            f"Transferida del grupo {grupo_anterior_id} al grupo {destino.id}. Motivo: {validated['motivo']}",
            self.politica.usuario_id,
            TipoObservacion.ADMINISTRATIVA
        )
        self._commit()

        logger.info(f"Inscripción {id} transferida: grupo {grupo_anterior_id} -> {destino.id}")
        self.grupo_service.refrescar_estadisticas(grupo_anterior_id)
        self.grupo_service.refrescar_estadisticas(destino.id)
        return self._serialize_response(inscripcion)

    @require_permission(Accion.ELIMINAR_INSCRIPCION)
    def delete(self, id: int, **kwargs) -> bool:
        """
        Elimina una inscripción sin asistencias registradas.

        Raises:
            DependentRecordsError: Si tiene asistencias
        """
        inscripcion = self._get_instance_by_id(id)

        asistencias = self.db.query(Asistencia).filter(Asistencia.inscripcion_id == id).count()
        if asistencias:
            raise DependentRecordsError('la inscripción', 'asistencia', asistencias)

        grupo_id = inscripcion.grupo_id
        self.db.delete(inscripcion)
        self._commit()

        logger.info(f"Inscripción eliminada: {id}")
        self.grupo_service.refrescar_estadisticas(grupo_id)
        return True

    # ==========================================
    # PAGOS, CALIFICACIONES Y OBSERVACIONES
    # ==========================================

    @require_permission(Accion.REGISTRAR_PAGO)
    def registrar_pago(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra un pago sobre la inscripción.

        Returns:
            Dict con los pagos y los totales derivados
        """
        inscripcion = self._get_instance_by_id(id)
        validated = self._load(PagoSchema, data)

        inscripcion.registrar_pago(
            validated['concepto'],
            validated['monto'],
            validated['metodo_pago'],
            validated.get('comprobante')
        )
        inscripcion.agregar_observacion(
            f"Pago registrado: {validated['concepto']} - ${validated['monto']:.2f}",
            self.politica.usuario_id,
            TipoObservacion.ADMINISTRATIVA
        )
        self._commit()

        return {
            'pagos': PagoResponseSchema(many=True).dump(inscripcion.pagos),
            **inscripcion.resumen_pagos()
        }

    @require_permission(Accion.REGISTRAR_CALIFICACION)
    def registrar_calificacion(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra una calificación y recalcula la nota final.

        Returns:
            Dict con nota_final, aprobado y calificaciones

        Raises:
            CatequistNotAssignedError: Si un catequista no está asignado al grupo
        """
        inscripcion = self._get_instance_by_id(id)
        self.politica.exigir_asignacion(inscripcion.grupo)
        validated = self._load(CalificacionSchema, data)

        inscripcion.agregar_calificacion(
            validated['concepto'],
            validated['calificacion'],
            validated.get('fecha'),
            validated.get('observaciones')
        )
        self._commit()

        logger.info(f"Calificación registrada en inscripción {id}: nota final {inscripcion.nota_final}")
        return {
            'nota_final': inscripcion.nota_final,
            'aprobado': inscripcion.aprobado,
            'calificaciones': CalificacionResponseSchema(many=True).dump(inscripcion.calificaciones)
        }

    @require_permission(Accion.AGREGAR_OBSERVACION)
    def agregar_observacion(self, id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        inscripcion = self._get_instance_by_id(id)
        self.politica.exigir_asignacion(inscripcion.grupo)
        validated = self._load(ObservacionSchema, data)

        observacion = inscripcion.agregar_observacion(
            validated['contenido'],
            self.politica.usuario_id,
            validated['tipo'],
            validated['privada']
        )
        self._commit()
        return ObservacionResponseSchema().dump(observacion)

    # ==========================================
    # ASISTENCIA
    # ==========================================

    def recalcular_asistencia(self, inscripcion_id: int, commit: bool = True) -> Optional[float]:
        """
        Recalcula el porcentaje de asistencia a partir de los registros.

        Args:
            inscripcion_id: ID de la inscripción
            commit: Confirmar la transacción al terminar

        Returns:
            Porcentaje de asistencia, o None si la inscripción ya no existe
        """
        inscripcion = self.db.get(Inscripcion, inscripcion_id)
        if inscripcion is None:
            logger.warning(f"Recálculo de asistencia de inscripción inexistente: {inscripcion_id}")
            return None

        self.db.flush()
        total, asistidas = self.db.query(
            func.count(Asistencia.id),
            func.coalesce(func.sum(case((Asistencia.asistio.is_(True), 1), else_=0)), 0)
        ).filter(Asistencia.inscripcion_id == inscripcion_id).one()

        porcentaje = inscripcion.actualizar_asistencia(total, asistidas)
        if commit:
            self._commit()
        return porcentaje

    # ==========================================
    # REPORTES
    # ==========================================

    def get_pendientes_pago(self, parroquia_id: int = None) -> List[Dict[str, Any]]:
        """Inscripciones activas con la cuota de inscripción sin pagar."""
        query = self._build_base_query().join(
            PagoInscripcion, PagoInscripcion.inscripcion_id == Inscripcion.id
        ).filter(
            Inscripcion.activa.is_(True),
            PagoInscripcion.tipo == ConceptoPago.INSCRIPCION,
            PagoInscripcion.monto > 0,
            PagoInscripcion.pagado.is_(False)
        )
        if parroquia_id:
            self.politica.exigir_parroquia(parroquia_id)
            query = query.filter(Inscripcion.parroquia_id == parroquia_id)

        return [self._serialize_response(i) for i in query.order_by(Inscripcion.fecha_inscripcion).all()]

    def get_estadisticas(self, parroquia_id: int = None, grupo_id: int = None) -> Dict[str, Any]:
        """
        Estadísticas agregadas de inscripciones.

        Returns:
            Dict con conteos por estado, aprobación, pagos y promedios
        """
        query = self._build_base_query()
        if parroquia_id:
            self.politica.exigir_parroquia(parroquia_id)
            query = query.filter(Inscripcion.parroquia_id == parroquia_id)
        if grupo_id:
            query = query.filter(Inscripcion.grupo_id == grupo_id)

        inscripciones = query.all()
        por_estado = {estado: 0 for estado in EstadoInscripcion}
        for inscripcion in inscripciones:
            por_estado[inscripcion.estado] += 1

        aprobados = len([i for i in inscripciones if i.aprobado is True])
        reprobados = len([i for i in inscripciones if i.aprobado is False])

        return {
            'total': len(inscripciones),
            'pendientes': por_estado[EstadoInscripcion.PENDIENTE],
            'activas': por_estado[EstadoInscripcion.ACTIVA],
            'suspendidas': por_estado[EstadoInscripcion.SUSPENDIDA],
            'completadas': por_estado[EstadoInscripcion.COMPLETADA],
            'retiradas': por_estado[EstadoInscripcion.RETIRADA],
            'aprobados': aprobados,
            'reprobados': reprobados,
            'pagos_pendientes': len([i for i in inscripciones if not i.pagada_completa]),
            'promedio_asistencia': promedio(i.porcentaje_asistencia for i in inscripciones) or 0,
            'promedio_nota': promedio(i.nota_final for i in inscripciones) or 0,
            'tasa_aprobacion': calculate_percentage(aprobados, aprobados + reprobados)
        }

    # ==========================================
    # MÉTODOS AUXILIARES
    # ==========================================

    def _validar_grupo_destino(self, grupo: Grupo, catequizando_id: int) -> None:
        """Grupo activo, sin inscripción previa del catequizando y con cupo."""
        if not grupo.activo:
            raise InactiveGroupError(grupo.id)

        existente = self.db.query(Inscripcion).filter(
            Inscripcion.catequizando_id == catequizando_id,
            Inscripcion.grupo_id == grupo.id
        ).first()
        if existente:
            raise DuplicateRecordError(
                'inscripción', "El catequizando ya tiene una inscripción en este grupo"
            )

        activas = self.db.query(Inscripcion).filter(
            Inscripcion.grupo_id == grupo.id, Inscripcion.activa.is_(True)
        ).count()
        if activas >= grupo.capacidad_maxima:
            raise GroupCapacityError(grupo.id, activas, grupo.capacidad_maxima)

    def _configurar_cuotas(self, inscripcion: Inscripcion, cuotas: Optional[Dict[str, Any]]) -> None:
        for tipo in (ConceptoPago.INSCRIPCION, ConceptoPago.MATERIALES):
            monto = (cuotas or {}).get(tipo.value)
            if monto is not None:
                inscripcion.configurar_cuota(tipo, redondear(monto))
