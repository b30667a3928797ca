"""
Modelo de Asistencia para el sistema de catequesis.
Un registro por inscripción y día calendario.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.exceptions import ValidationError
from app.models.base_model import BaseModel, EnumType
from app.models.catequesis.inscripcion_model import Inscripcion
from app.utils.constants import (
    MOTIVOS_JUSTIFICADOS, Comportamiento, MetodoRegistro, MotivoAusencia, NivelParticipacion,
    TipoClase, TipoNotificacion, TipoObservacionAsistencia
)
from app.utils.date_utils import get_current_date, get_current_datetime, minutos_entre

logger = logging.getLogger(__name__)


class Asistencia(BaseModel):
    """Asistencia de un catequizando a una clase."""

    __tablename__ = 'asistencias'
    __table_args__ = (
        UniqueConstraint('inscripcion_id', 'fecha', name='uq_asistencia_inscripcion_fecha'),
    )

    inscripcion_id: Mapped[int] = mapped_column(ForeignKey('inscripciones.id'), nullable=False, index=True)
    fecha: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    asistio: Mapped[bool] = mapped_column(Boolean, nullable=False)
    tipo_clase: Mapped[TipoClase] = mapped_column(EnumType(TipoClase), default=TipoClase.REGULAR, nullable=False)
    tema: Mapped[Optional[str]] = mapped_column(String(200))

    # Detalles de presencia
    hora_llegada: Mapped[Optional[str]] = mapped_column(String(5))
    hora_salida: Mapped[Optional[str]] = mapped_column(String(5))
    llegada_tarde: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    salida_temprana: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    motivo_ausencia: Mapped[Optional[MotivoAusencia]] = mapped_column(EnumType(MotivoAusencia))
    ausencia_justificada: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Participación
    participo: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    nivel_participacion: Mapped[Optional[NivelParticipacion]] = mapped_column(EnumType(NivelParticipacion))
    actividades: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    comportamiento: Mapped[Comportamiento] = mapped_column(
        EnumType(Comportamiento), default=Comportamiento.BUENO, nullable=False
    )

    observaciones: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    tareas: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Notificaciones
    ausencia_notificada: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fecha_notificacion_ausencia: Mapped[Optional[datetime]] = mapped_column(DateTime)
    recordatorio_enviado: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fecha_recordatorio: Mapped[Optional[datetime]] = mapped_column(DateTime)

    registrado_por_id: Mapped[Optional[int]] = mapped_column(ForeignKey('usuarios.id'))
    metodo_registro: Mapped[MetodoRegistro] = mapped_column(
        EnumType(MetodoRegistro), default=MetodoRegistro.MANUAL, nullable=False
    )

    inscripcion: Mapped[Inscripcion] = relationship(Inscripcion)

    def validar(self) -> None:
        """
        Valida las reglas del registro antes de guardarlo.

        Raises:
            ValidationError: si alguna regla no se cumple
        """
        if self.tipo_clase in (None, TipoClase.REGULAR) and self.fecha > get_current_date():
            raise ValidationError("No se puede registrar asistencia futura para clases regulares", 'fecha')

        duracion = minutos_entre(self.hora_llegada, self.hora_salida)
        if duracion is not None and duracion <= 0:
            raise ValidationError("La hora de salida debe ser posterior a la hora de llegada", 'hora_salida')

        if not self.asistio and self.motivo_ausencia is None:
            raise ValidationError("El motivo de ausencia es requerido cuando no asistió", 'motivo_ausencia')

        if self.participo and self.nivel_participacion is None:
            raise ValidationError("El nivel de participación es requerido si participó", 'nivel_participacion')

    def justificacion_por_defecto(self) -> bool:
        """Asistió, o faltó por enfermedad, viaje o compromiso familiar."""
        return bool(self.asistio) or self.motivo_ausencia in MOTIVOS_JUSTIFICADOS

    @property
    def duracion_presencia(self) -> Optional[int]:
        """Minutos entre llegada y salida."""
        if not self.asistio:
            return None
        return minutos_entre(self.hora_llegada, self.hora_salida)

    @property
    def es_ausencia_justificada(self) -> bool:
        return not self.asistio and self.ausencia_justificada

    @property
    def resumen_participacion(self) -> Dict[str, Any]:
        actividades = self.actividades or []
        return {
            'participo': self.participo,
            'nivel': self.nivel_participacion.value if self.nivel_participacion else None,
            'actividades_realizadas': len(actividades),
            'actividades_completadas': len([a for a in actividades if a.get('completada')]),
            'comportamiento': self.comportamiento.value if self.comportamiento else None
        }

    def agregar_observacion(
        self,
        contenido: str,
        tipo: TipoObservacionAsistencia = TipoObservacionAsistencia.GENERAL,
        usuario_id: int = None
    ) -> Dict[str, Any]:
        observacion = {
            'fecha': get_current_datetime().isoformat(),
            'usuario_id': usuario_id,
            'tipo': tipo.value,
            'contenido': contenido
        }
        # Reasignar la lista para que SQLAlchemy detecte el cambio
        self.observaciones = list(self.observaciones or []) + [observacion]
        return observacion

    def registrar_tarea(
        self,
        descripcion: str,
        entregada: bool = False,
        calificacion: float = None,
        observaciones: str = None
    ) -> Dict[str, Any]:
        """La fecha de entrega y la calificación solo se guardan si se entregó."""
        tarea = {
            'descripcion': descripcion,
            'entregada': entregada,
            'fecha_entrega': get_current_datetime().isoformat() if entregada else None,
            'calificacion': calificacion if entregada else None,
            'observaciones': observaciones
        }
        self.tareas = list(self.tareas or []) + [tarea]
        return tarea

    def marcar_notificacion(self, tipo: TipoNotificacion) -> None:
        ahora = get_current_datetime()
        if tipo == TipoNotificacion.AUSENCIA:
            self.ausencia_notificada = True
            self.fecha_notificacion_ausencia = ahora
        else:
            self.recordatorio_enviado = True
            self.fecha_recordatorio = ahora

    def __repr__(self) -> str:
        return f"<Asistencia(id={self.id}, inscripcion={self.inscripcion_id}, fecha={self.fecha}, asistio={self.asistio})>"
