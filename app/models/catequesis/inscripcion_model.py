"""
Modelo de Inscripción para el sistema de catequesis.
Maneja las inscripciones de catequizandos en grupos de catequesis:
estado, cargos y pagos, evaluación y proceso de aprobación.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

from sqlalchemy import (
    Boolean, DateTime, Float, ForeignKey, JSON, String, Text, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.exceptions import InvalidStateError, ValidationError
from app.models.base_model import BaseModel, EnumType
from app.models.catequesis.catequizando_model import Catequizando
from app.models.catequesis.grupo_model import Grupo
from app.models.parroquias.parroquia_model import Parroquia
from app.models.seguridad.usuario_model import Usuario
from app.utils.constants import (
    CRITERIOS_VALIDACION, ESTADOS_CIERRE, ESTADOS_CON_MOTIVO, TRANSICIONES_INSCRIPCION,
    ConceptoPago, EstadoInscripcion, EvaluacionConstants, MetodoPago, TipoObservacion
)
from app.utils.date_utils import dias_entre, get_current_datetime
from app.utils.helpers import promedio, calculate_percentage

logger = logging.getLogger(__name__)


class PagoInscripcion(BaseModel):
    """
    Cargo de una inscripción.

    Hay a lo sumo un cargo 'inscripcion' y uno 'materiales'; los cargos
    'otro' se acumulan con su propio concepto.
    """

    __tablename__ = 'pagos_inscripcion'

    inscripcion_id: Mapped[int] = mapped_column(ForeignKey('inscripciones.id', ondelete='CASCADE'), nullable=False)
    tipo: Mapped[ConceptoPago] = mapped_column(EnumType(ConceptoPago), nullable=False)
    concepto: Mapped[str] = mapped_column(String(100), nullable=False)
    monto: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    pagado: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fecha_pago: Mapped[Optional[datetime]] = mapped_column(DateTime)
    metodo_pago: Mapped[Optional[MetodoPago]] = mapped_column(EnumType(MetodoPago))
    comprobante: Mapped[Optional[str]] = mapped_column(String(100))


class CalificacionInscripcion(BaseModel):
    """Ítem calificado de la evaluación."""

    __tablename__ = 'calificaciones_inscripcion'

    inscripcion_id: Mapped[int] = mapped_column(ForeignKey('inscripciones.id', ondelete='CASCADE'), nullable=False)
    concepto: Mapped[str] = mapped_column(String(100), nullable=False)
    calificacion: Mapped[float] = mapped_column(Float, nullable=False)
    fecha: Mapped[datetime] = mapped_column(DateTime, default=get_current_datetime, nullable=False)
    observaciones: Mapped[Optional[str]] = mapped_column(String(200))


class ObservacionInscripcion(BaseModel):
    """Observación con fecha, autor y tipo."""

    __tablename__ = 'observaciones_inscripcion'

    inscripcion_id: Mapped[int] = mapped_column(ForeignKey('inscripciones.id', ondelete='CASCADE'), nullable=False)
    fecha: Mapped[datetime] = mapped_column(DateTime, default=get_current_datetime, nullable=False)
    usuario_id: Mapped[Optional[int]] = mapped_column(ForeignKey('usuarios.id'))
    tipo: Mapped[TipoObservacion] = mapped_column(
        EnumType(TipoObservacion), default=TipoObservacion.GENERAL, nullable=False
    )
    contenido: Mapped[str] = mapped_column(Text, nullable=False)
    privada: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Inscripcion(BaseModel):
    """
    Inscripción de un catequizando en un grupo.

    Invariantes:
        - una sola inscripción por (catequizando, grupo)
        - fecha_fin > fecha_inicio cuando ambas existen
        - estados de cierre implican activa = False y fecha_fin
        - aprobado se deriva de nota_final y porcentaje_asistencia
    """

    __tablename__ = 'inscripciones'
    __table_args__ = (
        UniqueConstraint('catequizando_id', 'grupo_id', name='uq_inscripcion_catequizando_grupo'),
    )

    catequizando_id: Mapped[int] = mapped_column(ForeignKey('catequizandos.id'), nullable=False)
    grupo_id: Mapped[int] = mapped_column(ForeignKey('grupos.id'), nullable=False)
    parroquia_id: Mapped[int] = mapped_column(ForeignKey('parroquias.id'), nullable=False)

    fecha_inscripcion: Mapped[datetime] = mapped_column(DateTime, default=get_current_datetime, nullable=False)
    fecha_inicio: Mapped[Optional[datetime]] = mapped_column(DateTime)
    fecha_fin: Mapped[Optional[datetime]] = mapped_column(DateTime)
    activa: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    estado: Mapped[EstadoInscripcion] = mapped_column(
        EnumType(EstadoInscripcion), default=EstadoInscripcion.PENDIENTE, nullable=False
    )
    motivo_estado: Mapped[Optional[str]] = mapped_column(String(200))

    # Evaluación
    nota_final: Mapped[Optional[float]] = mapped_column(Float)
    aprobado: Mapped[Optional[bool]] = mapped_column(Boolean)
    fecha_evaluacion: Mapped[Optional[datetime]] = mapped_column(DateTime)
    total_clases: Mapped[int] = mapped_column(default=0, nullable=False)
    clases_asistidas: Mapped[int] = mapped_column(default=0, nullable=False)
    porcentaje_asistencia: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    # Proceso de inscripción
    registrado_por_id: Mapped[Optional[int]] = mapped_column(ForeignKey('usuarios.id'))
    documentos_presentados: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    validaciones: Mapped[dict] = mapped_column(JSON, nullable=False, default=lambda: {
        criterio: {'realizada': False, 'aprobada': None} for criterio in CRITERIOS_VALIDACION
    })
    aprobada: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    fecha_aprobacion: Mapped[Optional[datetime]] = mapped_column(DateTime)
    aprobada_por_id: Mapped[Optional[int]] = mapped_column(ForeignKey('usuarios.id'))

    # Seguimiento especial
    requiere_atencion_especial: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    motivo_atencion: Mapped[Optional[str]] = mapped_column(String(300))
    responsable_seguimiento_id: Mapped[Optional[int]] = mapped_column(ForeignKey('usuarios.id'))
    ultima_revision: Mapped[Optional[datetime]] = mapped_column(DateTime)

    catequizando: Mapped[Catequizando] = relationship(Catequizando, lazy='joined')
    grupo: Mapped[Grupo] = relationship(Grupo, lazy='joined')
    parroquia: Mapped[Parroquia] = relationship(Parroquia)
    registrado_por: Mapped[Optional[Usuario]] = relationship(Usuario, foreign_keys=[registrado_por_id])
    pagos: Mapped[List[PagoInscripcion]] = relationship(
        PagoInscripcion, cascade='all, delete-orphan', lazy='selectin', order_by=PagoInscripcion.id
    )
    calificaciones: Mapped[List[CalificacionInscripcion]] = relationship(
        CalificacionInscripcion, cascade='all, delete-orphan', lazy='selectin',
        order_by=CalificacionInscripcion.id
    )
    observaciones: Mapped[List[ObservacionInscripcion]] = relationship(
        ObservacionInscripcion, cascade='all, delete-orphan', lazy='selectin',
        order_by=ObservacionInscripcion.id
    )

    # ==========================================
    # PAGOS
    # ==========================================

    def cargo(self, tipo: ConceptoPago) -> Optional[PagoInscripcion]:
        """Cargo fijo ('inscripcion' o 'materiales') si existe."""
        for pago in self.pagos:
            if pago.tipo == tipo:
                return pago
        return None

    @property
    def monto_total(self) -> float:
        return sum(p.monto or 0 for p in self.pagos)

    @property
    def monto_pagado(self) -> float:
        return sum(p.monto or 0 for p in self.pagos if p.pagado)

    @property
    def monto_pendiente(self) -> float:
        # No se acota a cero.
        return self.monto_total - self.monto_pagado

    @property
    def pagada_completa(self) -> bool:
        total = self.monto_total
        return total == 0 or self.monto_pagado >= total

    def configurar_cuota(self, tipo: ConceptoPago, monto: float) -> PagoInscripcion:
        """
        Define el monto de un cargo fijo todavía no pagado.

        Raises:
            ValidationError: si el concepto no es fijo o ya fue pagado
        """
        if tipo == ConceptoPago.OTRO:
            raise ValidationError("Solo se configuran cuotas de inscripción o materiales", 'concepto')

        pago = self.cargo(tipo)
        if pago is None:
            pago = PagoInscripcion(tipo=tipo, concepto=tipo.value, monto=monto, pagado=False)
            self.pagos.append(pago)
        elif pago.pagado:
            raise ValidationError(f"La cuota de {tipo.value} ya fue pagada", 'monto')
        else:
            pago.monto = monto
        return pago

    def registrar_pago(
        self,
        concepto: str,
        monto: float,
        metodo_pago: MetodoPago,
        comprobante: str = None
    ) -> PagoInscripcion:
        """
        Registra un pago.

        Los conceptos fijos sobrescriben su cargo; cualquier otro concepto
        agrega un cargo 'otro' ya pagado.

        Args:
            concepto: 'inscripcion', 'materiales' o texto libre
            monto: Monto pagado
            metodo_pago: Método de pago
            comprobante: Número de comprobante

        Returns:
            PagoInscripcion afectado
        """
        ahora = get_current_datetime()
        tipo = ConceptoPago(concepto) if concepto in ('inscripcion', 'materiales') else ConceptoPago.OTRO

        pago = self.cargo(tipo) if tipo != ConceptoPago.OTRO else None
        if pago is None:
            pago = PagoInscripcion(tipo=tipo, concepto=concepto)
            self.pagos.append(pago)

        pago.monto = monto
        pago.pagado = True
        pago.fecha_pago = ahora
        pago.metodo_pago = metodo_pago
        pago.comprobante = comprobante

        logger.info(f"Pago registrado en inscripción {self.id}: {concepto} - {monto}")
        return pago

    def resumen_pagos(self) -> Dict[str, Any]:
        return {
            'monto_total': self.monto_total,
            'monto_pagado': self.monto_pagado,
            'monto_pendiente': self.monto_pendiente,
            'pagada_completa': self.pagada_completa
        }

    # ==========================================
    # EVALUACIÓN
    # ==========================================

    def agregar_calificacion(
        self,
        concepto: str,
        calificacion: float,
        fecha: datetime = None,
        observaciones: str = None
    ) -> CalificacionInscripcion:
        """Agrega un ítem calificado y recalcula la nota final."""
        if calificacion is None or not 0 <= calificacion <= EvaluacionConstants.NOTA_MAXIMA:
            raise ValidationError("La calificación debe estar entre 0 y 100", 'calificacion')

        item = CalificacionInscripcion(
            concepto=concepto,
            calificacion=calificacion,
            fecha=fecha or get_current_datetime(),
            observaciones=observaciones
        )
        self.calificaciones.append(item)
        self.calcular_nota_final()
        return item

    def calcular_nota_final(self) -> Optional[float]:
        """
        Nota final = media de calificaciones, redondeada a 2 decimales.

        Returns:
            La nota final o None si no hay calificaciones
        """
        nota = promedio(c.calificacion for c in self.calificaciones)
        if nota is not None:
            nota = min(max(nota, 0), EvaluacionConstants.NOTA_MAXIMA)
        self.nota_final = nota
        self.evaluar()
        return nota

    def evaluar(self) -> Optional[bool]:
        """Deriva aprobado a partir de la nota final y la asistencia."""
        if self.nota_final is None:
            self.aprobado = None
            return None

        self.aprobado = (
            self.nota_final >= EvaluacionConstants.NOTA_MINIMA_APROBACION and
            (self.porcentaje_asistencia or 0) >= EvaluacionConstants.ASISTENCIA_MINIMA_APROBACION
        )
        if self.fecha_evaluacion is None:
            self.fecha_evaluacion = get_current_datetime()
        return self.aprobado

    def actualizar_asistencia(self, total_clases: int, clases_asistidas: int) -> float:
        """
        Actualiza los contadores de asistencia y el porcentaje.

        Returns:
            Porcentaje de asistencia (0 si no hay clases)
        """
        self.total_clases = total_clases
        self.clases_asistidas = clases_asistidas
        self.porcentaje_asistencia = calculate_percentage(clases_asistidas, total_clases)
        self.evaluar()
        return self.porcentaje_asistencia

    # ==========================================
    # ESTADO Y PROCESO
    # ==========================================

    def agregar_observacion(
        self,
        contenido: str,
        usuario_id: int = None,
        tipo: TipoObservacion = TipoObservacion.GENERAL,
        privada: bool = False
    ) -> ObservacionInscripcion:
        observacion = ObservacionInscripcion(
            fecha=get_current_datetime(),
            usuario_id=usuario_id,
            tipo=tipo,
            contenido=contenido,
            privada=privada
        )
        self.observaciones.append(observacion)
        return observacion

    def cambiar_estado(
        self,
        nuevo_estado: EstadoInscripcion,
        motivo: str = None,
        usuario_id: int = None
    ) -> EstadoInscripcion:
        """
        Cambia el estado según la tabla de transiciones.

        Args:
            nuevo_estado: Estado destino
            motivo: Motivo (obligatorio para suspendida y retirada)
            usuario_id: Usuario que realiza el cambio

        Returns:
            El estado anterior

        Raises:
            InvalidStateError: si la transición no está permitida
            ValidationError: si falta el motivo requerido
        """
        estado_anterior = self.estado
        if nuevo_estado not in TRANSICIONES_INSCRIPCION[estado_anterior]:
            raise InvalidStateError('La inscripción', estado_anterior.value, nuevo_estado.value)

        if nuevo_estado in ESTADOS_CON_MOTIVO and not (motivo and motivo.strip()):
            raise ValidationError(
                f"El motivo es requerido para el estado '{nuevo_estado.value}'", 'motivo'
            )

        ahora = get_current_datetime()
        self.estado = nuevo_estado
        self.motivo_estado = motivo

        if nuevo_estado in ESTADOS_CIERRE:
            self.activa = False
            self.fecha_fin = ahora

        contenido = f"Estado cambiado de '{estado_anterior.value}' a '{nuevo_estado.value}'"
        if motivo:
            contenido += f". Motivo: {motivo}"
        self.agregar_observacion(contenido, usuario_id, TipoObservacion.ADMINISTRATIVA)

        logger.info(f"Inscripción {self.id}: {estado_anterior.value} -> {nuevo_estado.value}")
        return estado_anterior

    def aprobar(self, usuario_id: int) -> None:
        """
        Aprobación final: pasa de pendiente a activa.

        Raises:
            InvalidStateError: si la inscripción no está pendiente
        """
        if self.estado != EstadoInscripcion.PENDIENTE:
            raise InvalidStateError('La inscripción', self.estado.value, EstadoInscripcion.ACTIVA.value)

        ahora = get_current_datetime()
        self.aprobada = True
        self.fecha_aprobacion = ahora
        self.aprobada_por_id = usuario_id
        self.estado = EstadoInscripcion.ACTIVA
        self.activa = True
        self.fecha_inicio = ahora
        self.agregar_observacion("Inscripción aprobada y activada", usuario_id, TipoObservacion.ADMINISTRATIVA)

    @property
    def dias_inscritos(self) -> int:
        return dias_entre(self.fecha_inscripcion)

    def __repr__(self) -> str:
        return (
            f"<Inscripcion(id={self.id}, catequizando={self.catequizando_id}, "
            f"grupo={self.grupo_id}, estado='{self.estado.value if self.estado else None}')>"
        )
