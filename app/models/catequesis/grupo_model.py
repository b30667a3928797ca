"""
Modelo de Grupo de catequesis.
Un grupo es una instancia de un nivel en una parroquia y un período,
con capacidad limitada y catequistas asignados.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import BaseModel, EnumType
from app.models.catequesis.nivel_model import Nivel
from app.models.parroquias.parroquia_model import Parroquia
from app.models.seguridad.usuario_model import Usuario
from app.utils.constants import EstadoClases, EvaluacionConstants, RolCatequista
from app.utils.date_utils import get_current_datetime

logger = logging.getLogger(__name__)


class GrupoCatequista(BaseModel):
    """Asignación de un catequista a un grupo."""

    __tablename__ = 'grupo_catequistas'
    __table_args__ = (
        UniqueConstraint('grupo_id', 'usuario_id', name='uq_grupo_catequista'),
    )

    grupo_id: Mapped[int] = mapped_column(ForeignKey('grupos.id', ondelete='CASCADE'), nullable=False)
    usuario_id: Mapped[int] = mapped_column(ForeignKey('usuarios.id'), nullable=False)
    rol: Mapped[RolCatequista] = mapped_column(
        EnumType(RolCatequista), default=RolCatequista.CATEQUISTA, nullable=False
    )
    fecha_asignacion: Mapped[datetime] = mapped_column(DateTime, default=get_current_datetime, nullable=False)
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    usuario: Mapped[Usuario] = relationship(Usuario)


class Grupo(BaseModel):
    """Grupo de catequesis."""

    __tablename__ = 'grupos'
    __table_args__ = (
        UniqueConstraint('nombre', 'parroquia_id', 'periodo', name='uq_grupo_nombre_parroquia_periodo'),
    )

    nombre: Mapped[str] = mapped_column(String(100), nullable=False)
    parroquia_id: Mapped[int] = mapped_column(ForeignKey('parroquias.id'), nullable=False)
    nivel_id: Mapped[int] = mapped_column(ForeignKey('niveles.id'), nullable=False)
    periodo: Mapped[str] = mapped_column(String(9), nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text)
    capacidad_maxima: Mapped[int] = mapped_column(Integer, default=25, nullable=False)
    aula: Mapped[Optional[str]] = mapped_column(String(50))
    horarios: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    fecha_inicio_clases: Mapped[Optional[date]] = mapped_column(Date)
    fecha_fin_clases: Mapped[Optional[date]] = mapped_column(Date)
    asistencia_minima: Mapped[int] = mapped_column(
        Integer, default=EvaluacionConstants.ASISTENCIA_MINIMA_APROBACION, nullable=False
    )
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    estado_clases: Mapped[EstadoClases] = mapped_column(
        EnumType(EstadoClases), default=EstadoClases.PLANIFICACION, nullable=False
    )

    # Estadísticas derivadas
    total_inscripciones: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    inscripciones_activas: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    promedio_asistencia: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    promedio_edad: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    total_clases_impartidas: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    estadisticas_actualizadas_en: Mapped[Optional[datetime]] = mapped_column(DateTime)

    parroquia: Mapped[Parroquia] = relationship(Parroquia)
    nivel: Mapped[Nivel] = relationship(Nivel)
    catequistas: Mapped[List[GrupoCatequista]] = relationship(
        GrupoCatequista, cascade='all, delete-orphan', lazy='selectin'
    )

    @property
    def catequistas_activos(self) -> List[GrupoCatequista]:
        return [c for c in self.catequistas if c.activo]

    def tiene_catequista_activo(self, usuario_id: int) -> bool:
        """Indica si el usuario es catequista activo del grupo."""
        return any(c.usuario_id == usuario_id for c in self.catequistas_activos)

    def coordinador_activo(self) -> Optional[GrupoCatequista]:
        for asignacion in self.catequistas_activos:
            if asignacion.rol == RolCatequista.COORDINADOR:
                return asignacion
        return None

    def __repr__(self) -> str:
        return f"<Grupo(id={self.id}, nombre='{self.nombre}', periodo='{self.periodo}')>"
