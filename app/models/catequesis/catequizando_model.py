"""
Modelo de Catequizando para el sistema de catequesis.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import BaseModel
from app.models.parroquias.parroquia_model import Parroquia
from app.utils.helpers import calculate_age

logger = logging.getLogger(__name__)


class Catequizando(BaseModel):
    """Persona que recibe la catequesis."""

    __tablename__ = 'catequizandos'

    nombres: Mapped[str] = mapped_column(String(100), nullable=False)
    apellidos: Mapped[str] = mapped_column(String(100), nullable=False)
    documento_identidad: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    fecha_nacimiento: Mapped[date] = mapped_column(Date, nullable=False)
    genero: Mapped[Optional[str]] = mapped_column(String(1))
    telefono: Mapped[Optional[str]] = mapped_column(String(20))
    nombre_representante: Mapped[Optional[str]] = mapped_column(String(200))
    telefono_representante: Mapped[Optional[str]] = mapped_column(String(20))
    bautizado: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    parroquia_id: Mapped[Optional[int]] = mapped_column(ForeignKey('parroquias.id'))
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    parroquia: Mapped[Optional[Parroquia]] = relationship(Parroquia)

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombres} {self.apellidos}"

    @property
    def edad(self) -> int:
        return calculate_age(self.fecha_nacimiento)

    def __repr__(self) -> str:
        return f"<Catequizando(id={self.id}, nombre='{self.nombre_completo}')>"
