"""
Modelo de Parroquia para el sistema de catequesis.
La parroquia es la unidad organizativa que delimita el acceso a los datos.
"""

import logging
from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import BaseModel

logger = logging.getLogger(__name__)


class Parroquia(BaseModel):
    """Parroquia del sistema de catequesis."""

    __tablename__ = 'parroquias'

    nombre: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    direccion: Mapped[str] = mapped_column(String(255), nullable=False)
    ciudad: Mapped[Optional[str]] = mapped_column(String(100))
    telefono: Mapped[Optional[str]] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(100))
    parroco: Mapped[Optional[str]] = mapped_column(String(100))
    activa: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Parroquia(id={self.id}, nombre='{self.nombre}')>"
