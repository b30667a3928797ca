"""
Modelo de Nivel de catequesis (etapa curricular).
"""

from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import BaseModel
from app.utils.constants import EvaluacionConstants


class Nivel(BaseModel):
    """
    Nivel de catequesis (Primera Comunión, Confirmación, ...).

    nota_minima, edad_minima y edad_maxima son configuración del nivel;
    la aprobación de una inscripción usa los umbrales fijos de
    EvaluacionConstants.
    """

    __tablename__ = 'niveles'

    nombre: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text)
    orden: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    edad_minima: Mapped[Optional[int]] = mapped_column(Integer)
    edad_maxima: Mapped[Optional[int]] = mapped_column(Integer)
    nota_minima: Mapped[int] = mapped_column(
        Integer, default=EvaluacionConstants.NOTA_MINIMA_APROBACION, nullable=False
    )
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
