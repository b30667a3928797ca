"""
Modelo de Usuario para el sistema de catequesis.
Cada usuario tiene un único perfil y, salvo el administrador, una parroquia.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base_model import BaseModel, EnumType
from app.models.parroquias.parroquia_model import Parroquia
from app.utils.constants import Rol

logger = logging.getLogger(__name__)


class Usuario(BaseModel):
    """Usuario del sistema."""

    __tablename__ = 'usuarios'

    _hidden_fields = ('password_hash',)

    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nombres: Mapped[str] = mapped_column(String(100), nullable=False)
    apellidos: Mapped[str] = mapped_column(String(100), nullable=False)
    rol: Mapped[Rol] = mapped_column(EnumType(Rol), nullable=False)
    parroquia_id: Mapped[Optional[int]] = mapped_column(ForeignKey('parroquias.id'))
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    ultimo_acceso: Mapped[Optional[datetime]] = mapped_column(DateTime)

    parroquia: Mapped[Optional[Parroquia]] = relationship(Parroquia)

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombres} {self.apellidos}"

    def to_token_claims(self) -> Dict[str, Any]:
        """Datos del usuario que viajan en el token de acceso."""
        return {
            'sub': str(self.id),
            'username': self.username,
            'rol': self.rol.value,
            'parroquia_id': self.parroquia_id
        }

    def __repr__(self) -> str:
        return f"<Usuario(id={self.id}, username='{self.username}', rol='{self.rol.value}')>"
