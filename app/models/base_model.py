"""
Modelo base para el sistema de catequesis.
Proporciona funcionalidad común para todos los modelos de datos.
"""

import logging
from datetime import datetime, date
from enum import Enum
from typing import Any, Dict

from sqlalchemy import DateTime, Enum as SAEnum, Integer, inspect
from sqlalchemy.orm import Mapped, mapped_column

from app.database.connection import Base
from app.utils.date_utils import get_current_datetime

logger = logging.getLogger(__name__)


class BaseModel(Base):
    """
    Clase base abstracta para todos los modelos del sistema.
    Agrega clave primaria, auditoría y serialización simple.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=get_current_datetime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=get_current_datetime,
        onupdate=get_current_datetime,
        nullable=False
    )

    # Campos que nunca se serializan
    _hidden_fields = ()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte las columnas del modelo a diccionario.

        Returns:
            Dict con los valores de columnas
        """
        result = {}
        for column in inspect(self).mapper.column_attrs:
            if column.key in self._hidden_fields:
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            result[column.key] = value
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


def EnumType(enum_class, length: int = 30) -> SAEnum:
    """Columna Enum que persiste el valor ('activa') y no el nombre ('ACTIVA')."""
    return SAEnum(
        enum_class,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        validate_strings=True,
        length=length
    )
