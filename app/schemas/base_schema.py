"""
Schema base para el sistema de catequesis.
Proporciona clases base y utilidades comunes para todos los schemas.
"""

import re
from typing import Any, Dict

from marshmallow import EXCLUDE, Schema, fields, validate, ValidationError
from marshmallow.decorators import validates_schema
import logging

logger = logging.getLogger(__name__)

HORA_REGEX = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class BaseField(fields.Field):
    """Campo base personalizado con validaciones comunes."""

    def __init__(self, *args, **kwargs):
        # Configuraciones por defecto
        self.trim_whitespace = kwargs.pop('trim_whitespace', True)
        self.convert_empty_to_none = kwargs.pop('convert_empty_to_none', True)
        super().__init__(*args, **kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        """Deserialización con procesamiento común."""
        if value is None:
            return None

        # Convertir strings vacíos a None si está habilitado
        if self.convert_empty_to_none and isinstance(value, str) and not value.strip():
            return None

        # Limpiar espacios en blanco si está habilitado
        if self.trim_whitespace and isinstance(value, str):
            value = value.strip()

        return super()._deserialize(value, attr, data, **kwargs)


class TrimmedString(BaseField, fields.String):
    """Campo String que automáticamente limpia espacios en blanco."""
    pass


class PositiveInteger(BaseField, fields.Integer):
    """Campo Integer que solo acepta valores positivos."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('validate', validate.Range(min=1))
        super().__init__(*args, **kwargs)


class NonNegativeFloat(BaseField, fields.Float):
    """Monto o puntaje no negativo."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('validate', validate.Range(min=0))
        super().__init__(*args, **kwargs)


class Calificacion(NonNegativeFloat):
    """Puntaje entre 0 y 100."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('validate', validate.Range(min=0, max=100, error="La calificación debe estar entre 0 y 100"))
        super().__init__(*args, **kwargs)


class HoraField(TrimmedString):
    """Hora en formato HH:MM."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('validate', validate.Regexp(HORA_REGEX, error="Formato de hora inválido (HH:MM)"))
        super().__init__(*args, **kwargs)


class EnumField(BaseField, fields.String):
    """Campo para enumeraciones: recibe el valor y entrega el miembro."""

    def __init__(self, enum_class, *args, **kwargs):
        self.enum_class = enum_class
        super().__init__(*args, **kwargs)

    def _deserialize(self, value, attr, data, **kwargs):
        """Convierte string a enum."""
        value = super()._deserialize(value, attr, data, **kwargs)
        if value is not None:
            try:
                return self.enum_class(value)
            except ValueError:
                opciones = ', '.join(e.value for e in self.enum_class)
                raise ValidationError(f"Valor '{value}' no válido. Opciones: {opciones}")
        return value

    def _serialize(self, value, attr, obj, **kwargs):
        """Convierte enum a string."""
        if value is not None:
            return value.value if hasattr(value, 'value') else str(value)
        return value


class BaseSchema(Schema):
    """
    Schema base para todos los schemas del sistema.
    Los campos desconocidos se descartan al cargar.
    """

    class Meta:
        unknown = EXCLUDE
        dateformat = '%Y-%m-%d'
        datetimeformat = 'iso'

    def validate_business_rules(self, data: Dict[str, Any]) -> None:
        """Método para validaciones de reglas de negocio específicas."""
        pass

    @validates_schema
    def validate_schema(self, data, **kwargs):
        """Validación general del schema."""
        self.validate_business_rules(data)


class ResponseBaseSchema(BaseSchema):
    """Campos de auditoría en las respuestas."""

    id = fields.Integer(dump_only=True)
    created_at = fields.DateTime(dump_only=True)
    updated_at = fields.DateTime(dump_only=True)


class PaginationSchema(BaseSchema):
    """Schema para parámetros de paginación."""

    page = PositiveInteger(load_default=1)
    per_page = PositiveInteger(load_default=20, validate=validate.Range(min=1, max=100))
    sort_by = TrimmedString(allow_none=True)
    sort_order = TrimmedString(
        allow_none=True,
        validate=validate.OneOf(['asc', 'desc']),
        load_default='desc'
    )


class RangoFechasSchema(BaseSchema):
    """Rango de fechas opcional para reportes."""

    fecha_desde = fields.Date(allow_none=True, load_default=None)
    fecha_hasta = fields.Date(allow_none=True, load_default=None)

    def validate_business_rules(self, data):
        desde = data.get('fecha_desde')
        hasta = data.get('fecha_hasta')
        if desde and hasta and desde > hasta:
            raise ValidationError({'fecha_desde': ["La fecha inicial no puede ser mayor a la fecha final"]})
