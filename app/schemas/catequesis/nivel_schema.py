"""
Schemas de nivel de catequesis.
"""

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import BaseSchema, PositiveInteger, ResponseBaseSchema, TrimmedString


class NivelCreateSchema(BaseSchema):
    """Schema para creación de niveles."""

    nombre = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    descripcion = TrimmedString(allow_none=True)
    orden = PositiveInteger(load_default=1)
    edad_minima = fields.Integer(allow_none=True, validate=validate.Range(min=4, max=99))
    edad_maxima = fields.Integer(allow_none=True, validate=validate.Range(min=4, max=99))
    nota_minima = fields.Integer(validate=validate.Range(min=0, max=100))

    def validate_business_rules(self, data):
        minima = data.get('edad_minima')
        maxima = data.get('edad_maxima')
        if minima is not None and maxima is not None and minima > maxima:
            raise ValidationError({'edad_maxima': ["La edad máxima debe ser mayor o igual a la mínima"]})


class NivelUpdateSchema(NivelCreateSchema):
    nombre = TrimmedString(validate=validate.Length(min=2, max=100))
    orden = PositiveInteger()
    activo = fields.Boolean()


class NivelResponseSchema(ResponseBaseSchema):
    nombre = fields.String()
    descripcion = fields.String(allow_none=True)
    orden = fields.Integer()
    edad_minima = fields.Integer(allow_none=True)
    edad_maxima = fields.Integer(allow_none=True)
    nota_minima = fields.Integer()
    activo = fields.Boolean()
