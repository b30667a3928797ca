"""
Schemas de catequizando.
"""

from datetime import date

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import BaseSchema, PositiveInteger, ResponseBaseSchema, TrimmedString


class FechaNacimiento(fields.Date):
    """Fecha de nacimiento: no futura."""

    def _deserialize(self, value, attr, data, **kwargs):
        fecha = super()._deserialize(value, attr, data, **kwargs)
        if fecha and fecha > date.today():
            raise ValidationError("La fecha de nacimiento no puede ser futura")
        return fecha


class CatequizandoCreateSchema(BaseSchema):
    """Schema para creación de catequizandos."""

    nombres = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    apellidos = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    documento_identidad = TrimmedString(
        required=True,
        validate=[
            validate.Length(min=5, max=20),
            validate.Regexp(r'^[0-9A-Za-z\-]+$', error="Formato de documento inválido")
        ]
    )
    fecha_nacimiento = FechaNacimiento(required=True)
    genero = TrimmedString(allow_none=True, validate=validate.OneOf(['M', 'F']))
    telefono = TrimmedString(allow_none=True, validate=validate.Length(max=20))
    nombre_representante = TrimmedString(allow_none=True, validate=validate.Length(max=200))
    telefono_representante = TrimmedString(allow_none=True, validate=validate.Length(max=20))
    bautizado = fields.Boolean(load_default=False)
    parroquia_id = PositiveInteger(allow_none=True)


class CatequizandoUpdateSchema(CatequizandoCreateSchema):
    nombres = TrimmedString(validate=validate.Length(min=2, max=100))
    apellidos = TrimmedString(validate=validate.Length(min=2, max=100))
    documento_identidad = TrimmedString(validate=validate.Length(min=5, max=20))
    fecha_nacimiento = FechaNacimiento()
    bautizado = fields.Boolean()
    activo = fields.Boolean()


class CatequizandoResponseSchema(ResponseBaseSchema):
    nombres = fields.String()
    apellidos = fields.String()
    nombre_completo = fields.String()
    documento_identidad = fields.String()
    fecha_nacimiento = fields.Date()
    edad = fields.Integer()
    genero = fields.String(allow_none=True)
    telefono = fields.String(allow_none=True)
    nombre_representante = fields.String(allow_none=True)
    telefono_representante = fields.String(allow_none=True)
    bautizado = fields.Boolean()
    parroquia_id = fields.Integer(allow_none=True)
    activo = fields.Boolean()
