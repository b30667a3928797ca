"""
Schemas de parroquia.
"""

from marshmallow import fields, validate

from app.schemas.base_schema import BaseSchema, ResponseBaseSchema, TrimmedString


class ParroquiaCreateSchema(BaseSchema):
    """Schema para creación de parroquias."""

    nombre = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    direccion = TrimmedString(required=True, validate=validate.Length(min=5, max=255))
    ciudad = TrimmedString(allow_none=True, validate=validate.Length(max=100))
    telefono = TrimmedString(allow_none=True, validate=validate.Length(max=20))
    email = fields.Email(allow_none=True)
    parroco = TrimmedString(allow_none=True, validate=validate.Length(max=100))


class ParroquiaUpdateSchema(ParroquiaCreateSchema):
    nombre = TrimmedString(validate=validate.Length(min=2, max=100))
    direccion = TrimmedString(validate=validate.Length(min=5, max=255))
    activa = fields.Boolean()


class ParroquiaResponseSchema(ResponseBaseSchema):
    nombre = fields.String()
    direccion = fields.String()
    ciudad = fields.String(allow_none=True)
    telefono = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    parroco = fields.String(allow_none=True)
    activa = fields.Boolean()
