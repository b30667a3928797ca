"""
Schemas de usuario.
"""

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import BaseSchema, EnumField, PositiveInteger, ResponseBaseSchema, TrimmedString
from app.utils.constants import Rol, ValidationConstants


class UsuarioCreateSchema(BaseSchema):
    """Schema para creación de usuarios."""

    username = TrimmedString(
        required=True,
        validate=[
            validate.Length(min=3, max=50),
            validate.Regexp(r'^[a-zA-Z0-9_.]+$', error="Solo letras, números, punto y guion bajo")
        ]
    )
    email = fields.Email(allow_none=True, load_default=None)
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(min=ValidationConstants.MIN_PASSWORD_LENGTH, max=128)
    )
    nombres = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    apellidos = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    rol = EnumField(Rol, required=True)
    parroquia_id = PositiveInteger(allow_none=True, load_default=None)

    def validate_business_rules(self, data):
        if data.get('rol') != Rol.ADMIN and not data.get('parroquia_id'):
            raise ValidationError({'parroquia_id': ["La parroquia es requerida para este perfil"]})


class UsuarioUpdateSchema(BaseSchema):
    email = fields.Email(allow_none=True)
    nombres = TrimmedString(validate=validate.Length(min=2, max=100))
    apellidos = TrimmedString(validate=validate.Length(min=2, max=100))
    rol = EnumField(Rol)
    parroquia_id = PositiveInteger(allow_none=True)
    activo = fields.Boolean()
    password = fields.String(
        load_only=True,
        validate=validate.Length(min=ValidationConstants.MIN_PASSWORD_LENGTH, max=128)
    )


class UsuarioResponseSchema(ResponseBaseSchema):
    username = fields.String()
    email = fields.String(allow_none=True)
    nombres = fields.String()
    apellidos = fields.String()
    nombre_completo = fields.String()
    rol = EnumField(Rol)
    parroquia_id = fields.Integer(allow_none=True)
    activo = fields.Boolean()
    ultimo_acceso = fields.DateTime(allow_none=True)
