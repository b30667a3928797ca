"""
Schemas de autenticación.
"""

from marshmallow import fields, validate

from app.schemas.base_schema import BaseSchema, TrimmedString


class LoginSchema(BaseSchema):
    """Credenciales de acceso."""

    username = TrimmedString(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))
