"""
Schemas de grupo de catequesis.
"""

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import (
    BaseSchema, EnumField, HoraField, PositiveInteger, ResponseBaseSchema, TrimmedString
)
from app.utils.constants import DiaSemana, EstadoClases, RolCatequista, ValidationConstants
from app.utils.date_utils import minutos_entre

PERIODO_REGEX = r'^\d{4}(-\d{4})?$'


class HorarioSchema(BaseSchema):
    dia_semana = EnumField(DiaSemana, required=True)
    hora_inicio = HoraField(required=True)
    hora_fin = HoraField(required=True)

    def validate_business_rules(self, data):
        duracion = minutos_entre(data.get('hora_inicio'), data.get('hora_fin'))
        if duracion is not None and duracion <= 0:
            raise ValidationError({'hora_fin': ["La hora de fin debe ser posterior a la de inicio"]})


class GrupoCreateSchema(BaseSchema):
    """Schema para creación de grupos."""

    nombre = TrimmedString(required=True, validate=validate.Length(min=2, max=100))
    parroquia_id = PositiveInteger(allow_none=True)
    nivel_id = PositiveInteger(required=True)
    periodo = TrimmedString(
        required=True,
        validate=validate.Regexp(PERIODO_REGEX, error="El período debe ser YYYY o YYYY-YYYY")
    )
    descripcion = TrimmedString(allow_none=True)
    capacidad_maxima = fields.Integer(
        validate=validate.Range(
            min=ValidationConstants.MIN_CAPACIDAD_GRUPO,
            max=ValidationConstants.MAX_CAPACIDAD_GRUPO
        )
    )
    aula = TrimmedString(allow_none=True, validate=validate.Length(max=50))
    horarios = fields.List(fields.Nested(HorarioSchema), load_default=list)
    fecha_inicio_clases = fields.Date(allow_none=True)
    fecha_fin_clases = fields.Date(allow_none=True)
    asistencia_minima = fields.Integer(validate=validate.Range(min=50, max=100))

    def validate_business_rules(self, data):
        inicio = data.get('fecha_inicio_clases')
        fin = data.get('fecha_fin_clases')
        if inicio and fin and fin <= inicio:
            raise ValidationError({'fecha_fin_clases': ["La fecha de fin debe ser posterior a la de inicio"]})


class GrupoUpdateSchema(GrupoCreateSchema):
    nombre = TrimmedString(validate=validate.Length(min=2, max=100))
    nivel_id = PositiveInteger()
    periodo = TrimmedString(validate=validate.Regexp(PERIODO_REGEX, error="El período debe ser YYYY o YYYY-YYYY"))
    horarios = fields.List(fields.Nested(HorarioSchema))
    activo = fields.Boolean()
    estado_clases = EnumField(EstadoClases)


class AsignacionCatequistaSchema(BaseSchema):
    usuario_id = PositiveInteger(required=True)
    rol = EnumField(RolCatequista, load_default=RolCatequista.CATEQUISTA)


class GrupoCatequistaResponseSchema(BaseSchema):
    usuario_id = fields.Integer()
    nombre = fields.Function(lambda obj: obj.usuario.nombre_completo if obj.usuario else None)
    rol = EnumField(RolCatequista)
    fecha_asignacion = fields.DateTime()
    activo = fields.Boolean()


class GrupoResponseSchema(ResponseBaseSchema):
    nombre = fields.String()
    parroquia_id = fields.Integer()
    nivel_id = fields.Integer()
    nivel = fields.Function(lambda obj: obj.nivel.nombre if obj.nivel else None)
    periodo = fields.String()
    descripcion = fields.String(allow_none=True)
    capacidad_maxima = fields.Integer()
    aula = fields.String(allow_none=True)
    horarios = fields.Raw()
    fecha_inicio_clases = fields.Date(allow_none=True)
    fecha_fin_clases = fields.Date(allow_none=True)
    asistencia_minima = fields.Integer()
    activo = fields.Boolean()
    estado_clases = EnumField(EstadoClases)
    catequistas = fields.List(fields.Nested(GrupoCatequistaResponseSchema))
    estadisticas = fields.Function(lambda obj: {
        'total_inscripciones': obj.total_inscripciones,
        'inscripciones_activas': obj.inscripciones_activas,
        'promedio_asistencia': obj.promedio_asistencia,
        'promedio_edad': obj.promedio_edad,
        'total_clases_impartidas': obj.total_clases_impartidas,
        'ultima_actualizacion': (
            obj.estadisticas_actualizadas_en.isoformat() if obj.estadisticas_actualizadas_en else None
        )
    })
