"""
Schemas de asistencia para el sistema de catequesis.
"""

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import (
    BaseSchema, Calificacion, EnumField, HoraField, PositiveInteger, RangoFechasSchema,
    ResponseBaseSchema, TrimmedString
)
from app.utils.constants import (
    Comportamiento, MotivoAusencia, NivelParticipacion, TipoClase, TipoNotificacion,
    TipoObservacionAsistencia, ValidationConstants
)
from app.utils.date_utils import minutos_entre


class ActividadSchema(BaseSchema):
    nombre = TrimmedString(required=True, validate=validate.Length(min=1, max=100))
    completada = fields.Boolean(load_default=False)
    calificacion = Calificacion(allow_none=True, load_default=None)


class DetalleAsistenciaMixin:
    """Validaciones cruzadas compartidas por registro y corrección."""

    def validate_business_rules(self, data):
        errores = {}

        duracion = minutos_entre(data.get('hora_llegada'), data.get('hora_salida'))
        if duracion is not None and duracion <= 0:
            errores['hora_salida'] = ["La hora de salida debe ser posterior a la hora de llegada"]

        if data.get('asistio') is False and not data.get('motivo_ausencia'):
            errores['motivo_ausencia'] = ["El motivo de ausencia es requerido cuando no asistió"]

        if data.get('participo') and not data.get('nivel_participacion'):
            errores['nivel_participacion'] = ["El nivel de participación es requerido si participó"]

        if errores:
            raise ValidationError(errores)


class DetalleAsistenciaSchema(DetalleAsistenciaMixin, BaseSchema):
    """Detalle por catequizando, usado en registros individuales y masivos."""

    asistio = fields.Boolean(required=True)
    hora_llegada = HoraField(allow_none=True, load_default=None)
    hora_salida = HoraField(allow_none=True, load_default=None)
    llegada_tarde = fields.Boolean(load_default=False)
    salida_temprana = fields.Boolean(load_default=False)
    motivo_ausencia = EnumField(MotivoAusencia, allow_none=True, load_default=None)
    ausencia_justificada = fields.Boolean(allow_none=True, load_default=None)
    participo = fields.Boolean(load_default=False)
    nivel_participacion = EnumField(NivelParticipacion, allow_none=True, load_default=None)
    actividades = fields.List(fields.Nested(ActividadSchema), load_default=list)
    comportamiento = EnumField(Comportamiento, load_default=Comportamiento.BUENO)


class RegistroAsistenciaSchema(DetalleAsistenciaSchema):
    """Schema para registrar la asistencia de una inscripción."""

    inscripcion_id = PositiveInteger(required=True)
    fecha = fields.Date(required=True)
    tipo_clase = EnumField(TipoClase, load_default=TipoClase.REGULAR)
    tema = TrimmedString(allow_none=True, load_default=None, validate=validate.Length(max=200))


class RegistroMasivoItemSchema(DetalleAsistenciaSchema):
    inscripcion_id = PositiveInteger(required=True)


class RegistroMasivoSchema(BaseSchema):
    """Schema para registrar la asistencia de todo un grupo en una fecha."""

    grupo_id = PositiveInteger(required=True)
    fecha = fields.Date(required=True)
    tipo_clase = EnumField(TipoClase, load_default=TipoClase.REGULAR)
    tema = TrimmedString(allow_none=True, load_default=None, validate=validate.Length(max=200))
    asistencias = fields.List(
        fields.Nested(RegistroMasivoItemSchema),
        required=True,
        validate=validate.Length(min=1, error="Debe incluir al menos una asistencia")
    )

    def validate_business_rules(self, data):
        ids = [a['inscripcion_id'] for a in data.get('asistencias', [])]
        if len(ids) != len(set(ids)):
            raise ValidationError({'asistencias': ["Hay inscripciones repetidas en la lista"]})


class AsistenciaUpdateSchema(BaseSchema):
    """
    Corrección en sitio de un registro existente.

    Las reglas que combinan campos se revalidan sobre el registro ya
    fusionado (Asistencia.validar).
    """

    asistio = fields.Boolean()
    hora_llegada = HoraField(allow_none=True)
    hora_salida = HoraField(allow_none=True)
    llegada_tarde = fields.Boolean()
    salida_temprana = fields.Boolean()
    motivo_ausencia = EnumField(MotivoAusencia, allow_none=True)
    ausencia_justificada = fields.Boolean(allow_none=True)
    participo = fields.Boolean()
    nivel_participacion = EnumField(NivelParticipacion, allow_none=True)
    actividades = fields.List(fields.Nested(ActividadSchema))
    comportamiento = EnumField(Comportamiento)
    tipo_clase = EnumField(TipoClase)
    tema = TrimmedString(allow_none=True, validate=validate.Length(max=200))


class ObservacionAsistenciaSchema(BaseSchema):
    tipo = EnumField(TipoObservacionAsistencia, load_default=TipoObservacionAsistencia.GENERAL)
    contenido = TrimmedString(
        required=True,
        validate=validate.Length(min=1, max=ValidationConstants.MAX_OBSERVACION_ASISTENCIA_LENGTH)
    )


class TareaSchema(BaseSchema):
    descripcion = TrimmedString(required=True, validate=validate.Length(min=1, max=200))
    entregada = fields.Boolean(load_default=False)
    calificacion = Calificacion(allow_none=True, load_default=None)
    observaciones = TrimmedString(allow_none=True, load_default=None, validate=validate.Length(max=200))


class NotificacionSchema(BaseSchema):
    tipo = EnumField(TipoNotificacion, required=True)


class EstadisticasAsistenciaSchema(RangoFechasSchema):
    """Parámetros de estadísticas y reportes."""

    grupo_id = PositiveInteger(allow_none=True, load_default=None)


# ==========================================
# RESPUESTAS
# ==========================================

def _valor(attr):
    return fields.Function(lambda obj: getattr(obj, attr).value if getattr(obj, attr) is not None else None)


class AsistenciaResponseSchema(ResponseBaseSchema):
    """Schema de respuesta de asistencias."""

    inscripcion_id = fields.Integer()
    catequizando = fields.Function(lambda obj: {
        'id': obj.inscripcion.catequizando.id,
        'nombre_completo': obj.inscripcion.catequizando.nombre_completo
    } if obj.inscripcion and obj.inscripcion.catequizando else None)
    fecha = fields.Date()
    asistio = fields.Boolean()
    tipo_clase = _valor('tipo_clase')
    tema = fields.String(allow_none=True)
    hora_llegada = fields.String(allow_none=True)
    hora_salida = fields.String(allow_none=True)
    llegada_tarde = fields.Boolean()
    salida_temprana = fields.Boolean()
    motivo_ausencia = _valor('motivo_ausencia')
    ausencia_justificada = fields.Boolean()
    participacion = fields.Function(lambda obj: {
        'participo': obj.participo,
        'nivel_participacion': obj.nivel_participacion.value if obj.nivel_participacion else None,
        'actividades': obj.actividades or [],
        'comportamiento': obj.comportamiento.value if obj.comportamiento else None
    })
    observaciones = fields.Raw()
    tareas = fields.Raw()
    notificaciones = fields.Function(lambda obj: {
        'ausencia_notificada': obj.ausencia_notificada,
        'fecha_notificacion_ausencia': (
            obj.fecha_notificacion_ausencia.isoformat() if obj.fecha_notificacion_ausencia else None
        ),
        'recordatorio_enviado': obj.recordatorio_enviado,
        'fecha_recordatorio': obj.fecha_recordatorio.isoformat() if obj.fecha_recordatorio else None
    })
    duracion_presencia = fields.Integer(allow_none=True)
    registrado_por_id = fields.Integer(allow_none=True)
    metodo_registro = _valor('metodo_registro')
