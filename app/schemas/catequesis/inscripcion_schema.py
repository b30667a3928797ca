"""
Schemas de inscripción para el sistema de catequesis.
Validan las operaciones sobre inscripciones y dan forma a sus respuestas.
"""

from marshmallow import fields, validate, ValidationError

from app.schemas.base_schema import (
    BaseSchema, Calificacion, EnumField, NonNegativeFloat, PositiveInteger,
    ResponseBaseSchema, TrimmedString
)
from app.utils.constants import (
    ESTADOS_CON_MOTIVO, CRITERIOS_VALIDACION, EstadoInscripcion, MetodoPago, TipoDocumento,
    TipoObservacion, ValidationConstants
)


class CuotasSchema(BaseSchema):
    """Montos de las cuotas fijas."""

    inscripcion = NonNegativeFloat(allow_none=True)
    materiales = NonNegativeFloat(allow_none=True)


class DocumentoPresentadoSchema(BaseSchema):
    tipo = EnumField(TipoDocumento, required=True)
    presentado = fields.Boolean(load_default=True)
    fecha = fields.Date(allow_none=True)


class ValidacionCriterioSchema(BaseSchema):
    realizada = fields.Boolean(load_default=False)
    aprobada = fields.Boolean(allow_none=True, load_default=None)


class InscripcionCreateSchema(BaseSchema):
    """Schema para creación de inscripciones."""

    catequizando_id = PositiveInteger(required=True)
    grupo_id = PositiveInteger(required=True)
    cuotas = fields.Nested(CuotasSchema, load_default=None, allow_none=True)
    documentos_presentados = fields.List(fields.Nested(DocumentoPresentadoSchema), load_default=list)


class InscripcionUpdateSchema(BaseSchema):
    """Campos editables de una inscripción existente."""

    cuotas = fields.Nested(CuotasSchema, allow_none=True)
    documentos_presentados = fields.List(fields.Nested(DocumentoPresentadoSchema))
    validaciones = fields.Dict(
        keys=fields.String(validate=validate.OneOf(CRITERIOS_VALIDACION)),
        values=fields.Nested(ValidacionCriterioSchema)
    )
    requiere_atencion_especial = fields.Boolean()
    motivo_atencion = TrimmedString(allow_none=True, validate=validate.Length(max=300))
    responsable_seguimiento_id = PositiveInteger(allow_none=True)

    def validate_business_rules(self, data):
        if data.get('requiere_atencion_especial') and not data.get('motivo_atencion'):
            raise ValidationError({
                'motivo_atencion': ["El motivo de atención es requerido si requiere atención especial"]
            })


class CambioEstadoSchema(BaseSchema):
    """Schema para cambio de estado."""

    estado = EnumField(EstadoInscripcion, required=True)
    motivo = TrimmedString(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=ValidationConstants.MAX_MOTIVO_ESTADO_LENGTH)
    )

    def validate_business_rules(self, data):
        if data.get('estado') in ESTADOS_CON_MOTIVO and not data.get('motivo'):
            raise ValidationError({'motivo': [f"El motivo es requerido para el estado '{data['estado'].value}'"]})


class PagoSchema(BaseSchema):
    """Schema para registro de pagos."""

    concepto = TrimmedString(
        required=True,
        validate=validate.Length(min=1, max=ValidationConstants.MAX_CONCEPTO_LENGTH)
    )
    monto = NonNegativeFloat(required=True)
    metodo_pago = EnumField(MetodoPago, required=True)
    comprobante = TrimmedString(allow_none=True, load_default=None, validate=validate.Length(max=100))


class CalificacionSchema(BaseSchema):
    """Schema para registrar una calificación."""

    concepto = TrimmedString(
        required=True,
        validate=validate.Length(min=1, max=ValidationConstants.MAX_CONCEPTO_LENGTH)
    )
    calificacion = Calificacion(required=True)
    fecha = fields.DateTime(allow_none=True, load_default=None)
    observaciones = TrimmedString(allow_none=True, load_default=None, validate=validate.Length(max=200))


class ObservacionSchema(BaseSchema):
    """Schema para agregar observaciones."""

    tipo = EnumField(TipoObservacion, load_default=TipoObservacion.GENERAL)
    contenido = TrimmedString(
        required=True,
        validate=validate.Length(min=1, max=ValidationConstants.MAX_OBSERVACION_INSCRIPCION_LENGTH)
    )
    privada = fields.Boolean(load_default=False)


class TransferenciaSchema(BaseSchema):
    """Schema para transferir la inscripción a otro grupo."""

    grupo_id = PositiveInteger(required=True)
    motivo = TrimmedString(required=True, validate=validate.Length(min=1, max=200))


class InscripcionFiltroSchema(BaseSchema):
    """Filtros del listado de inscripciones."""

    estado = EnumField(EstadoInscripcion)
    activa = fields.Boolean()
    grupo_id = PositiveInteger()
    catequizando_id = PositiveInteger()
    parroquia_id = PositiveInteger()


# ==========================================
# RESPUESTAS
# ==========================================

class PagoResponseSchema(ResponseBaseSchema):
    tipo = fields.Function(lambda obj: obj.tipo.value)
    concepto = fields.String()
    monto = fields.Float()
    pagado = fields.Boolean()
    fecha_pago = fields.DateTime(allow_none=True)
    metodo_pago = fields.Function(lambda obj: obj.metodo_pago.value if obj.metodo_pago else None)
    comprobante = fields.String(allow_none=True)


class CalificacionResponseSchema(ResponseBaseSchema):
    concepto = fields.String()
    calificacion = fields.Float()
    fecha = fields.DateTime()
    observaciones = fields.String(allow_none=True)


class ObservacionResponseSchema(ResponseBaseSchema):
    fecha = fields.DateTime()
    usuario_id = fields.Integer(allow_none=True)
    tipo = fields.Function(lambda obj: obj.tipo.value)
    contenido = fields.String()
    privada = fields.Boolean()


class InscripcionResponseSchema(ResponseBaseSchema):
    """Schema de respuesta de inscripciones."""

    catequizando_id = fields.Integer()
    catequizando = fields.Function(lambda obj: {
        'id': obj.catequizando.id,
        'nombre_completo': obj.catequizando.nombre_completo,
        'documento_identidad': obj.catequizando.documento_identidad
    } if obj.catequizando else None)
    grupo_id = fields.Integer()
    grupo = fields.Function(lambda obj: {
        'id': obj.grupo.id,
        'nombre': obj.grupo.nombre,
        'periodo': obj.grupo.periodo
    } if obj.grupo else None)
    parroquia_id = fields.Integer()

    fecha_inscripcion = fields.DateTime()
    fecha_inicio = fields.DateTime(allow_none=True)
    fecha_fin = fields.DateTime(allow_none=True)
    activa = fields.Boolean()
    estado = fields.Function(lambda obj: obj.estado.value)
    motivo_estado = fields.String(allow_none=True)

    pagos = fields.List(fields.Nested(PagoResponseSchema))
    monto_total = fields.Float()
    monto_pagado = fields.Float()
    monto_pendiente = fields.Float()
    pagada_completa = fields.Boolean()

    evaluacion = fields.Method('get_evaluacion')
    proceso = fields.Method('get_proceso')
    seguimiento = fields.Method('get_seguimiento')
    observaciones = fields.Method('get_observaciones')
    dias_inscritos = fields.Integer()

    def __init__(self, *args, ocultar_privadas: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.ocultar_privadas = ocultar_privadas

    def get_evaluacion(self, obj):
        return {
            'calificaciones': CalificacionResponseSchema(many=True).dump(obj.calificaciones),
            'nota_final': obj.nota_final,
            'aprobado': obj.aprobado,
            'fecha_evaluacion': obj.fecha_evaluacion.isoformat() if obj.fecha_evaluacion else None,
            'asistencia': {
                'total_clases': obj.total_clases,
                'clases_asistidas': obj.clases_asistidas,
                'porcentaje_asistencia': obj.porcentaje_asistencia
            }
        }

    def get_proceso(self, obj):
        return {
            'registrado_por_id': obj.registrado_por_id,
            'documentos_presentados': obj.documentos_presentados or [],
            'validaciones': obj.validaciones or {},
            'aprobacion_final': {
                'aprobada': obj.aprobada,
                'fecha_aprobacion': obj.fecha_aprobacion.isoformat() if obj.fecha_aprobacion else None,
                'aprobada_por_id': obj.aprobada_por_id
            }
        }

    def get_seguimiento(self, obj):
        return {
            'requiere_atencion_especial': obj.requiere_atencion_especial,
            'motivo_atencion': obj.motivo_atencion,
            'responsable_id': obj.responsable_seguimiento_id,
            'ultima_revision': obj.ultima_revision.isoformat() if obj.ultima_revision else None
        }

    def get_observaciones(self, obj):
        observaciones = obj.observaciones
        if self.ocultar_privadas:
            observaciones = [o for o in observaciones if not o.privada]
        return ObservacionResponseSchema(many=True).dump(observaciones)
