"""
Constantes para el Sistema de Catequesis.
Define todas las constantes utilizadas en el sistema.
"""

from enum import Enum


# ===============================================
# CONSTANTES GENERALES DEL SISTEMA
# ===============================================

class SystemConstants:
    """Constantes generales del sistema."""

    SYSTEM_NAME = "Sistema de Catequesis"
    SYSTEM_VERSION = "1.0.0"

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100
    MIN_PAGE_SIZE = 1

    DEFAULT_TIMEZONE = "America/Guayaquil"


class EvaluacionConstants:
    """Umbrales fijos de aprobación."""

    NOTA_MINIMA_APROBACION = 70
    ASISTENCIA_MINIMA_APROBACION = 80
    NOTA_MAXIMA = 100


class ValidationConstants:
    """Constantes para validaciones."""

    MIN_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 100
    MIN_PASSWORD_LENGTH = 6
    MAX_MOTIVO_ESTADO_LENGTH = 200
    MAX_OBSERVACION_INSCRIPCION_LENGTH = 500
    MAX_OBSERVACION_ASISTENCIA_LENGTH = 300
    MAX_CONCEPTO_LENGTH = 100
    MIN_CAPACIDAD_GRUPO = 5
    MAX_CAPACIDAD_GRUPO = 50


# ===============================================
# PERFILES DE USUARIO
# ===============================================

class Rol(Enum):
    """Tipos de perfil de usuario."""
    ADMIN = "admin"
    PARROCO = "parroco"
    SECRETARIA = "secretaria"
    CATEQUISTA = "catequista"
    CONSULTA = "consulta"


class RolCatequista(Enum):
    """Rol de un catequista dentro de un grupo."""
    COORDINADOR = "coordinador"
    CATEQUISTA = "catequista"
    AUXILIAR = "auxiliar"


# ===============================================
# INSCRIPCIONES
# ===============================================

class EstadoInscripcion(Enum):
    """Estados de la inscripción."""
    PENDIENTE = "pendiente"
    ACTIVA = "activa"
    SUSPENDIDA = "suspendida"
    COMPLETADA = "completada"
    RETIRADA = "retirada"


# Estados que cierran la inscripción
ESTADOS_CIERRE = frozenset({
    EstadoInscripcion.SUSPENDIDA,
    EstadoInscripcion.COMPLETADA,
    EstadoInscripcion.RETIRADA,
})

# Estados que exigen motivo
ESTADOS_CON_MOTIVO = frozenset({
    EstadoInscripcion.SUSPENDIDA,
    EstadoInscripcion.RETIRADA,
})

# pendiente -> activa solo mediante la aprobación
TRANSICIONES_INSCRIPCION = {
    EstadoInscripcion.PENDIENTE: frozenset({EstadoInscripcion.RETIRADA}),
    EstadoInscripcion.ACTIVA: frozenset({
        EstadoInscripcion.SUSPENDIDA,
        EstadoInscripcion.COMPLETADA,
        EstadoInscripcion.RETIRADA,
    }),
    EstadoInscripcion.SUSPENDIDA: frozenset(),
    EstadoInscripcion.COMPLETADA: frozenset(),
    EstadoInscripcion.RETIRADA: frozenset(),
}


class ConceptoPago(Enum):
    """Variantes de cargo de una inscripción."""
    INSCRIPCION = "inscripcion"
    MATERIALES = "materiales"
    OTRO = "otro"


class MetodoPago(Enum):
    """Métodos de pago."""
    EFECTIVO = "efectivo"
    TRANSFERENCIA = "transferencia"
    CHEQUE = "cheque"
    TARJETA = "tarjeta"
    OTRO = "otro"


class TipoObservacion(Enum):
    """Tipos de observación de una inscripción."""
    GENERAL = "general"
    ACADEMICA = "academica"
    CONDUCTUAL = "conductual"
    ADMINISTRATIVA = "administrativa"


class TipoDocumento(Enum):
    """Documentos que se presentan en el proceso de inscripción."""
    CERTIFICADO_BAUTISMO = "certificado_bautismo"
    CEDULA_REPRESENTANTE = "cedula_representante"
    FOTO_CATEQUIZANDO = "foto_catequizando"
    AUTORIZACION_MEDICA = "autorizacion_medica"


# Criterios de validación del proceso
CRITERIOS_VALIDACION = ('edad', 'documentos', 'bautismo', 'nivel_anterior')


# ===============================================
# ASISTENCIAS
# ===============================================

class TipoClase(Enum):
    """Tipos de clase."""
    REGULAR = "regular"
    EXTRAORDINARIA = "extraordinaria"
    EXAMEN = "examen"
    RETIRO = "retiro"
    CELEBRACION = "celebracion"
    EVENTO = "evento"


class MotivoAusencia(Enum):
    """Motivos de ausencia."""
    ENFERMEDAD = "enfermedad"
    VIAJE = "viaje"
    COMPROMISO_FAMILIAR = "compromiso_familiar"
    CLIMA = "clima"
    TRANSPORTE = "transporte"
    OTRO = "otro"
    NO_JUSTIFICADA = "no_justificada"


# Motivos que justifican la ausencia por defecto
MOTIVOS_JUSTIFICADOS = frozenset({
    MotivoAusencia.ENFERMEDAD,
    MotivoAusencia.VIAJE,
    MotivoAusencia.COMPROMISO_FAMILIAR,
})


class NivelParticipacion(Enum):
    """Niveles de participación en clase."""
    EXCELENTE = "excelente"
    BUENA = "buena"
    REGULAR = "regular"
    DEFICIENTE = "deficiente"


class Comportamiento(Enum):
    """Calificación de comportamiento."""
    EXCELENTE = "excelente"
    BUENO = "bueno"
    REGULAR = "regular"
    NECESITA_MEJORA = "necesita_mejora"


class MetodoRegistro(Enum):
    """Forma en que se registró la asistencia."""
    MANUAL = "manual"
    QR = "qr"
    LISTA = "lista"
    APP = "app"


class TipoObservacionAsistencia(Enum):
    """Tipos de observación de una asistencia."""
    GENERAL = "general"
    ACADEMICA = "academica"
    CONDUCTUAL = "conductual"
    SALUD = "salud"


class TipoNotificacion(Enum):
    """Notificaciones que se pueden marcar como enviadas."""
    AUSENCIA = "ausencia"
    RECORDATORIO = "recordatorio"


# ===============================================
# GRUPOS
# ===============================================

class EstadoClases(Enum):
    """Estado de las clases de un grupo."""
    PLANIFICACION = "planificacion"
    ACTIVO = "activo"
    SUSPENDIDO = "suspendido"
    FINALIZADO = "finalizado"


class DiaSemana(Enum):
    """Días de la semana."""
    LUNES = "lunes"
    MARTES = "martes"
    MIERCOLES = "miercoles"
    JUEVES = "jueves"
    VIERNES = "viernes"
    SABADO = "sabado"
    DOMINGO = "domingo"
