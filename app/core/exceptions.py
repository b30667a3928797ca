"""
Excepciones personalizadas para el Sistema de Catequesis.
Define todas las excepciones específicas del dominio de negocio.
"""

from typing import Dict, Any


class CatequesisBaseException(Exception):
    """
    Excepción base para todas las excepciones del Sistema de Catequesis.
    """

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.error_code,
            'message': self.message,
            'details': self.details
        }


# ===============================================
# EXCEPCIONES DE VALIDACIÓN
# ===============================================

class ValidationError(CatequesisBaseException):
    """Excepción para errores de validación de datos."""

    def __init__(self, message: str, field: str = None, details: Dict[str, Any] = None):
        if field and not details:
            details = {field: [message]}
        super().__init__(message, 'VALIDATION_ERROR', details, 400)
        self.field = field


# ===============================================
# EXCEPCIONES DE BASE DE DATOS
# ===============================================

class DatabaseError(CatequesisBaseException):
    """Excepción para fallas inesperadas del almacenamiento."""

    def __init__(
        self,
        message: str = "Error interno de base de datos",
        error_code: str = 'DATABASE_ERROR',
        details: Dict[str, Any] = None,
        status_code: int = 500
    ):
        super().__init__(message, error_code, details, status_code)


class RecordNotFoundError(DatabaseError):
    """Excepción para registros no encontrados."""

    def __init__(self, entity: str, identifier: str, value: Any):
        message = f"No se encontró {entity} con {identifier} = '{value}'"
        super().__init__(message, error_code='RECORD_NOT_FOUND', status_code=404)
        self.entity = entity
        self.identifier = identifier
        self.value = value


# ===============================================
# EXCEPCIONES DE CONFLICTO
# ===============================================

class ConflictError(CatequesisBaseException):
    """Excepción base para violaciones de unicidad, capacidad o estado."""

    def __init__(self, message: str, error_code: str = 'CONFLICT', details: Dict[str, Any] = None):
        super().__init__(message, error_code, details, 409)


class DuplicateRecordError(ConflictError):
    """Excepción para registros duplicados."""

    def __init__(self, entity: str, message: str = None):
        super().__init__(message or f"Ya existe un registro de {entity} con esos datos", 'DUPLICATE_RECORD')
        self.entity = entity


class DuplicateAttendanceError(ConflictError):
    """Excepción para asistencia ya registrada en la fecha."""

    def __init__(self, inscripcion_id: int, fecha: Any):
        message = f"Ya existe asistencia registrada para la inscripción {inscripcion_id} en la fecha {fecha}"
        super().__init__(message, 'DUPLICATE_ATTENDANCE', {'inscripcion_id': inscripcion_id, 'fecha': str(fecha)})
        self.inscripcion_id = inscripcion_id
        self.fecha = fecha


class GroupCapacityError(ConflictError):
    """Excepción para capacidad de grupo excedida."""

    def __init__(self, grupo_id: int, current_count: int, max_capacity: int):
        message = f"El grupo {grupo_id} ha alcanzado su capacidad máxima ({current_count}/{max_capacity})"
        super().__init__(message, 'GROUP_CAPACITY_EXCEEDED', {
            'grupo_id': grupo_id,
            'inscritos': current_count,
            'capacidad': max_capacity
        })
        self.grupo_id = grupo_id
        self.current_count = current_count
        self.max_capacity = max_capacity


class InvalidStateError(ConflictError):
    """Excepción para transiciones de estado no permitidas."""

    def __init__(self, entity: str, current_state: str, requested_state: str):
        message = f"{entity} está en estado '{current_state}', no puede pasar a '{requested_state}'"
        super().__init__(message, 'INVALID_STATE_TRANSITION', {
            'estado_actual': current_state,
            'estado_solicitado': requested_state
        })
        self.entity = entity
        self.current_state = current_state
        self.requested_state = requested_state


class DependentRecordsError(ConflictError):
    """Excepción para eliminaciones bloqueadas por registros dependientes."""

    def __init__(self, entity: str, dependent: str, count: int):
        message = f"No se puede eliminar {entity}: tiene {count} registro(s) de {dependent}"
        super().__init__(message, 'DEPENDENT_RECORDS', {'dependientes': dependent, 'cantidad': count})


# ===============================================
# EXCEPCIONES DE AUTENTICACIÓN Y AUTORIZACIÓN
# ===============================================

class AuthenticationError(CatequesisBaseException):
    """Excepción base para errores de autenticación."""

    def __init__(self, message: str = "Error de autenticación"):
        super().__init__(message, 'AUTHENTICATION_ERROR', status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Excepción para credenciales inválidas."""

    def __init__(self, message: str = "Credenciales inválidas"):
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """Excepción para tokens expirados."""

    def __init__(self, message: str = "Token de acceso expirado"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Excepción para tokens inválidos."""

    def __init__(self, message: str = "Token de acceso inválido"):
        super().__init__(message)


class AuthorizationError(CatequesisBaseException):
    """Excepción base para errores de autorización."""

    def __init__(self, message: str = "No tiene permisos para realizar esta acción"):
        super().__init__(message, 'AUTHORIZATION_ERROR', status_code=403)


class InsufficientPermissionsError(AuthorizationError):
    """Excepción para permisos insuficientes."""

    def __init__(self, required_permission: str):
        message = f"Se requiere el permiso '{required_permission}' para realizar esta acción"
        super().__init__(message)
        self.required_permission = required_permission


class ParishScopeError(AuthorizationError):
    """Excepción para accesos fuera de la parroquia del usuario."""

    def __init__(self, message: str = "No tiene acceso a registros de otra parroquia"):
        super().__init__(message)


class CatequistNotAssignedError(AuthorizationError):
    """Excepción para catequistas que no están asignados al grupo."""

    def __init__(self, grupo_id: int):
        message = f"No está asignado como catequista activo del grupo {grupo_id}"
        super().__init__(message)
        self.grupo_id = grupo_id


class InactiveGroupError(ConflictError):
    """Excepción para operaciones sobre grupos inactivos."""

    def __init__(self, grupo_id: int):
        super().__init__(f"El grupo {grupo_id} no está activo", 'INACTIVE_GROUP')
        self.grupo_id = grupo_id
