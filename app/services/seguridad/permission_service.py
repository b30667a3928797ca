"""
Servicio de permisos del sistema de catequesis.
Deriva, a partir del perfil y la parroquia del usuario, qué registros puede
ver y qué operaciones puede ejecutar.
"""

from enum import Enum
from functools import wraps
from typing import Any, Dict, FrozenSet, Mapping, Optional
import logging

from app.core.exceptions import (
    AuthenticationError, CatequistNotAssignedError, InsufficientPermissionsError, ParishScopeError
)
from app.utils.constants import Rol

logger = logging.getLogger(__name__)


class Accion(Enum):
    """Operaciones de escritura controladas por perfil."""
    GESTIONAR_PARROQUIAS = "gestionar_parroquias"
    GESTIONAR_USUARIOS = "gestionar_usuarios"
    GESTIONAR_CATALOGO = "gestionar_catalogo"
    CREAR_INSCRIPCION = "crear_inscripcion"
    ACTUALIZAR_INSCRIPCION = "actualizar_inscripcion"
    CAMBIAR_ESTADO_INSCRIPCION = "cambiar_estado_inscripcion"
    APROBAR_INSCRIPCION = "aprobar_inscripcion"
    ELIMINAR_INSCRIPCION = "eliminar_inscripcion"
    REGISTRAR_PAGO = "registrar_pago"
    REGISTRAR_CALIFICACION = "registrar_calificacion"
    AGREGAR_OBSERVACION = "agregar_observacion"
    REGISTRAR_ASISTENCIA = "registrar_asistencia"
    ACTUALIZAR_ASISTENCIA = "actualizar_asistencia"
    ELIMINAR_ASISTENCIA = "eliminar_asistencia"
    GESTIONAR_NOTIFICACIONES = "gestionar_notificaciones"


_TODAS = frozenset(Accion)

_ELIMINACIONES = frozenset({Accion.ELIMINAR_INSCRIPCION, Accion.ELIMINAR_ASISTENCIA})

POLITICA_POR_DEFECTO: Mapping[Rol, FrozenSet[Accion]] = {
    Rol.ADMIN: _TODAS,
    Rol.PARROCO: _TODAS - {Accion.GESTIONAR_PARROQUIAS},
    Rol.SECRETARIA: _TODAS - {Accion.GESTIONAR_PARROQUIAS, Accion.APROBAR_INSCRIPCION} - _ELIMINACIONES,
    Rol.CATEQUISTA: frozenset({
        Accion.REGISTRAR_ASISTENCIA,
        Accion.ACTUALIZAR_ASISTENCIA,
        Accion.REGISTRAR_CALIFICACION,
        Accion.AGREGAR_OBSERVACION,
    }),
    Rol.CONSULTA: frozenset(),
}


class PoliticaAcceso:
    """
    Filtro de acceso para un usuario concreto.

    Args:
        current_user: dict con 'id', 'rol' y 'parroquia_id'
        politica: tabla perfil -> acciones permitidas
    """

    def __init__(self, current_user: Optional[Dict[str, Any]], politica: Mapping[Rol, FrozenSet[Accion]] = None):
        if not current_user:
            raise AuthenticationError("Usuario no autenticado")

        self.current_user = current_user
        self.politica = politica or POLITICA_POR_DEFECTO
        self.usuario_id = current_user.get('id')
        self.parroquia_id = current_user.get('parroquia_id')
        try:
            self.rol = Rol(current_user.get('rol'))
        except ValueError:
            raise AuthenticationError("Perfil de usuario inválido")

    @property
    def es_admin(self) -> bool:
        return self.rol == Rol.ADMIN

    @property
    def es_catequista(self) -> bool:
        return self.rol == Rol.CATEQUISTA

    @property
    def ve_observaciones_privadas(self) -> bool:
        return self.rol != Rol.CONSULTA

    # ==========================================
    # VISIBILIDAD
    # ==========================================

    def filtro_parroquia(self, columna):
        """
        Criterio SQLAlchemy que restringe a la parroquia del usuario.

        Returns:
            None para el administrador, o la expresión columna == parroquia
        """
        if self.es_admin:
            return None
        return columna == self.parroquia_id

    def aplicar_filtro(self, query, columna):
        criterio = self.filtro_parroquia(columna)
        return query if criterio is None else query.filter(criterio)

    def puede_ver_parroquia(self, parroquia_id: Optional[int]) -> bool:
        return self.es_admin or (parroquia_id is not None and parroquia_id == self.parroquia_id)

    def exigir_parroquia(self, parroquia_id: Optional[int]) -> None:
        """
        Raises:
            ParishScopeError: si el registro pertenece a otra parroquia
        """
        if not self.puede_ver_parroquia(parroquia_id):
            logger.warning(
                f"Acceso denegado: usuario {self.usuario_id} ({self.rol.value}) a parroquia {parroquia_id}"
            )
            raise ParishScopeError()

    # ==========================================
    # OPERACIONES
    # ==========================================

    def puede(self, accion: Accion) -> bool:
        return accion in self.politica.get(self.rol, frozenset())

    def exigir(self, accion: Accion) -> None:
        """
        Raises:
            InsufficientPermissionsError: si el perfil no permite la acción
        """
        if not self.puede(accion):
            logger.warning(f"Permiso denegado: usuario {self.usuario_id} ({self.rol.value}) -> {accion.value}")
            raise InsufficientPermissionsError(accion.value)

    def exigir_asignacion(self, grupo) -> None:
        """
        Un catequista solo opera sobre grupos donde está asignado y activo.

        Raises:
            CatequistNotAssignedError: si no está asignado
        """
        if self.es_catequista and not grupo.tiene_catequista_activo(self.usuario_id):
            raise CatequistNotAssignedError(grupo.id)


def require_permission(accion: Accion):
    """
    Decorador para métodos de servicio que requieren una acción.

    Usage:
        @require_permission(Accion.CREAR_INSCRIPCION)
        def create(self, data):
            pass
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            self.politica.exigir(accion)
            return func(self, *args, **kwargs)
        return wrapper
    return decorator
