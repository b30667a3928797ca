"""
Servicio base para el sistema de catequesis.
Proporciona funcionalidades comunes para todos los servicios de negocio.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy import asc, desc
from marshmallow import Schema, ValidationError as SchemaValidationError
import logging

from app.core.exceptions import (
    CatequesisBaseException, DatabaseError, DuplicateRecordError, RecordNotFoundError, ValidationError
)
from app.core.pagination import Paginator
from app.services.seguridad.permission_service import Accion, PoliticaAcceso


logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Servicio base que proporciona operaciones CRUD estándar y funcionalidades comunes.
    Todos los servicios del sistema deben heredar de esta clase.
    """

    def __init__(self, db: Session, current_user: Dict = None, politica: PoliticaAcceso = None):
        """
        Inicializa el servicio base.

        Args:
            db: Sesión de base de datos
            current_user: Usuario actual del contexto
            politica: Filtro de acceso ya construido (opcional)
        """
        self.db = db
        self.politica = politica or PoliticaAcceso(current_user)
        self.current_user = self.politica.current_user
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def model(self) -> Type:
        """Modelo SQLAlchemy asociado al servicio."""
        pass

    @property
    @abstractmethod
    def create_schema(self) -> Type[Schema]:
        """Schema para creación de registros."""
        pass

    @property
    @abstractmethod
    def update_schema(self) -> Type[Schema]:
        """Schema para actualización de registros."""
        pass

    @property
    @abstractmethod
    def response_schema(self) -> Type[Schema]:
        """Schema para respuesta de registros."""
        pass

    @property
    def entity_name(self) -> str:
        """Nombre de la entidad para logs y mensajes."""
        return self.model.__name__.lower()

    @property
    def accion_escritura(self) -> Optional[Accion]:
        """Acción exigida para crear, actualizar o desactivar."""
        return None

    @property
    def parroquia_column(self):
        """Columna usada para restringir por parroquia (None = sin restricción)."""
        return getattr(self.model, 'parroquia_id', None)

    # ==========================================
    # OPERACIONES CRUD BÁSICAS
    # ==========================================

    def create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Crea un nuevo registro.

        Args:
            data: Datos para crear el registro
            **kwargs: Argumentos adicionales

        Returns:
            Dict con el registro creado serializado

        Raises:
            ValidationError: Si los datos no son válidos
            DuplicateRecordError: Si el registro ya existe
            DatabaseError: Si hay error en la base de datos
        """
        self._exigir_escritura()
        validated_data = self._load(self.create_schema, data)

        try:
            # Hook pre-creación
            validated_data = self._before_create(validated_data, **kwargs)

            instance = self.model(**validated_data)
            self.db.add(instance)
            self.db.flush()

            # Hook post-creación
            instance = self._after_create(instance, validated_data, **kwargs)
            self._commit()
        except CatequesisBaseException:
            self.db.rollback()
            raise

        self.logger.info(f"{self.entity_name.title()} creado: {instance.id}")
        return self._serialize_response(instance)

    def get_by_id(self, id: int, **kwargs) -> Dict[str, Any]:
        """
        Obtiene un registro por ID.

        Raises:
            RecordNotFoundError: Si el registro no existe
            ParishScopeError: Si pertenece a otra parroquia
        """
        instance = self._get_instance_by_id(id)
        return self._serialize_response(instance)

    def get_all(self, filters: Dict[str, Any] = None, **kwargs) -> Dict[str, Any]:
        """
        Obtiene todos los registros con filtros opcionales.

        Args:
            filters: Filtros para aplicar
            **kwargs: page, per_page, sort_by, sort_order

        Returns:
            Dict con registros paginados y metadatos
        """
        try:
            query = self._build_base_query()

            if filters:
                query = self._apply_filters(query, filters)

            query = self._apply_sorting(query, **kwargs)

            items, pagination = Paginator(kwargs.get('page', 1), kwargs.get('per_page')).paginate_query(query)

            return {
                'items': [self._serialize_response(item) for item in items],
                'pagination': pagination.to_dict()
            }
        except SQLAlchemyError as e:
            self.logger.error(f"Error listando {self.entity_name}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Error listando {self.entity_name}")

    def update(self, id: int, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Actualiza un registro existente.

        Raises:
            RecordNotFoundError: Si el registro no existe
            ValidationError: Si los datos no son válidos
        """
        self._exigir_escritura()
        instance = self._get_instance_by_id(id)
        validated_data = self._load(self.update_schema, data)

        try:
            validated_data = self._before_update(instance, validated_data, **kwargs)

            for key, value in validated_data.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)

            instance = self._after_update(instance, validated_data, **kwargs)
            self._commit()
        except CatequesisBaseException:
            self.db.rollback()
            raise

        self.logger.info(f"{self.entity_name.title()} actualizado: {instance.id}")
        return self._serialize_response(instance)

    def delete(self, id: int, **kwargs) -> bool:
        """
        Desactiva un registro (eliminación lógica).

        Returns:
            True si se desactivó correctamente
        """
        self._exigir_escritura()
        instance = self._get_instance_by_id(id)

        for flag in ('activo', 'activa'):
            if hasattr(instance, flag):
                setattr(instance, flag, False)
                break
        else:
            self.db.delete(instance)

        self._commit()
        self.logger.info(f"{self.entity_name.title()} desactivado: {id}")
        return True

    def count(self, filters: Dict[str, Any] = None) -> int:
        query = self._build_base_query()
        if filters:
            query = self._apply_filters(query, filters)
        return query.count()

    # ==========================================
    # MÉTODOS AUXILIARES Y HOOKS
    # ==========================================

    def _exigir_escritura(self) -> None:
        if self.accion_escritura is not None:
            self.politica.exigir(self.accion_escritura)

    def _load(self, schema_class: Type[Schema], data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        """
        Valida datos con un schema de marshmallow.

        Raises:
            ValidationError: con los mensajes por campo en details
        """
        try:
            return schema_class(**kwargs).load(data or {})
        except SchemaValidationError as e:
            raise ValidationError(f"Error de validación en {self.entity_name}", details=e.messages)

    def _commit(self) -> None:
        """
        Confirma la transacción traduciendo errores de base de datos.

        Raises:
            DuplicateRecordError: violación de unicidad
            DatabaseError: cualquier otro error del motor
        """
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            self.logger.warning(f"Violación de integridad en {self.entity_name}: {str(e.orig)}")
            raise DuplicateRecordError(self.entity_name)
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Error de base de datos en {self.entity_name}: {str(e)}", exc_info=True)
            raise DatabaseError(f"Error guardando {self.entity_name}")

    def _serialize_response(self, instance) -> Dict[str, Any]:
        """Serializa una instancia usando el schema de respuesta."""
        return self.response_schema().dump(instance)

    def _find(self, model, id: int, entity: str = None):
        """Busca por ID en cualquier modelo, sin filtro de parroquia."""
        instance = self.db.get(model, id)
        if instance is None:
            raise RecordNotFoundError(entity or model.__name__, 'id', id)
        return instance

    def _get_instance_by_id(self, id: int):
        """Obtiene una instancia por ID o lanza excepción si no existe."""
        instance = self._find(self.model, id, self.entity_name)
        self._check_scope(instance)
        return instance

    def _check_scope(self, instance) -> None:
        if self.parroquia_column is not None:
            self.politica.exigir_parroquia(getattr(instance, self.parroquia_column.key))

    def _build_base_query(self):
        """Construye la query base restringida a la parroquia del usuario."""
        query = self.db.query(self.model)
        if self.parroquia_column is not None:
            query = self.politica.aplicar_filtro(query, self.parroquia_column)
        return query

    def _apply_filters(self, query, filters: Dict[str, Any]):
        """Aplica filtros básicos a la query."""
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                if isinstance(value, list):
                    query = query.filter(getattr(self.model, key).in_(value))
                else:
                    query = query.filter(getattr(self.model, key) == value)
        return query

    def _apply_sorting(self, query, **kwargs):
        """Aplica ordenamiento a la query."""
        sort_by = kwargs.get('sort_by') or 'id'
        sort_order = kwargs.get('sort_order') or 'desc'

        if hasattr(self.model, sort_by):
            column = getattr(self.model, sort_by)
            query = query.order_by(asc(column) if sort_order.lower() == 'asc' else desc(column))
        return query

    def _before_create(self, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        return data

    def _after_create(self, instance, data: Dict[str, Any], **kwargs):
        return instance

    def _before_update(self, instance, data: Dict[str, Any], **kwargs) -> Dict[str, Any]:
        return data

    def _after_update(self, instance, data: Dict[str, Any], **kwargs):
        return instance
