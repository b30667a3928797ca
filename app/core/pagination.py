"""
Utilidades de paginación para el Sistema de Catequesis.
Proporciona clases y funciones para manejar paginación de manera eficiente.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from app.utils.constants import SystemConstants


@dataclass
class PaginationInfo:
    """
    Clase de datos para información de paginación.
    """
    page: int
    per_page: int
    total: int
    pages: int
    has_prev: bool
    has_next: bool
    prev_num: Optional[int]
    next_num: Optional[int]

    @property
    def offset(self) -> int:
        """Calcula el offset para consultas SQL."""
        return (self.page - 1) * self.per_page

    def to_dict(self) -> Dict[str, Any]:
        """Convierte la información de paginación a diccionario."""
        return {
            'page': self.page,
            'per_page': self.per_page,
            'total': self.total,
            'pages': self.pages,
            'has_prev': self.has_prev,
            'has_next': self.has_next,
            'prev_num': self.prev_num,
            'next_num': self.next_num
        }


class Paginator:
    """
    Clase principal para manejar paginación.
    """

    def __init__(self, page: int = 1, per_page: int = None, max_per_page: int = None):
        """
        Inicializa el paginador.

        Args:
            page: Número de página actual
            per_page: Elementos por página
            max_per_page: Máximo elementos por página permitido
        """
        self.page = max(1, page or 1)
        self.per_page = per_page or SystemConstants.DEFAULT_PAGE_SIZE
        self.max_per_page = max_per_page or SystemConstants.MAX_PAGE_SIZE

        # Validar per_page
        if self.per_page < SystemConstants.MIN_PAGE_SIZE:
            self.per_page = SystemConstants.MIN_PAGE_SIZE
        elif self.per_page > self.max_per_page:
            self.per_page = self.max_per_page

    def build_info(self, total_count: int) -> PaginationInfo:
        pages = math.ceil(total_count / self.per_page) if total_count > 0 else 0
        has_prev = self.page > 1
        has_next = self.page < pages
        return PaginationInfo(
            page=self.page,
            per_page=self.per_page,
            total=total_count,
            pages=pages,
            has_prev=has_prev,
            has_next=has_next,
            prev_num=self.page - 1 if has_prev else None,
            next_num=self.page + 1 if has_next else None
        )

    def paginate_query(self, query) -> Tuple[List[Any], PaginationInfo]:
        """
        Pagina una query de SQLAlchemy.

        Args:
            query: Query ya filtrada y ordenada

        Returns:
            tuple: (elementos_de_la_pagina, info_paginacion)
        """
        total = query.order_by(None).count()
        info = self.build_info(total)
        items = query.limit(self.per_page).offset(info.offset).all()
        return items, info


def paginate_query(query, page: int = 1, per_page: int = None) -> Tuple[List[Any], PaginationInfo]:
    """Atajo para paginar una query."""
    return Paginator(page, per_page).paginate_query(query)
