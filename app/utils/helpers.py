"""
Funciones auxiliares generales para el Sistema de Catequesis.
"""

from datetime import date, datetime
from enum import Enum
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Union

Number = Union[int, float, Decimal]


def redondear(valor: Number, decimales: int = 2) -> float:
    """
    Redondea hacia arriba en el punto medio (0.125 -> 0.13).

    Args:
        valor: Número a redondear
        decimales: Decimales a conservar

    Returns:
        float: Valor redondeado
    """
    cuantizador = Decimal(1).scaleb(-decimales)
    return float(Decimal(str(valor)).quantize(cuantizador, rounding=ROUND_HALF_UP))


def calculate_percentage(part: Number, total: Number, decimals: int = 2) -> float:
    """
    Calcula un porcentaje.

    Args:
        part: Parte del total
        total: Total
        decimals: Decimales a mostrar

    Returns:
        float: Porcentaje calculado, 0 si el total es 0
    """
    if not total:
        return 0.0
    return redondear(part / total * 100, decimals)


def promedio(valores: Iterable[Number], decimales: int = 2) -> Optional[float]:
    """Media aritmética redondeada; None si no hay valores."""
    lista = [v for v in valores if v is not None]
    if not lista:
        return None
    return redondear(sum(lista) / len(lista), decimales)


def calculate_age(birth_date: date, reference_date: date = None) -> int:
    """
    Calcula la edad en años.

    Args:
        birth_date: Fecha de nacimiento
        reference_date: Fecha de referencia (hoy por defecto)

    Returns:
        int: Edad en años
    """
    reference_date = reference_date or date.today()
    age = reference_date.year - birth_date.year

    # Ajustar si no ha cumplido años este año
    if reference_date.month < birth_date.month or \
       (reference_date.month == birth_date.month and reference_date.day < birth_date.day):
        age -= 1

    return age


def to_json_compatible(value: Any) -> Any:
    """
    Convierte enums y fechas anidados a valores que se pueden guardar en JSON.

    Args:
        value: dict, lista o valor simple

    Returns:
        Estructura equivalente solo con tipos JSON
    """
    if isinstance(value, dict):
        return {k: to_json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
