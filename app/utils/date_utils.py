"""
Utilidades para manejo de fechas y tiempo en el Sistema de Catequesis.
Funciones específicas para trabajar con fechas, tiempo y períodos del sistema.
"""

from datetime import datetime, date, time, timedelta
from typing import Optional, Tuple
import pytz

from app.config.settings import get_config


LOCAL_TZ = pytz.timezone(get_config().TIMEZONE)
UTC_TZ = pytz.UTC


def get_current_datetime() -> datetime:
    """
    Obtiene la fecha y hora actual en la zona horaria configurada, sin tzinfo.

    Las columnas DateTime se guardan como hora local naive.

    Returns:
        datetime: Fecha y hora actual
    """
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def get_current_date() -> date:
    """Fecha de hoy en la zona horaria configurada."""
    return datetime.now(LOCAL_TZ).date()


def parse_hora(value: Optional[str]) -> Optional[time]:
    """Convierte 'HH:MM' a time."""
    if not value:
        return None
    return datetime.strptime(value, '%H:%M').time()


def minutos_entre(hora_inicio: str, hora_fin: str) -> Optional[int]:
    """
    Minutos transcurridos entre dos horas 'HH:MM'.

    Returns:
        int o None si falta alguna hora
    """
    inicio = parse_hora(hora_inicio)
    fin = parse_hora(hora_fin)
    if inicio is None or fin is None:
        return None
    return (fin.hour * 60 + fin.minute) - (inicio.hour * 60 + inicio.minute)


def ventana_notificacion() -> Tuple[date, date]:
    """
    Rango de fechas para ausencias pendientes de notificar.

    Desde ayer a las 00:00 hasta hoy a las 23:59:59; como la fecha de
    asistencia es un día calendario, basta con el par (ayer, hoy).
    """
    hoy = get_current_date()
    return hoy - timedelta(days=1), hoy


def dias_entre(desde: datetime, hasta: datetime = None) -> int:
    """Días completos transcurridos entre dos fechas."""
    if desde is None:
        return 0
    hasta = hasta or get_current_datetime()
    return max((hasta - desde).days, 0)
