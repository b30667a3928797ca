import pytest

from app.core.exceptions import InvalidStateError, ValidationError
from app.models.catequesis.asistencia_model import Asistencia  # noqa: F401
from app.models.catequesis.inscripcion_model import Inscripcion
from app.utils.constants import ConceptoPago, EstadoInscripcion, MetodoPago


def nueva_inscripcion(estado=EstadoInscripcion.PENDIENTE) -> Inscripcion:
    return Inscripcion(estado=estado, activa=True, porcentaje_asistencia=0)


# ==========================================
# PAGOS
# ==========================================

def test_cuota_de_inscripcion_pagada_y_materiales_pendientes():
    inscripcion = nueva_inscripcion()
    inscripcion.configurar_cuota(ConceptoPago.INSCRIPCION, 25)
    inscripcion.configurar_cuota(ConceptoPago.MATERIALES, 15)

    inscripcion.registrar_pago('inscripcion', 25, MetodoPago.EFECTIVO)

    assert inscripcion.monto_total == 40
    assert inscripcion.monto_pagado == 25
    assert inscripcion.monto_pendiente == 15
    assert inscripcion.pagada_completa is False

    inscripcion.registrar_pago('materiales', 15, MetodoPago.TRANSFERENCIA, 'TRX-001')

    assert inscripcion.monto_pagado == 40
    assert inscripcion.monto_pendiente == 0
    assert inscripcion.pagada_completa is True


def test_inscripcion_sin_cargos_esta_pagada():
    inscripcion = nueva_inscripcion()
    assert inscripcion.monto_total == 0
    assert inscripcion.pagada_completa is True


def test_pago_con_concepto_libre_agrega_cargo_otro():
    inscripcion = nueva_inscripcion()
    inscripcion.configurar_cuota(ConceptoPago.INSCRIPCION, 20)

    pago = inscripcion.registrar_pago('Donación retiro', 5, MetodoPago.EFECTIVO)

    assert pago.tipo == ConceptoPago.OTRO
    assert pago.pagado is True
    assert inscripcion.monto_total == 25
    assert inscripcion.monto_pendiente == 20


def test_pago_de_cuota_fija_sobrescribe_el_monto():
    inscripcion = nueva_inscripcion()
    inscripcion.configurar_cuota(ConceptoPago.INSCRIPCION, 25)

    inscripcion.registrar_pago('inscripcion', 30, MetodoPago.EFECTIVO)

    assert len(inscripcion.pagos) == 1
    assert inscripcion.monto_total == 30
    assert inscripcion.pagada_completa is True


def test_no_se_reconfigura_una_cuota_pagada():
    inscripcion = nueva_inscripcion()
    inscripcion.registrar_pago('materiales', 10, MetodoPago.EFECTIVO)

    with pytest.raises(ValidationError):
        inscripcion.configurar_cuota(ConceptoPago.MATERIALES, 12)


# ==========================================
# EVALUACIÓN
# ==========================================

def test_nota_final_es_el_promedio_y_aprueba_con_asistencia_suficiente():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    inscripcion.actualizar_asistencia(20, 17)

    for concepto, nota in (('Examen 1', 80), ('Examen 2', 90), ('Trabajo', 70)):
        inscripcion.agregar_calificacion(concepto, nota)

    assert inscripcion.porcentaje_asistencia == 85
    assert inscripcion.nota_final == 80
    assert inscripcion.aprobado is True
    assert inscripcion.fecha_evaluacion is not None


def test_reprueba_por_asistencia_aunque_la_nota_sea_alta():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    inscripcion.actualizar_asistencia(10, 7)
    inscripcion.agregar_calificacion('Examen', 95)

    assert inscripcion.aprobado is False


def test_aprobado_es_nulo_sin_calificaciones():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    inscripcion.actualizar_asistencia(4, 4)

    assert inscripcion.nota_final is None
    assert inscripcion.aprobado is None


def test_nota_final_se_redondea_a_dos_decimales():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    for nota in (70, 80, 85):
        inscripcion.agregar_calificacion('Parcial', nota)

    assert inscripcion.nota_final == 78.33


def test_calificacion_fuera_de_rango():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    with pytest.raises(ValidationError):
        inscripcion.agregar_calificacion('Examen', 101)


def test_porcentaje_de_asistencia():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)
    assert inscripcion.actualizar_asistencia(8, 7) == 87.5
    assert inscripcion.actualizar_asistencia(0, 0) == 0


# ==========================================
# ESTADOS
# ==========================================

@pytest.mark.parametrize('estado', [
    EstadoInscripcion.SUSPENDIDA,
    EstadoInscripcion.COMPLETADA,
    EstadoInscripcion.RETIRADA,
])
def test_estados_de_cierre_desactivan_y_fijan_fecha_fin(estado):
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)

    anterior = inscripcion.cambiar_estado(estado, motivo='Cierre del proceso', usuario_id=1)

    assert anterior == EstadoInscripcion.ACTIVA
    assert inscripcion.estado == estado
    assert inscripcion.activa is False
    assert inscripcion.fecha_fin is not None
    assert inscripcion.observaciones[-1].contenido.startswith("Estado cambiado de 'activa'")


def test_activar_no_cierra_la_inscripcion():
    inscripcion = nueva_inscripcion()

    inscripcion.aprobar(usuario_id=1)

    assert inscripcion.activa is True
    assert inscripcion.fecha_fin is None


@pytest.mark.parametrize('desde, hacia', [
    (EstadoInscripcion.PENDIENTE, EstadoInscripcion.SUSPENDIDA),
    (EstadoInscripcion.PENDIENTE, EstadoInscripcion.ACTIVA),
    (EstadoInscripcion.PENDIENTE, EstadoInscripcion.PENDIENTE),
    (EstadoInscripcion.ACTIVA, EstadoInscripcion.PENDIENTE),
    (EstadoInscripcion.RETIRADA, EstadoInscripcion.ACTIVA),
    (EstadoInscripcion.COMPLETADA, EstadoInscripcion.SUSPENDIDA),
])
def test_transiciones_no_permitidas(desde, hacia):
    inscripcion = nueva_inscripcion(desde)

    with pytest.raises(InvalidStateError):
        inscripcion.cambiar_estado(hacia, motivo='Motivo')

    assert inscripcion.estado == desde


def test_retirar_exige_motivo():
    inscripcion = nueva_inscripcion(EstadoInscripcion.ACTIVA)

    with pytest.raises(ValidationError):
        inscripcion.cambiar_estado(EstadoInscripcion.RETIRADA, motivo='  ')

    assert inscripcion.activa is True


def test_aprobar_solo_desde_pendiente():
    inscripcion = nueva_inscripcion()

    inscripcion.aprobar(usuario_id=7)

    assert inscripcion.estado == EstadoInscripcion.ACTIVA
    assert inscripcion.aprobada is True
    assert inscripcion.aprobada_por_id == 7
    assert inscripcion.fecha_inicio is not None

    with pytest.raises(InvalidStateError):
        inscripcion.aprobar(usuario_id=7)


def test_fecha_fin_posterior_al_inicio_tras_el_cierre():
    inscripcion = nueva_inscripcion()
    inscripcion.aprobar(usuario_id=7)

    inscripcion.cambiar_estado(EstadoInscripcion.COMPLETADA, usuario_id=7)

    assert inscripcion.fecha_fin >= inscripcion.fecha_inicio
