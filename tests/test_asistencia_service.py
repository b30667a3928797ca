import pytest

from conftest import dia, usuario_actual
from app.core.exceptions import (
    CatequistNotAssignedError, DuplicateAttendanceError, InactiveGroupError, ValidationError
)
from app.models.catequesis.asistencia_model import Asistencia
from app.models.catequesis.inscripcion_model import Inscripcion
from app.services.catequesis.asistencia_service import AsistenciaService
from app.services.catequesis.inscripcion_service import InscripcionService


@pytest.fixture
def service(db, usuarios):
    return AsistenciaService(db, usuario_actual(usuarios['catequista']))


@pytest.fixture
def inscripciones(db, usuarios, grupo, crear_catequizando):
    """Tres inscripciones aprobadas en el grupo."""
    secretaria = InscripcionService(db, usuario_actual(usuarios['secretaria']))
    parroco = InscripcionService(db, usuario_actual(usuarios['parroco']))
    creadas = []
    for apellidos in ('Zambrano', 'Andrade', 'Mora'):
        inscripcion = secretaria.create({
            'catequizando_id': crear_catequizando(apellidos=apellidos).id,
            'grupo_id': grupo.id
        })
        parroco.aprobar(inscripcion['id'])
        creadas.append(inscripcion['id'])
    return creadas


def registrar(service, inscripcion_id, fecha, asistio=True, **extra):
    datos = {'inscripcion_id': inscripcion_id, 'fecha': fecha.isoformat(), 'asistio': asistio, **extra}
    if not asistio:
        datos.setdefault('motivo_ausencia', 'enfermedad')
    return service.create(datos)


# ==========================================
# REGISTRO INDIVIDUAL
# ==========================================

def test_porcentaje_tras_ocho_clases(db, service, inscripciones):
    inscripcion_id = inscripciones[0]
    for n in range(1, 8):
        registrar(service, inscripcion_id, dia(n))
    registrar(service, inscripcion_id, dia(8), asistio=False)

    inscripcion = db.get(Inscripcion, inscripcion_id)
    assert inscripcion.total_clases == 8
    assert inscripcion.clases_asistidas == 7
    assert inscripcion.porcentaje_asistencia == 87.5


def test_misma_inscripcion_y_dia_es_conflicto(db, service, inscripciones):
    registrar(service, inscripciones[0], dia(1))

    with pytest.raises(DuplicateAttendanceError):
        registrar(service, inscripciones[0], dia(1), asistio=False)

    registrar(service, inscripciones[0], dia(2))
    assert db.query(Asistencia).count() == 2


def test_ausencia_justificada_por_motivo(service, inscripciones):
    justificada = registrar(service, inscripciones[0], dia(1), asistio=False, motivo_ausencia='viaje')
    injustificada = registrar(service, inscripciones[1], dia(1), asistio=False, motivo_ausencia='clima')

    assert justificada['ausencia_justificada'] is True
    assert injustificada['ausencia_justificada'] is False


def test_ausencia_sin_motivo(service, inscripciones):
    with pytest.raises(ValidationError):
        service.create({'inscripcion_id': inscripciones[0], 'fecha': dia(1).isoformat(), 'asistio': False})


@pytest.mark.parametrize('hora_salida', ['08:30', '09:00'])
def test_salida_antes_o_igual_a_la_llegada(db, service, inscripciones, hora_salida):
    with pytest.raises(ValidationError) as exc_info:
        registrar(service, inscripciones[0], dia(1), hora_llegada='09:00', hora_salida=hora_salida)

    assert 'hora_salida' in exc_info.value.details
    assert db.query(Asistencia).count() == 0


def test_corregir_horas_invertidas(db, service, inscripciones):
    asistencia = registrar(service, inscripciones[0], dia(1), hora_llegada='09:00', hora_salida='10:00')

    with pytest.raises(ValidationError) as exc_info:
        service.update(asistencia['id'], {'hora_llegada': '10:30', 'hora_salida': '10:15'})
    assert 'hora_salida' in exc_info.value.details

    # Solo cambia la salida: se compara con la llegada guardada
    with pytest.raises(ValidationError) as exc_info:
        service.update(asistencia['id'], {'hora_salida': '08:45'})
    assert 'hora_salida' in exc_info.value.details

    guardada = db.get(Asistencia, asistencia['id'])
    assert guardada.hora_llegada == '09:00'
    assert guardada.hora_salida == '10:00'


def test_no_se_registra_clase_regular_futura(service, inscripciones):
    with pytest.raises(ValidationError):
        registrar(service, inscripciones[0], dia(-3))


def test_catequista_no_asignado(db, usuarios, inscripciones):
    service = AsistenciaService(db, usuario_actual(usuarios['catequista_libre']))

    with pytest.raises(CatequistNotAssignedError):
        registrar(service, inscripciones[0], dia(1))


# ==========================================
# REGISTRO MASIVO
# ==========================================

def test_registro_de_grupo(db, service, grupo, inscripciones):
    registros = service.registrar_grupo({
        'grupo_id': grupo.id,
        'fecha': dia(1).isoformat(),
        'tema': 'Los sacramentos',
        'asistencias': [
            {'inscripcion_id': inscripciones[0], 'asistio': True},
            {'inscripcion_id': inscripciones[1], 'asistio': True, 'llegada_tarde': True},
            {'inscripcion_id': inscripciones[2], 'asistio': False, 'motivo_ausencia': 'enfermedad'},
        ]
    })

    assert len(registros) == 3
    assert {r['metodo_registro'] for r in registros} == {'lista'}
    assert db.get(Inscripcion, inscripciones[2]).porcentaje_asistencia == 0
    assert db.get(Inscripcion, inscripciones[0]).porcentaje_asistencia == 100
    db.refresh(grupo)
    assert grupo.total_clases_impartidas == 1


def test_registro_de_grupo_es_todo_o_nada(db, service, grupo, inscripciones):
    registrar(service, inscripciones[1], dia(1))

    with pytest.raises(DuplicateAttendanceError):
        service.registrar_grupo({
            'grupo_id': grupo.id,
            'fecha': dia(1).isoformat(),
            'asistencias': [
                {'inscripcion_id': inscripciones[0], 'asistio': True},
                {'inscripcion_id': inscripciones[1], 'asistio': True},
            ]
        })

    assert db.query(Asistencia).count() == 1


def test_registro_de_grupo_rechaza_inscripciones_ajenas(db, usuarios, service, grupo, otro_grupo, inscripciones,
                                                        crear_catequizando):
    ajena = InscripcionService(db, usuario_actual(usuarios['secretaria'])).create({
        'catequizando_id': crear_catequizando().id, 'grupo_id': otro_grupo.id
    })

    with pytest.raises(ValidationError) as exc_info:
        service.registrar_grupo({
            'grupo_id': grupo.id,
            'fecha': dia(1).isoformat(),
            'asistencias': [
                {'inscripcion_id': inscripciones[0], 'asistio': True},
                {'inscripcion_id': ajena['id'], 'asistio': True},
            ]
        })

    assert 'asistencias' in exc_info.value.details
    assert db.query(Asistencia).count() == 0


def test_registro_de_grupo_inactivo(db, service, grupo, inscripciones):
    grupo.activo = False
    db.commit()

    with pytest.raises(InactiveGroupError):
        service.registrar_grupo({
            'grupo_id': grupo.id,
            'fecha': dia(1).isoformat(),
            'asistencias': [{'inscripcion_id': inscripciones[0], 'asistio': True}]
        })


# ==========================================
# CORRECCIÓN Y SEGUIMIENTO
# ==========================================

def test_corregir_recalcula_la_inscripcion(db, service, inscripciones):
    registrar(service, inscripciones[0], dia(2))
    ausencia = registrar(service, inscripciones[0], dia(1), asistio=False)
    assert db.get(Inscripcion, inscripciones[0]).porcentaje_asistencia == 50

    corregida = service.update(ausencia['id'], {'asistio': True, 'hora_llegada': '09:10'})

    assert corregida['asistio'] is True
    assert corregida['motivo_ausencia'] is None
    assert db.get(Inscripcion, inscripciones[0]).porcentaje_asistencia == 100


def test_eliminar_recalcula_la_inscripcion(db, usuarios, service, inscripciones):
    registrar(service, inscripciones[0], dia(2))
    ausencia = registrar(service, inscripciones[0], dia(1), asistio=False)

    AsistenciaService(db, usuario_actual(usuarios['parroco'])).delete(ausencia['id'])

    inscripcion = db.get(Inscripcion, inscripciones[0])
    assert inscripcion.total_clases == 1
    assert inscripcion.porcentaje_asistencia == 100


def test_observaciones_y_tareas(service, inscripciones):
    asistencia = registrar(service, inscripciones[0], dia(1))

    service.agregar_observacion(asistencia['id'], {'contenido': 'Participó en la lectura'})
    resultado = service.registrar_tarea(asistencia['id'], {'descripcion': 'Oración', 'entregada': False,
                                                           'calificacion': 90})

    assert resultado['observaciones'][0]['contenido'] == 'Participó en la lectura'
    assert resultado['tareas'][0]['calificacion'] is None
    assert resultado['tareas'][0]['fecha_entrega'] is None


def test_ausencias_por_notificar(db, usuarios, service, inscripciones):
    ayer = registrar(service, inscripciones[0], dia(1), asistio=False)
    registrar(service, inscripciones[1], dia(5), asistio=False)
    registrar(service, inscripciones[2], dia(1))

    secretaria = AsistenciaService(db, usuario_actual(usuarios['secretaria']))
    pendientes = secretaria.get_ausencias_por_notificar()
    assert [a['id'] for a in pendientes] == [ayer['id']]

    secretaria.marcar_notificacion(ayer['id'], {'tipo': 'ausencia'})
    assert secretaria.get_ausencias_por_notificar() == []


# ==========================================
# REPORTES
# ==========================================

def test_estadisticas_de_grupo(service, grupo, inscripciones):
    for inscripcion_id in inscripciones:
        registrar(service, inscripcion_id, dia(2))
    registrar(service, inscripciones[0], dia(1))
    registrar(service, inscripciones[1], dia(1), asistio=False, motivo_ausencia='enfermedad')

    estadisticas = service.get_estadisticas_grupo(grupo.id)

    assert estadisticas['total_registros'] == 5
    assert estadisticas['total_asistencias'] == 4
    assert estadisticas['ausencias_justificadas'] == 1
    assert estadisticas['total_clases'] == 2
    assert estadisticas['total_catequizandos'] == 3
    assert estadisticas['porcentaje_asistencia'] == 80
    assert estadisticas['promedio_asistentes_por_clase'] == 2


def test_estadisticas_por_rango(service, grupo, inscripciones):
    registrar(service, inscripciones[0], dia(10))
    registrar(service, inscripciones[0], dia(1))

    estadisticas = service.get_estadisticas_grupo(grupo.id, {'fecha_desde': dia(3).isoformat()})

    assert estadisticas['total_registros'] == 1


def test_reporte_ordenado_por_apellido(db, usuarios, service, inscripciones):
    registrar(service, inscripciones[0], dia(2))
    registrar(service, inscripciones[0], dia(1), asistio=False)
    registrar(service, inscripciones[1], dia(1))
    registrar(service, inscripciones[2], dia(1))

    reporte = AsistenciaService(db, usuario_actual(usuarios['parroco'])).get_reporte()

    assert [fila['apellidos'] for fila in reporte] == ['Andrade', 'Mora', 'Zambrano']
    zambrano = reporte[-1]
    assert zambrano['total_clases'] == 2
    assert zambrano['porcentaje_asistencia'] == 50
