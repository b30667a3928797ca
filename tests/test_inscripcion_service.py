import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import dia, usuario_actual
from app.core.exceptions import (
    DependentRecordsError, DuplicateRecordError, GroupCapacityError, InactiveGroupError,
    InvalidStateError, ValidationError
)
from app.models.catequesis.grupo_model import Grupo
from app.models.catequesis.inscripcion_model import Inscripcion
from app.models.catequesis.nivel_model import Nivel
from app.services.catequesis.asistencia_service import AsistenciaService
from app.services.catequesis.grupo_service import GrupoService
from app.services.catequesis.inscripcion_service import InscripcionService


@pytest.fixture
def service(db, usuarios):
    return InscripcionService(db, usuario_actual(usuarios['secretaria']))


@pytest.fixture
def parroco_service(db, usuarios):
    return InscripcionService(db, usuario_actual(usuarios['parroco']))


def inscribir(service, catequizando, grupo, **extra):
    return service.create({'catequizando_id': catequizando.id, 'grupo_id': grupo.id, **extra})


# ==========================================
# CREACIÓN
# ==========================================

def test_crear_inscripcion_queda_pendiente_y_abierta(db, service, grupo, crear_catequizando):
    catequizando = crear_catequizando()

    resultado = inscribir(service, catequizando, grupo, cuotas={'inscripcion': 25, 'materiales': 15})

    assert resultado['estado'] == 'pendiente'
    assert resultado['activa'] is True
    inscripcion = db.get(Inscripcion, resultado['id'])
    assert inscripcion.parroquia_id == grupo.parroquia_id
    assert inscripcion.fecha_inicio is not None
    assert inscripcion.monto_total == 40
    assert inscripcion.monto_pendiente == 40


def test_capacidad_del_grupo(service, grupo, crear_catequizando):
    # Capacidad 3: la tercera inscripción entra, la cuarta no
    for _ in range(grupo.capacidad_maxima):
        inscribir(service, crear_catequizando(), grupo)

    with pytest.raises(GroupCapacityError):
        inscribir(service, crear_catequizando(), grupo)


def test_inscripciones_cerradas_no_ocupan_cupo(service, parroco_service, grupo, crear_catequizando):
    inscripciones = [inscribir(service, crear_catequizando(), grupo) for _ in range(3)]
    parroco_service.cambiar_estado(inscripciones[0]['id'], {'estado': 'retirada', 'motivo': 'Cambio de domicilio'})

    resultado = inscribir(service, crear_catequizando(), grupo)

    assert resultado['estado'] == 'pendiente'


def test_inscripcion_duplicada(service, grupo, crear_catequizando):
    catequizando = crear_catequizando()
    inscribir(service, catequizando, grupo)

    with pytest.raises(DuplicateRecordError):
        inscribir(service, catequizando, grupo)


def test_grupo_inactivo_rechaza_inscripciones(db, service, grupo, crear_catequizando):
    grupo.activo = False
    db.commit()

    with pytest.raises(InactiveGroupError):
        inscribir(service, crear_catequizando(), grupo)


def test_datos_incompletos(service):
    with pytest.raises(ValidationError) as exc_info:
        service.create({'grupo_id': 1})

    assert 'catequizando_id' in exc_info.value.details


def test_crear_actualiza_estadisticas_del_grupo(db, service, grupo, crear_catequizando):
    inscribir(service, crear_catequizando(), grupo)
    inscribir(service, crear_catequizando(), grupo)

    db.refresh(grupo)
    assert grupo.total_inscripciones == 2
    assert grupo.inscripciones_activas == 2
    assert grupo.estadisticas_actualizadas_en is not None


def test_fallo_de_estadisticas_no_revierte_la_inscripcion(db, service, grupo, crear_catequizando, monkeypatch):
    def falla(self, grupo_id):
        raise SQLAlchemyError("base de datos no disponible")

    monkeypatch.setattr(GrupoService, 'actualizar_estadisticas', falla)

    resultado = inscribir(service, crear_catequizando(), grupo)

    assert db.get(Inscripcion, resultado['id']) is not None
    assert db.query(Inscripcion).count() == 1


# ==========================================
# ESTADOS
# ==========================================

def test_aprobar_y_cambiar_estado(parroco_service, service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)

    aprobada = parroco_service.aprobar(inscripcion['id'])
    assert aprobada['estado'] == 'activa'
    assert aprobada['proceso']['aprobacion_final']['aprobada'] is True

    with pytest.raises(InvalidStateError):
        parroco_service.aprobar(inscripcion['id'])

    completada = parroco_service.cambiar_estado(inscripcion['id'], {'estado': 'completada'})
    assert completada['estado'] == 'completada'
    assert completada['activa'] is False
    assert completada['fecha_fin'] is not None


def test_suspender_sin_motivo(parroco_service, service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)
    parroco_service.aprobar(inscripcion['id'])

    with pytest.raises(ValidationError):
        parroco_service.cambiar_estado(inscripcion['id'], {'estado': 'suspendida'})


def test_transicion_invalida_no_modifica(db, parroco_service, service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)

    with pytest.raises(InvalidStateError):
        parroco_service.cambiar_estado(inscripcion['id'], {'estado': 'completada'})

    assert db.get(Inscripcion, inscripcion['id']).estado.value == 'pendiente'


def test_secretaria_no_activa_sin_aprobacion(db, service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)

    with pytest.raises(InvalidStateError):
        service.cambiar_estado(inscripcion['id'], {'estado': 'activa'})

    guardada = db.get(Inscripcion, inscripcion['id'])
    assert guardada.estado.value == 'pendiente'
    assert guardada.aprobada is False
    assert guardada.aprobada_por_id is None


# ==========================================
# PAGOS Y CALIFICACIONES
# ==========================================

def test_registrar_pagos(service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo, cuotas={'inscripcion': 25, 'materiales': 15})

    resultado = service.registrar_pago(
        inscripcion['id'], {'concepto': 'inscripcion', 'monto': 25, 'metodo_pago': 'efectivo'}
    )
    assert resultado['monto_total'] == 40
    assert resultado['monto_pagado'] == 25
    assert resultado['monto_pendiente'] == 15
    assert resultado['pagada_completa'] is False

    resultado = service.registrar_pago(
        inscripcion['id'], {'concepto': 'materiales', 'monto': 15, 'metodo_pago': 'transferencia'}
    )
    assert resultado['monto_pagado'] == 40
    assert resultado['pagada_completa'] is True


def test_pendientes_de_pago(service, grupo, crear_catequizando):
    debe = inscribir(service, crear_catequizando(), grupo, cuotas={'inscripcion': 25})
    pagada = inscribir(service, crear_catequizando(), grupo, cuotas={'inscripcion': 25})
    inscribir(service, crear_catequizando(), grupo)
    service.registrar_pago(pagada['id'], {'concepto': 'inscripcion', 'monto': 25, 'metodo_pago': 'efectivo'})

    pendientes = service.get_pendientes_pago()

    assert [i['id'] for i in pendientes] == [debe['id']]


def test_calificaciones_con_asistencia(db, usuarios, service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)
    catequista = usuario_actual(usuarios['catequista'])
    InscripcionService(db, usuario_actual(usuarios['parroco'])).aprobar(inscripcion['id'])

    # 17 de 20 clases: 85 %
    registro = db.get(Inscripcion, inscripcion['id'])
    registro.actualizar_asistencia(20, 17)
    db.commit()

    catequista_service = InscripcionService(db, catequista)
    for concepto, nota in (('Examen 1', 80), ('Examen 2', 90), ('Trabajo final', 70)):
        resultado = catequista_service.registrar_calificacion(
            inscripcion['id'], {'concepto': concepto, 'calificacion': nota}
        )

    assert resultado['nota_final'] == 80
    assert resultado['aprobado'] is True
    assert len(resultado['calificaciones']) == 3


# ==========================================
# TRANSFERENCIA Y ELIMINACIÓN
# ==========================================

def test_transferir_a_otro_grupo(db, service, parroco_service, grupo, otro_grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)
    parroco_service.aprobar(inscripcion['id'])

    resultado = service.transferir_grupo(inscripcion['id'], {'grupo_id': otro_grupo.id, 'motivo': 'Horario'})

    assert resultado['grupo_id'] == otro_grupo.id
    db.refresh(grupo)
    db.refresh(otro_grupo)
    assert grupo.inscripciones_activas == 0
    assert otro_grupo.inscripciones_activas == 1


def test_transferir_exige_inscripcion_activa(service, grupo, otro_grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)

    with pytest.raises(InvalidStateError):
        service.transferir_grupo(inscripcion['id'], {'grupo_id': otro_grupo.id, 'motivo': 'Horario'})


def test_transferir_exige_el_mismo_nivel(db, service, parroco_service, parroquia, grupo, crear_catequizando):
    confirmacion = Nivel(nombre='Confirmación', orden=2)
    db.add(confirmacion)
    db.flush()
    destino = Grupo(
        nombre='Grupo Confirmación',
        parroquia_id=parroquia.id,
        nivel_id=confirmacion.id,
        periodo='2025-2026',
        capacidad_maxima=10,
        horarios=[]
    )
    db.add(destino)
    db.commit()

    inscripcion = inscribir(service, crear_catequizando(), grupo)
    parroco_service.aprobar(inscripcion['id'])

    with pytest.raises(ValidationError) as exc_info:
        service.transferir_grupo(inscripcion['id'], {'grupo_id': destino.id, 'motivo': 'Horario'})

    assert 'grupo_id' in exc_info.value.details
    assert db.get(Inscripcion, inscripcion['id']).grupo_id == grupo.id


def test_no_se_elimina_con_asistencias(db, usuarios, service, parroco_service, grupo, crear_catequizando):

    inscripcion = inscribir(service, crear_catequizando(), grupo)
    AsistenciaService(db, usuario_actual(usuarios['catequista'])).create({
        'inscripcion_id': inscripcion['id'], 'fecha': dia(1).isoformat(), 'asistio': True
    })

    with pytest.raises(DependentRecordsError):
        parroco_service.delete(inscripcion['id'])


def test_eliminar_inscripcion_sin_asistencias(db, service, parroco_service, grupo, crear_catequizando):
    inscripcion = inscribir(service, crear_catequizando(), grupo)

    assert parroco_service.delete(inscripcion['id']) is True
    assert db.get(Inscripcion, inscripcion['id']) is None
    assert db.get(Grupo, grupo.id).total_inscripciones == 0


# ==========================================
# ESTADÍSTICAS
# ==========================================

def test_estadisticas(service, parroco_service, grupo, crear_catequizando):
    primera = inscribir(service, crear_catequizando(), grupo)
    inscribir(service, crear_catequizando(), grupo)
    parroco_service.aprobar(primera['id'])

    estadisticas = service.get_estadisticas(grupo_id=grupo.id)

    assert estadisticas['total'] == 2
    assert estadisticas['pendientes'] == 1
    assert estadisticas['activas'] == 1
