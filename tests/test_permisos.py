import pytest

from conftest import usuario_actual
from app.core.exceptions import (
    AuthenticationError, InsufficientPermissionsError, ParishScopeError
)
from app.services.catequesis.inscripcion_service import InscripcionService
from app.services.seguridad.permission_service import Accion, PoliticaAcceso


def politica(rol, parroquia_id=1):
    return PoliticaAcceso({'id': 1, 'username': 'u', 'rol': rol, 'parroquia_id': parroquia_id})


@pytest.mark.parametrize('rol, accion, permitido', [
    ('admin', Accion.GESTIONAR_PARROQUIAS, True),
    ('parroco', Accion.GESTIONAR_PARROQUIAS, False),
    ('parroco', Accion.APROBAR_INSCRIPCION, True),
    ('secretaria', Accion.CREAR_INSCRIPCION, True),
    ('secretaria', Accion.APROBAR_INSCRIPCION, False),
    ('secretaria', Accion.ELIMINAR_ASISTENCIA, False),
    ('catequista', Accion.REGISTRAR_ASISTENCIA, True),
    ('catequista', Accion.CREAR_INSCRIPCION, False),
    ('consulta', Accion.AGREGAR_OBSERVACION, False),
])
def test_acciones_por_perfil(rol, accion, permitido):
    assert politica(rol).puede(accion) is permitido


def test_exigir_accion_no_permitida():
    with pytest.raises(InsufficientPermissionsError) as exc_info:
        politica('consulta').exigir(Accion.CREAR_INSCRIPCION)

    assert exc_info.value.status_code == 403


def test_admin_ve_todas_las_parroquias():
    admin = politica('admin', parroquia_id=None)

    assert admin.puede_ver_parroquia(1) is True
    assert admin.puede_ver_parroquia(2) is True
    assert admin.filtro_parroquia(object()) is None


def test_otros_perfiles_solo_su_parroquia():
    secretaria = politica('secretaria', parroquia_id=1)

    assert secretaria.puede_ver_parroquia(1) is True
    assert secretaria.puede_ver_parroquia(2) is False
    assert secretaria.puede_ver_parroquia(None) is False
    with pytest.raises(ParishScopeError):
        secretaria.exigir_parroquia(2)


def test_sin_usuario_o_perfil_desconocido():
    with pytest.raises(AuthenticationError):
        PoliticaAcceso(None)

    with pytest.raises(AuthenticationError):
        politica('sacristan')


def test_consulta_no_ve_observaciones_privadas():
    assert politica('consulta').ve_observaciones_privadas is False
    assert politica('catequista').ve_observaciones_privadas is True


def test_observaciones_privadas_ocultas_en_la_respuesta(db, usuarios, grupo, crear_catequizando):
    secretaria = InscripcionService(db, usuario_actual(usuarios['secretaria']))
    inscripcion = secretaria.create({'catequizando_id': crear_catequizando().id, 'grupo_id': grupo.id})
    secretaria.agregar_observacion(inscripcion['id'], {'contenido': 'Visible', 'privada': False})
    secretaria.agregar_observacion(inscripcion['id'], {'contenido': 'Reservada', 'privada': True})

    completa = secretaria.get_by_id(inscripcion['id'])
    consulta = InscripcionService(db, usuario_actual(usuarios['consulta'])).get_by_id(inscripcion['id'])

    assert [o['contenido'] for o in completa['observaciones']] == ['Visible', 'Reservada']
    assert [o['contenido'] for o in consulta['observaciones']] == ['Visible']


def test_registros_de_otra_parroquia(db, usuarios, grupo, crear_catequizando):
    secretaria = InscripcionService(db, usuario_actual(usuarios['secretaria']))
    inscripcion = secretaria.create({'catequizando_id': crear_catequizando().id, 'grupo_id': grupo.id})

    otra = InscripcionService(db, usuario_actual(usuarios['secretaria_otra']))

    with pytest.raises(ParishScopeError):
        otra.get_by_id(inscripcion['id'])
    assert otra.get_all()['pagination']['total'] == 0

    admin = InscripcionService(db, usuario_actual(usuarios['admin']))
    assert admin.get_all()['pagination']['total'] == 1
