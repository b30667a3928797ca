import pytest

from conftest import usuario_actual
from app.core.exceptions import (
    AuthorizationError, ConflictError, InsufficientPermissionsError, ValidationError
)
from app.models.seguridad.usuario_model import Usuario
from app.services.catequesis.grupo_service import GrupoService
from app.services.catequesis.nivel_service import NivelService
from app.services.parroquias.parroquia_service import ParroquiaService
from app.services.seguridad.auth_service import verify_password
from app.services.seguridad.usuario_service import UsuarioService


@pytest.fixture
def grupo_service(db, usuarios):
    return GrupoService(db, usuario_actual(usuarios['parroco']))


# ==========================================
# GRUPOS
# ==========================================

def test_crear_grupo_en_la_parroquia_del_usuario(grupo_service, parroquia, nivel):
    grupo = grupo_service.create({'nombre': 'Grupo C', 'nivel_id': nivel.id, 'periodo': '2025-2026'})

    assert grupo['parroquia_id'] == parroquia.id
    assert grupo['capacidad_maxima'] == 25
    assert grupo['estadisticas']['total_inscripciones'] == 0


def test_periodo_invalido(grupo_service, nivel):
    with pytest.raises(ValidationError) as exc_info:
        grupo_service.create({'nombre': 'Grupo C', 'nivel_id': nivel.id, 'periodo': '25-26'})

    assert 'periodo' in exc_info.value.details


def test_un_solo_coordinador_activo(grupo_service, usuarios, grupo):
    with pytest.raises(ConflictError):
        grupo_service.asignar_catequista(grupo.id, {'usuario_id': usuarios['catequista_libre'].id,
                                                    'rol': 'coordinador'})

    resultado = grupo_service.asignar_catequista(grupo.id, {'usuario_id': usuarios['catequista_libre'].id,
                                                            'rol': 'auxiliar'})
    assert {c['usuario_id'] for c in resultado['catequistas']} == {
        usuarios['catequista'].id, usuarios['catequista_libre'].id
    }


def test_remover_catequista(grupo_service, usuarios, grupo):
    grupo_service.remover_catequista(grupo.id, usuarios['catequista'].id)

    assert grupo_service.get_catequistas(grupo.id) == []
    assert grupo.tiene_catequista_activo(usuarios['catequista'].id) is False


def test_perfil_de_consulta_no_es_asignable(grupo_service, usuarios, grupo):
    with pytest.raises(ValidationError):
        grupo_service.asignar_catequista(grupo.id, {'usuario_id': usuarios['consulta'].id})


def test_catequista_no_gestiona_grupos(db, usuarios, nivel):
    service = GrupoService(db, usuario_actual(usuarios['catequista']))

    with pytest.raises(InsufficientPermissionsError):
        service.create({'nombre': 'Grupo C', 'nivel_id': nivel.id, 'periodo': '2026'})


# ==========================================
# NIVELES, PARROQUIAS Y USUARIOS
# ==========================================

def test_nivel_con_edades_invertidas(db, usuarios):
    service = NivelService(db, usuario_actual(usuarios['admin']))

    with pytest.raises(ValidationError):
        service.create({'nombre': 'Confirmación', 'edad_minima': 15, 'edad_maxima': 12})


def test_solo_el_admin_gestiona_parroquias(db, usuarios):
    datos = {'nombre': 'San Pedro', 'direccion': 'Calle 1', 'ciudad': 'Loja'}

    with pytest.raises(InsufficientPermissionsError):
        ParroquiaService(db, usuario_actual(usuarios['parroco'])).create(datos)

    creada = ParroquiaService(db, usuario_actual(usuarios['admin'])).create(datos)
    assert creada['nombre'] == 'San Pedro'


def test_crear_usuario_guarda_la_contrasena_hasheada(db, usuarios, parroquia):
    service = UsuarioService(db, usuario_actual(usuarios['parroco']))

    creado = service.create({
        'username': 'nueva.catequista',
        'password': 'clave-nueva-123',
        'nombres': 'María',
        'apellidos': 'López',
        'rol': 'catequista',
        'parroquia_id': parroquia.id
    })

    assert 'password' not in creado
    usuario = db.get(Usuario, creado['id'])
    assert usuario.password_hash != 'clave-nueva-123'
    assert verify_password('clave-nueva-123', usuario.password_hash)


def test_parroco_no_crea_administradores(db, usuarios):
    service = UsuarioService(db, usuario_actual(usuarios['parroco']))

    with pytest.raises(AuthorizationError):
        service.create({
            'username': 'otro.admin',
            'password': 'clave-nueva-123',
            'nombres': 'Otro',
            'apellidos': 'Admin',
            'rol': 'admin'
        })
