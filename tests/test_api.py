import pytest

from conftest import PASSWORD, auth_headers, dia


@pytest.fixture
def catequizando(crear_catequizando):
    return crear_catequizando(apellidos='Zambrano')


def crear_inscripcion(client, usuario, catequizando, grupo, **extra):
    return client.post(
        '/api/inscripciones',
        json={'catequizando_id': catequizando.id, 'grupo_id': grupo.id, **extra},
        headers=auth_headers(usuario)
    )


# ==========================================
# AUTENTICACIÓN
# ==========================================

def test_health_es_publico(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json()['data']['status'] == 'ok'


def test_login_exitoso(client, usuarios):
    response = client.post('/api/auth/login', json={'username': 'secretaria', 'password': PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['data']['token_type'] == 'bearer'
    assert body['data']['usuario']['username'] == 'secretaria'

    token = body['data']['access_token']
    perfil = client.get('/api/auth/me', headers={'Authorization': f"Bearer {token}"})
    assert perfil.status_code == 200
    assert perfil.json()['data']['rol'] == 'secretaria'


def test_login_con_password_incorrecto(client, usuarios):
    response = client.post('/api/auth/login', json={'username': 'secretaria', 'password': 'otra-clave'})

    assert response.status_code == 401
    assert response.json()['error']['code'] == 'AUTHENTICATION_ERROR'


def test_request_sin_token(client):
    response = client.get('/api/inscripciones')

    assert response.status_code == 401
    body = response.json()
    assert body['success'] is False
    assert body['error']['code'] == 'AUTHENTICATION_ERROR'


def test_token_invalido(client):
    response = client.get('/api/inscripciones', headers={'Authorization': 'Bearer no-es-un-token'})

    assert response.status_code == 401


# ==========================================
# INSCRIPCIONES
# ==========================================

def test_crear_inscripcion(client, usuarios, grupo, catequizando):
    response = crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo)

    assert response.status_code == 201
    data = response.json()['data']
    assert data['estado'] == 'pendiente'
    assert data['grupo_id'] == grupo.id


def test_inscripcion_duplicada_es_conflicto(client, usuarios, grupo, catequizando):
    crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo)

    response = crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo)

    assert response.status_code == 409
    assert response.json()['error']['code'] == 'DUPLICATE_RECORD'


def test_perfil_de_consulta_no_inscribe(client, usuarios, grupo, catequizando):
    response = crear_inscripcion(client, usuarios['consulta'], catequizando, grupo)

    assert response.status_code == 403
    assert response.json()['error']['code'] == 'AUTHORIZATION_ERROR'


def test_otra_parroquia_no_ve_la_inscripcion(client, usuarios, grupo, catequizando):
    creada = crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo).json()['data']

    response = client.get(f"/api/inscripciones/{creada['id']}", headers=auth_headers(usuarios['secretaria_otra']))

    assert response.status_code == 403


def test_inscripcion_inexistente(client, usuarios):
    response = client.get('/api/inscripciones/999', headers=auth_headers(usuarios['admin']))

    assert response.status_code == 404
    assert response.json()['error']['code'] == 'RECORD_NOT_FOUND'


def test_datos_invalidos(client, usuarios, grupo):
    response = client.post(
        '/api/inscripciones', json={'grupo_id': grupo.id}, headers=auth_headers(usuarios['secretaria'])
    )

    assert response.status_code == 400
    error = response.json()['error']
    assert error['code'] == 'VALIDATION_ERROR'
    assert 'catequizando_id' in error['details']


def test_parametro_de_ruta_invalido(client, usuarios):
    response = client.get('/api/inscripciones/0', headers=auth_headers(usuarios['admin']))

    assert response.status_code == 400
    assert response.json()['error']['code'] == 'VALIDATION_ERROR'


def test_listado_paginado(client, usuarios, grupo, crear_catequizando):
    for _ in range(3):
        crear_inscripcion(client, usuarios['secretaria'], crear_catequizando(), grupo)

    response = client.get(
        '/api/inscripciones', params={'page': 1, 'per_page': 2, 'estado': 'pendiente'},
        headers=auth_headers(usuarios['parroco'])
    )

    assert response.status_code == 200
    body = response.json()
    assert len(body['data']) == 2
    assert body['pagination']['total'] == 3
    assert body['pagination']['pages'] == 2


def test_listado_de_otra_parroquia_vacio(client, usuarios, grupo, catequizando):
    crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo)

    response = client.get('/api/inscripciones', headers=auth_headers(usuarios['secretaria_otra']))

    assert response.json()['pagination']['total'] == 0


def test_paginacion_invalida(client, usuarios):
    response = client.get('/api/inscripciones', params={'per_page': 500}, headers=auth_headers(usuarios['admin']))

    assert response.status_code == 400


def test_aprobar_y_transicion_invalida(client, usuarios, grupo, catequizando):
    creada = crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo).json()['data']
    url = f"/api/inscripciones/{creada['id']}"

    assert client.put(f"{url}/aprobar", headers=auth_headers(usuarios['secretaria'])).status_code == 403

    response = client.put(f"{url}/aprobar", headers=auth_headers(usuarios['parroco']))
    assert response.status_code == 200
    assert response.json()['data']['estado'] == 'activa'

    response = client.put(f"{url}/estado", json={'estado': 'pendiente'}, headers=auth_headers(usuarios['parroco']))
    assert response.status_code == 409
    assert response.json()['error']['code'] == 'INVALID_STATE_TRANSITION'


# ==========================================
# ASISTENCIA
# ==========================================

def test_registrar_asistencia_de_grupo(client, usuarios, grupo, crear_catequizando):
    ids = []
    for _ in range(2):
        creada = crear_inscripcion(client, usuarios['secretaria'], crear_catequizando(), grupo).json()['data']
        client.put(f"/api/inscripciones/{creada['id']}/aprobar", headers=auth_headers(usuarios['parroco']))
        ids.append(creada['id'])

    response = client.post('/api/asistencias/grupo', json={
        'grupo_id': grupo.id,
        'fecha': dia(1).isoformat(),
        'asistencias': [
            {'inscripcion_id': ids[0], 'asistio': True},
            {'inscripcion_id': ids[1], 'asistio': False, 'motivo_ausencia': 'viaje'},
        ]
    }, headers=auth_headers(usuarios['catequista']))

    assert response.status_code == 201
    assert len(response.json()['data']) == 2

    inscripcion = client.get(f"/api/inscripciones/{ids[1]}", headers=auth_headers(usuarios['catequista']))
    assert inscripcion.json()['data']['evaluacion']['asistencia']['porcentaje_asistencia'] == 0


def test_asistencia_duplicada(client, usuarios, grupo, catequizando):
    creada = crear_inscripcion(client, usuarios['secretaria'], catequizando, grupo).json()['data']
    datos = {'inscripcion_id': creada['id'], 'fecha': dia(1).isoformat(), 'asistio': True}
    headers = auth_headers(usuarios['catequista'])

    assert client.post('/api/asistencias', json=datos, headers=headers).status_code == 201

    response = client.post('/api/asistencias', json=datos, headers=headers)
    assert response.status_code == 409
    assert response.json()['error']['code'] == 'DUPLICATE_ATTENDANCE'
