import os
from datetime import date, timedelta

os.environ.setdefault('APP_ENV', 'testing')

import pytest
from fastapi.testclient import TestClient

from app.database.connection import Base, SessionLocal, engine, get_db, init_db
from app.models.catequesis.catequizando_model import Catequizando
from app.models.catequesis.grupo_model import Grupo, GrupoCatequista
from app.models.catequesis.nivel_model import Nivel
from app.models.parroquias.parroquia_model import Parroquia
from app.models.seguridad.usuario_model import Usuario
from app.services.seguridad.auth_service import create_access_token, hash_password
from app.utils.constants import Rol, RolCatequista
from app.utils.date_utils import get_current_date

PASSWORD = 'clave-segura-123'


def usuario_actual(usuario: Usuario) -> dict:
    """Usuario autenticado tal como lo entrega el middleware."""
    return {
        'id': usuario.id,
        'username': usuario.username,
        'rol': usuario.rol.value,
        'parroquia_id': usuario.parroquia_id
    }


def auth_headers(usuario: Usuario) -> dict:
    return {'Authorization': f"Bearer {create_access_token(usuario.to_token_claims())}"}


def dia(n: int) -> date:
    """Hace n días, en la zona horaria de la aplicación."""
    return get_current_date() - timedelta(days=n)


@pytest.fixture
def db():
    init_db(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def parroquia(db):
    parroquia = Parroquia(nombre='San José', direccion='Av. Principal 123', ciudad='Quito')
    db.add(parroquia)
    db.commit()
    return parroquia


@pytest.fixture
def otra_parroquia(db):
    parroquia = Parroquia(nombre='Santa Ana', direccion='Calle Secundaria 45', ciudad='Cuenca')
    db.add(parroquia)
    db.commit()
    return parroquia


@pytest.fixture
def usuarios(db, parroquia, otra_parroquia):
    """Un usuario por perfil; el admin no tiene parroquia."""
    datos = {
        'admin': (Rol.ADMIN, None),
        'parroco': (Rol.PARROCO, parroquia.id),
        'secretaria': (Rol.SECRETARIA, parroquia.id),
        'catequista': (Rol.CATEQUISTA, parroquia.id),
        'catequista_libre': (Rol.CATEQUISTA, parroquia.id),
        'consulta': (Rol.CONSULTA, parroquia.id),
        'secretaria_otra': (Rol.SECRETARIA, otra_parroquia.id),
    }
    creados = {}
    password_hash = hash_password(PASSWORD)
    for username, (rol, parroquia_id) in datos.items():
        usuario = Usuario(
            username=username,
            email=f"{username}@catequesis.test",
            password_hash=password_hash,
            nombres=username.title(),
            apellidos='Prueba',
            rol=rol,
            parroquia_id=parroquia_id
        )
        db.add(usuario)
        creados[username] = usuario
    db.commit()
    return creados


@pytest.fixture
def nivel(db):
    nivel = Nivel(nombre='Primera Comunión', orden=1, edad_minima=7, edad_maxima=12)
    db.add(nivel)
    db.commit()
    return nivel


@pytest.fixture
def grupo(db, parroquia, nivel, usuarios):
    """Grupo con capacidad 3 y el catequista asignado como coordinador."""
    grupo = Grupo(
        nombre='Grupo A',
        parroquia_id=parroquia.id,
        nivel_id=nivel.id,
        periodo='2025-2026',
        capacidad_maxima=3,
        horarios=[]
    )
    grupo.catequistas.append(
        GrupoCatequista(usuario_id=usuarios['catequista'].id, rol=RolCatequista.COORDINADOR)
    )
    db.add(grupo)
    db.commit()
    return grupo


@pytest.fixture
def otro_grupo(db, parroquia, nivel):
    grupo = Grupo(
        nombre='Grupo B',
        parroquia_id=parroquia.id,
        nivel_id=nivel.id,
        periodo='2025-2026',
        capacidad_maxima=10,
        horarios=[]
    )
    db.add(grupo)
    db.commit()
    return grupo


@pytest.fixture
def crear_catequizando(db, parroquia):
    contador = {'n': 0}

    def _crear(apellidos: str = None, parroquia_id: int = None) -> Catequizando:
        contador['n'] += 1
        n = contador['n']
        catequizando = Catequizando(
            nombres=f"Nombre{n}",
            apellidos=apellidos or f"Apellido{n:02d}",
            documento_identidad=f"DOC{n:05d}",
            fecha_nacimiento=date(2016, 1, 1) + timedelta(days=n),
            parroquia_id=parroquia_id or parroquia.id
        )
        db.add(catequizando)
        db.commit()
        return catequizando

    return _crear


@pytest.fixture
def client(db):
    from app.main import create_app

    app = create_app()

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app)
