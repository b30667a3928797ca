"""
Rutas de autenticación.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.response_handler import success_response
from app.database.connection import get_db
from app.middleware.auth_middleware import get_current_user
from app.services.seguridad.auth_service import AuthService

router = APIRouter()


@router.post("/login")
def login(data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Autentica con username y password y devuelve un token Bearer."""
    resultado = AuthService(db).login(data)
    return success_response(resultado, "Login exitoso")


@router.get("/me")
def me(db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    return success_response(AuthService(db).me(current_user), "Perfil del usuario")
