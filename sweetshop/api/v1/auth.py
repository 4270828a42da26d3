# ===================================
# sweetshop/api/v1/auth.py
# ===================================
from typing import Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sweetshop.api.deps import get_app_settings, get_current_user
from sweetshop.core.config import Settings
from sweetshop.core.database import get_db
from sweetshop.core.security import AuthContext
from sweetshop.schemas.user import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    User,
    UserDetail,
)
from sweetshop.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> Any:
    """
    Inscription d'un nouvel utilisateur
    """
    auth_service = AuthService(db, settings)
    role = auth_service.register(email=user_data.email, password=user_data.password)

    return RegisterResponse(
        message="User registered successfully",
        role=role.value
    )


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> Any:
    """
    Connexion d'un utilisateur
    """
    auth_service = AuthService(db, settings)
    result = auth_service.login(email=login_data.email, password=login_data.password)

    return LoginResponse(
        token=result.token,
        user=User.from_orm(result.user)
    )


@router.get("/me", response_model=MeResponse)
def get_current_user_info(
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> Any:
    """
    Récupérer les informations de l'utilisateur connecté
    """
    auth_service = AuthService(db, settings)
    user = auth_service.get_user(current_user.user_id)

    return MeResponse(user=UserDetail.from_orm(user))
