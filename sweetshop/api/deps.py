# ===================================
# sweetshop/api/deps.py
# ===================================
from typing import Optional
from fastapi import Depends, Header, Request

from sweetshop.core.config import Settings
from sweetshop.core.security import AuthContext, authenticate_header, ensure_admin


def get_app_settings(request: Request) -> Settings:
    """Settings de l'application courante"""
    return request.app.state.settings


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    settings: Settings = Depends(get_app_settings)
) -> AuthContext:
    """
    Identité issue du token bearer (id du compte + rôle figé à l'émission)
    """
    return authenticate_header(authorization, settings)


def require_admin(current_user: AuthContext = Depends(get_current_user)) -> AuthContext:
    """
    Vérifier que l'utilisateur est admin
    """
    return ensure_admin(current_user)
