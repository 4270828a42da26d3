# ===================================
# sweetshop/schemas/user.py
# ===================================
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Tout champ ``role`` envoyé par le client est ignoré"""
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class User(BaseModel):
    """Résumé public du compte (jamais de hash)"""
    id: UUID
    email: str
    role: str

    class Config:
        from_attributes = True


class UserDetail(User):
    created_at: Optional[datetime] = None


class RegisterResponse(BaseModel):
    message: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: User


class MeResponse(BaseModel):
    user: UserDetail
