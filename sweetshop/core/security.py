# ===================================
# sweetshop/core/security.py
# ===================================

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional, Union
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from sweetshop.core.config import Settings
from sweetshop.core.exceptions import ForbiddenError, UnauthenticatedError
from sweetshop.models.user import UserRole


@dataclass(frozen=True)
class AuthContext:
    """Identité extraite d'un token valide, transmise aux handlers"""
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@lru_cache()
def get_password_context(rounds: int) -> CryptContext:
    """Contexte bcrypt unique par coût, pour le hachage et la vérification"""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def verify_password(plain_password: str, hashed_password: str, rounds: int = 12) -> bool:
    """Vérifier un mot de passe"""
    return get_password_context(rounds).verify(plain_password, hashed_password)


def get_password_hash(password: str, rounds: int = 12) -> str:
    """Hacher un mot de passe"""
    return get_password_context(rounds).hash(password)


def create_access_token(
    subject: Union[str, Any],
    role: UserRole,
    settings: Settings,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Créer un token d'accès JWT"""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode = {
        "sub": str(subject),
        "role": UserRole(role).value,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str, settings: Settings) -> AuthContext:
    """Décoder et valider un token JWT"""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise UnauthenticatedError("Token has expired")
    except JWTError:
        raise UnauthenticatedError("Invalid token")

    user_id = payload.get("sub")
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise UnauthenticatedError()
    if not user_id:
        raise UnauthenticatedError()

    return AuthContext(user_id=user_id, role=role)


def authenticate_header(authorization: Optional[str], settings: Settings) -> AuthContext:
    """Première étape : valider l'en-tête ``Authorization: Bearer <token>``"""
    if not authorization:
        raise UnauthenticatedError("No authorization header provided")

    if not authorization.startswith("Bearer "):
        raise UnauthenticatedError("Invalid authorization format. Use: Bearer <token>")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise UnauthenticatedError("No token provided")

    return decode_token(token, settings)


def ensure_admin(context: Optional[AuthContext]) -> AuthContext:
    """Seconde étape : exiger le rôle ADMIN"""
    if context is None:
        raise UnauthenticatedError("Authentication required")

    if not context.is_admin:
        raise ForbiddenError(role=context.role.value)

    return context
