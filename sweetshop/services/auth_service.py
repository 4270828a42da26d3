# ===================================
# sweetshop/services/auth_service.py
# ===================================
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sweetshop.core.config import Settings
from sweetshop.core.exceptions import (
    DuplicateAccountError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from sweetshop.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)
from sweetshop.models.user import User, UserRole
from sweetshop.repositories.user_repo import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    set_user_role,
)

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    token: str
    user: User


class AuthService:
    """Inscription, connexion et émission des tokens"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def register(self, email: Optional[str], password: Optional[str]) -> UserRole:
        """
        Créer un compte et retourner le rôle attribué.

        Le rôle ADMIN n'est accordé qu'à l'email réservé configuré côté serveur
        (``ADMIN_EMAIL``) ; tout autre compte reçoit USER.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        if get_user_by_email(self.db, email=email):
            raise DuplicateAccountError()

        role = self._role_for(email)
        password_hash = get_password_hash(password, rounds=self.settings.password_hash_rounds)
        try:
            create_user(self.db, email=email, password_hash=password_hash, role=role)
        except IntegrityError:
            # Inscription concurrente avec le même email
            self.db.rollback()
            raise DuplicateAccountError()

        logger.info(f"Nouveau compte {email} ({role.value})")
        return role

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """Vérifier les credentials et émettre un token de session"""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = get_user_by_email(self.db, email=email)
        if not user or not verify_password(
            password, user.password_hash, rounds=self.settings.password_hash_rounds
        ):
            logger.warning(f"Échec de connexion pour {email}")
            raise InvalidCredentialsError()

        token = create_access_token(
            subject=user.id,
            role=UserRole(user.role),
            settings=self.settings
        )
        return LoginResult(token=token, user=user)

    def get_user(self, user_id: str) -> User:
        """Récupérer le compte correspondant à un token"""
        try:
            parsed_id = uuid.UUID(str(user_id))
        except ValueError:
            raise NotFoundError("User not found")

        user = get_user_by_id(self.db, parsed_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def set_role(self, user_id: uuid.UUID, role: UserRole) -> None:
        """
        Changer le rôle d'un compte (provisionnement).
        Les tokens déjà émis conservent l'ancien rôle jusqu'à expiration.
        """
        if not set_user_role(self.db, user_id, role):
            raise NotFoundError("User not found")
        logger.info(f"Rôle du compte {user_id} changé en {UserRole(role).value}")

    def _role_for(self, email: str) -> UserRole:
        if self.settings.admin_email and email == self.settings.admin_email:
            return UserRole.ADMIN
        return UserRole.USER
