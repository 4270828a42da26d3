# ===================================
# sweetshop/models/user.py
# ===================================
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, String, DateTime, Uuid

from sweetshop.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """Rôles des comptes"""
    USER = "USER"      # Consulter, rechercher, acheter
    ADMIN = "ADMIN"    # Gérer le catalogue et le stock


class User(Base):
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)

    # Authentification
    password_hash = Column(String, nullable=False)
    role = Column(String(16), default=UserRole.USER.value, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    def has_role(self, role: UserRole) -> bool:
        """Vérifier si l'utilisateur a un rôle spécifique"""
        return self.role == UserRole(role).value
