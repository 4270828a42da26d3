# ===================================
# sweetshop/repositories/user_repo.py
# ===================================
import uuid
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update

from sweetshop.models.user import User, UserRole


def get_user_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
    """Récupérer un utilisateur par son ID"""
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Récupérer un utilisateur par son email (correspondance exacte)"""
    return db.scalar(select(User).where(User.email == email))


def create_user(db: Session, email: str, password_hash: str,
                role: UserRole = UserRole.USER) -> User:
    """Créer un nouvel utilisateur"""
    db_user = User(
        email=email,
        password_hash=password_hash,
        role=UserRole(role).value
    )

    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_user_role(db: Session, user_id: uuid.UUID, role: UserRole) -> bool:
    """Changer le rôle d'un utilisateur"""
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(role=UserRole(role).value)
    )
    db.commit()
    return result.rowcount > 0
