# ===================================
# sweetshop/repositories/sweet_repo.py
# ===================================
import uuid
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update, func, and_, asc, desc

from sweetshop.models.sweet import Sweet


class SweetRepository:
    """Repository pour la gestion des sweets"""

    def __init__(self, db: Session):
        self.db = db

    def get_sweet_by_id(self, sweet_id: uuid.UUID) -> Optional[Sweet]:
        """Récupérer un sweet par son ID"""
        return self.db.get(Sweet, sweet_id)

    def get_current_quantity(self, sweet_id: uuid.UUID) -> Optional[int]:
        """Lire la quantité en base (None si le sweet n'existe plus)"""
        return self.db.scalar(select(Sweet.quantity).where(Sweet.id == sweet_id))

    def get_sweet_by_name(self, name: str,
                          exclude_id: Optional[uuid.UUID] = None) -> Optional[Sweet]:
        """Récupérer un sweet par son nom, sans tenir compte de la casse"""
        query = select(Sweet).where(func.lower(Sweet.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.where(Sweet.id != exclude_id)
        return self.db.scalar(query)

    def get_sweets(self) -> List[Sweet]:
        """Tous les sweets, du plus récent au plus ancien"""
        return list(self.db.scalars(
            select(Sweet).order_by(desc(Sweet.created_at))
        ))

    def search_sweets(self,
                      name: Optional[str] = None,
                      category: Optional[str] = None,
                      min_price: Optional[float] = None,
                      max_price: Optional[float] = None) -> List[Sweet]:
        """Recherche filtrée, triée par nom"""
        query = select(Sweet)

        # Filtres
        conditions = []

        if name:
            conditions.append(
                func.lower(Sweet.name).contains(name.lower(), autoescape=True)
            )

        if category:
            conditions.append(func.lower(Sweet.category) == category.lower())

        if min_price is not None:
            conditions.append(Sweet.price >= min_price)
        if max_price is not None:
            conditions.append(Sweet.price <= max_price)

        if conditions:
            query = query.where(and_(*conditions))

        return list(self.db.scalars(query.order_by(asc(Sweet.name))))

    def get_low_stock(self, threshold: int) -> List[Sweet]:
        """Sweets dont la quantité est inférieure ou égale au seuil"""
        return list(self.db.scalars(
            select(Sweet)
            .where(Sweet.quantity <= threshold)
            .order_by(asc(Sweet.quantity), asc(Sweet.name))
        ))

    def create_sweet(self, sweet_data: dict) -> Sweet:
        """Créer un nouveau sweet"""
        sweet = Sweet(**sweet_data)
        self.db.add(sweet)
        self.db.commit()
        self.db.refresh(sweet)
        return sweet

    def update_sweet(self, sweet: Sweet, update_data: dict) -> Sweet:
        """Mettre à jour un sweet (les validateurs du modèle sont rejoués)"""
        for field, value in update_data.items():
            if hasattr(sweet, field) and value is not None:
                setattr(sweet, field, value)

        self.db.commit()
        self.db.refresh(sweet)
        return sweet

    def delete_sweet(self, sweet: Sweet) -> None:
        """Supprimer définitivement un sweet"""
        self.db.delete(sweet)
        self.db.commit()

    def decrement_stock(self, sweet_id: uuid.UUID, quantity: int) -> bool:
        """
        Décrémenter le stock en une seule requête conditionnelle.
        Retourne False si le stock disponible est insuffisant au moment de l'écriture.
        """
        result = self.db.execute(
            update(Sweet)
            .where(Sweet.id == sweet_id, Sweet.quantity >= quantity)
            .values(quantity=Sweet.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return False
        self.db.commit()
        return True

    def increment_stock(self, sweet_id: uuid.UUID, quantity: int,
                        max_quantity: Optional[int] = None) -> bool:
        """
        Incrémenter le stock (incrément SQL, sans lecture préalable).
        Retourne False si le sweet n'existe pas ou si le total dépasserait ``max_quantity``.
        """
        query = update(Sweet).where(Sweet.id == sweet_id)
        if max_quantity is not None:
            query = query.where(Sweet.quantity <= max_quantity - quantity)

        result = self.db.execute(
            query
            .values(quantity=Sweet.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0

    def refresh(self, sweet: Sweet) -> Sweet:
        """Recharger l'état persistant d'un sweet"""
        self.db.refresh(sweet)
        return sweet
