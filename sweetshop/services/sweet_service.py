# ===================================
# sweetshop/services/sweet_service.py
# ===================================

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sweetshop.core.exceptions import (
    DuplicateNameError,
    InsufficientStockError,
    InvalidIdError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from sweetshop.models.sweet import Sweet
from sweetshop.repositories.sweet_repo import SweetRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "category", "price", "quantity")

# Plus grand entier stockable dans une colonne INTEGER (64 bits)
MAX_QUANTITY = 2 ** 63 - 1


@dataclass
class PurchaseResult:
    sweet: Sweet
    purchased_quantity: int
    total_cost: float


@dataclass
class RestockResult:
    sweet: Sweet
    restocked_quantity: int


class SweetService:
    """Service pour la logique métier du catalogue et du stock"""

    def __init__(self, db: Session):
        self.db = db
        self.sweet_repo = SweetRepository(db)

    def add_sweet(self, name: Any, category: Any, price: Any, quantity: Any) -> Sweet:
        """Créer un sweet après contrôle des champs et de l'unicité du nom"""
        if not name or not category or price is None or quantity is None:
            raise ValidationError("All fields are required: name, category, price, quantity")

        sweet_data = {
            "name": name,
            "category": category,
            "price": _to_price(price),
            "quantity": _to_quantity(quantity),
        }

        if self.sweet_repo.get_sweet_by_name(str(name)):
            raise DuplicateNameError()

        try:
            sweet = self.sweet_repo.create_sweet(sweet_data)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateNameError()

        logger.info(f"Sweet créé: {sweet.name} (stock {sweet.quantity})")
        return sweet

    def list_sweets(self) -> List[Sweet]:
        """Tous les sweets, les plus récents d'abord (pas de pagination)"""
        return self.sweet_repo.get_sweets()

    def search_sweets(self,
                      name: Optional[str] = None,
                      category: Optional[str] = None,
                      min_price: Any = None,
                      max_price: Any = None) -> List[Sweet]:
        """
        Recherche combinée (ET logique), triée par nom.
        Les bornes de prix vides ou non numériques sont ignorées.
        """
        return self.sweet_repo.search_sweets(
            name=name or None,
            category=category or None,
            min_price=_parse_bound(min_price),
            max_price=_parse_bound(max_price),
        )

    def update_sweet(self, sweet_id: Any, fields: dict) -> Sweet:
        """Mise à jour partielle : seuls les champs fournis sont modifiés"""
        sweet = self._get_or_404(sweet_id)

        update_data = {
            field: fields[field]
            for field in UPDATABLE_FIELDS
            if fields.get(field) is not None
        }

        if "name" in update_data and self.sweet_repo.get_sweet_by_name(
            str(update_data["name"]), exclude_id=sweet.id
        ):
            raise DuplicateNameError()

        if "price" in update_data:
            update_data["price"] = _to_price(update_data["price"])
        if "quantity" in update_data:
            update_data["quantity"] = _to_quantity(update_data["quantity"])

        try:
            sweet = self.sweet_repo.update_sweet(sweet, update_data)
        except ValidationError:
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            raise DuplicateNameError()

        logger.info(f"Sweet mis à jour: {sweet.id} {sorted(update_data)}")
        return sweet

    def delete_sweet(self, sweet_id: Any) -> Sweet:
        """Suppression définitive ; retourne l'enregistrement supprimé"""
        sweet = self._get_or_404(sweet_id)
        self.sweet_repo.delete_sweet(sweet)
        logger.info(f"Sweet supprimé: {sweet.name} ({sweet.id})")
        return sweet

    def purchase_sweet(self, sweet_id: Any, quantity: Any = 1) -> PurchaseResult:
        """
        Acheter ``quantity`` unités.

        Le décrément est une mise à jour conditionnelle unique : deux achats
        concurrents ne peuvent pas vendre plus que le stock disponible.
        """
        purchase_qty = _to_positive_quantity(quantity)
        sweet = self._get_or_404(sweet_id)

        if sweet.quantity <= 0:
            raise OutOfStockError()
        if sweet.quantity < purchase_qty:
            raise InsufficientStockError(available=sweet.quantity)

        target_id = sweet.id
        if not self.sweet_repo.decrement_stock(target_id, purchase_qty):
            # Le stock a changé entre la lecture et l'écriture
            available = self.sweet_repo.get_current_quantity(target_id)
            if available is None:
                raise NotFoundError()
            if available <= 0:
                raise OutOfStockError()
            raise InsufficientStockError(available=available)

        sweet = self.sweet_repo.refresh(sweet)
        logger.info(f"Achat: {purchase_qty} x {sweet.name}, reste {sweet.quantity}")

        return PurchaseResult(
            sweet=sweet,
            purchased_quantity=purchase_qty,
            total_cost=purchase_qty * sweet.price,
        )

    def restock_sweet(self, sweet_id: Any, quantity: Any = 1) -> RestockResult:
        """Réapprovisionner (incrément atomique, limité à la capacité de la colonne)"""
        restock_qty = _to_positive_quantity(quantity)
        sweet = self._get_or_404(sweet_id)

        if not self.sweet_repo.increment_stock(sweet.id, restock_qty, max_quantity=MAX_QUANTITY):
            if self.sweet_repo.get_current_quantity(sweet.id) is None:
                raise NotFoundError()
            raise ValidationError("Quantity is too large")

        sweet = self.sweet_repo.refresh(sweet)
        logger.info(f"Réassort: +{restock_qty} {sweet.name}, stock {sweet.quantity}")

        return RestockResult(sweet=sweet, restocked_quantity=restock_qty)

    def get_low_stock(self, threshold: int) -> List[Sweet]:
        """Sweets dont le stock est au niveau du seuil ou en dessous"""
        return self.sweet_repo.get_low_stock(threshold)

    def _get_or_404(self, sweet_id: Any) -> Sweet:
        sweet = self.sweet_repo.get_sweet_by_id(parse_sweet_id(sweet_id))
        if not sweet:
            raise NotFoundError()
        return sweet


def parse_sweet_id(sweet_id: Any) -> uuid.UUID:
    """Valider le format d'un identifiant (distinct d'un identifiant inconnu)"""
    if isinstance(sweet_id, uuid.UUID):
        return sweet_id
    try:
        return uuid.UUID(str(sweet_id))
    except ValueError:
        raise InvalidIdError()


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_price(value: Any) -> float:
    price = _to_number(value)
    if price is None:
        raise ValidationError("Price must be a number")
    return price


def _to_quantity(value: Any) -> int:
    quantity = _to_number(value)
    if quantity is None:
        raise ValidationError("Quantity must be a number")
    if not quantity.is_integer():
        raise ValidationError("Quantity must be a whole number")
    if quantity > MAX_QUANTITY:
        raise ValidationError("Quantity is too large")
    return int(quantity)


def _to_positive_quantity(value: Any) -> int:
    if value is None:
        return 1
    quantity = _to_number(value)
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be a positive number")
    if not quantity.is_integer():
        raise ValidationError("Quantity must be a whole number")
    if quantity > MAX_QUANTITY:
        raise ValidationError("Quantity is too large")
    return int(quantity)


def _parse_bound(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return _to_number(value)
