# ===================================
# sweetshop/models/sweet.py
# ===================================
import uuid

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, CheckConstraint, Index, Uuid, func
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import validates

from sweetshop.core.database import Base
from sweetshop.core.exceptions import ValidationError
from sweetshop.models.user import utcnow

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100


class Sweet(Base):
    __tablename__ = "sweet"
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_positive'),
        CheckConstraint('quantity >= 0', name='check_quantity_positive'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Informations principales
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    category = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False, index=True)

    # Stock
    quantity = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Sweet(id={self.id}, name='{self.name}', qty={self.quantity})>"

    @hybrid_property
    def in_stock(self):
        """En stock si la quantité est positive"""
        return self.quantity > 0

    @validates("name")
    def validate_name(self, key, value):
        if value is None:
            raise ValidationError("Sweet name is required")
        value = str(value).strip()
        if len(value) < NAME_MIN_LENGTH:
            raise ValidationError(f"Name must be at least {NAME_MIN_LENGTH} characters")
        if len(value) > NAME_MAX_LENGTH:
            raise ValidationError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
        return value

    @validates("category")
    def validate_category(self, key, value):
        value = str(value).strip() if value is not None else ""
        if not value:
            raise ValidationError("Category is required")
        return value

    @validates("price")
    def validate_price(self, key, value):
        if value is None:
            raise ValidationError("Price is required")
        if value < 0:
            raise ValidationError("Price cannot be negative")
        return value

    @validates("quantity")
    def validate_quantity(self, key, value):
        if value is None:
            raise ValidationError("Quantity is required")
        if value < 0:
            raise ValidationError("Quantity cannot be negative")
        return value


# Unicité du nom, insensible à la casse
Index('uq_sweet_name_lower', func.lower(Sweet.name), unique=True)
