# ===================================
# sweetshop/schemas/sweet.py
# ===================================

from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class SweetCreate(BaseModel):
    """Champs obligatoires contrôlés par le service (message unique)"""
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[float] = None


class SweetUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[float] = None


class StockChangeRequest(BaseModel):
    quantity: Optional[float] = Field(default=None, description="1 par défaut")


class Sweet(BaseModel):
    id: UUID
    name: str
    category: str
    price: float
    quantity: int
    in_stock: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class SweetResponse(BaseModel):
    message: str
    sweet: Sweet


class SweetsListResponse(BaseModel):
    count: int
    sweets: List[Sweet]


class PurchaseResponse(BaseModel):
    message: str
    sweet: Sweet
    purchased_quantity: int
    total_cost: float

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RestockResponse(BaseModel):
    message: str
    sweet: Sweet
    restocked_quantity: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True
