# ===================================
# sweetshop/api/v1/sweets.py
# ===================================
from typing import Any, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from sweetshop.api.deps import get_current_user, require_admin
from sweetshop.core.database import get_db
from sweetshop.core.security import AuthContext
from sweetshop.services.sweet_service import SweetService
from sweetshop.schemas.sweet import (
    Sweet,
    SweetCreate,
    SweetUpdate,
    SweetResponse,
    SweetsListResponse,
    StockChangeRequest,
    PurchaseResponse,
    RestockResponse,
)

router = APIRouter()


def _quantity(payload: Optional[StockChangeRequest]):
    return payload.quantity if payload is not None else None


@router.get("", response_model=SweetsListResponse)
def list_sweets(
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Récupérer tous les sweets, les plus récents d'abord
    """
    sweets = SweetService(db).list_sweets()

    return SweetsListResponse(
        count=len(sweets),
        sweets=[Sweet.from_orm(sweet) for sweet in sweets]
    )


@router.get("/search", response_model=SweetsListResponse)
def search_sweets(
    name: Optional[str] = Query(None, description="Sous-chaîne du nom (insensible à la casse)"),
    category: Optional[str] = Query(None, description="Catégorie exacte (insensible à la casse)"),
    min_price: Optional[str] = Query(None, alias="min", description="Prix minimum inclus"),
    max_price: Optional[str] = Query(None, alias="max", description="Prix maximum inclus"),
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Rechercher des sweets, triés par nom
    """
    sweets = SweetService(db).search_sweets(
        name=name,
        category=category,
        min_price=min_price,
        max_price=max_price
    )

    return SweetsListResponse(
        count=len(sweets),
        sweets=[Sweet.from_orm(sweet) for sweet in sweets]
    )


@router.post("", response_model=SweetResponse, status_code=status.HTTP_201_CREATED)
def add_sweet(
    sweet_data: SweetCreate,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Any:
    """
    Créer un nouveau sweet (Admin)
    """
    sweet = SweetService(db).add_sweet(
        name=sweet_data.name,
        category=sweet_data.category,
        price=sweet_data.price,
        quantity=sweet_data.quantity
    )

    return SweetResponse(
        message="Sweet added successfully",
        sweet=Sweet.from_orm(sweet)
    )


@router.put("/{sweet_id}", response_model=SweetResponse)
def update_sweet(
    sweet_id: str,
    sweet_update: SweetUpdate,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Any:
    """
    Mettre à jour un sweet (Admin)
    """
    sweet = SweetService(db).update_sweet(
        sweet_id, sweet_update.dict(exclude_unset=True)
    )

    return SweetResponse(
        message="Sweet updated successfully",
        sweet=Sweet.from_orm(sweet)
    )


@router.delete("/{sweet_id}", response_model=SweetResponse)
def delete_sweet(
    sweet_id: str,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Any:
    """
    Supprimer définitivement un sweet (Admin)
    """
    sweet = SweetService(db).delete_sweet(sweet_id)

    return SweetResponse(
        message="Sweet deleted successfully",
        sweet=Sweet.from_orm(sweet)
    )


@router.post("/{sweet_id}/purchase", response_model=PurchaseResponse)
def purchase_sweet(
    sweet_id: str,
    payload: Optional[StockChangeRequest] = None,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """
    Acheter un sweet (tout utilisateur connecté)
    """
    result = SweetService(db).purchase_sweet(sweet_id, _quantity(payload))

    return PurchaseResponse(
        message=f"Successfully purchased {result.purchased_quantity} {result.sweet.name}(s)",
        sweet=Sweet.from_orm(result.sweet),
        purchased_quantity=result.purchased_quantity,
        total_cost=result.total_cost
    )


@router.put("/{sweet_id}/restock", response_model=RestockResponse)
def restock_sweet(
    sweet_id: str,
    payload: Optional[StockChangeRequest] = None,
    current_user: AuthContext = Depends(require_admin),
    db: Session = Depends(get_db)
) -> Any:
    """
    Réapprovisionner un sweet (Admin)
    """
    result = SweetService(db).restock_sweet(sweet_id, _quantity(payload))

    return RestockResponse(
        message=f"Successfully restocked {result.restocked_quantity} {result.sweet.name}(s)",
        sweet=Sweet.from_orm(result.sweet),
        restocked_quantity=result.restocked_quantity
    )
