# ===================================
# sweetshop/core/exceptions.py
# ===================================
"""
Hiérarchie d'exceptions typées du domaine.

Chaque exception porte un ``code`` lisible par machine, un ``message`` destiné
à l'utilisateur et des données structurées (``extra``) rendues telles quelles
dans le corps JSON de la réponse. La correspondance avec les codes HTTP est
faite à un seul endroit, dans ``sweetshop.main``.

    SweetShopError
    +-- ValidationError
    +-- DuplicateAccountError
    +-- DuplicateNameError
    +-- InvalidCredentialsError
    +-- InvalidIdError
    +-- StockError
    |   +-- OutOfStockError
    |   +-- InsufficientStockError
    +-- UnauthenticatedError
    +-- ForbiddenError
    +-- NotFoundError
"""

from typing import Any, Dict, Optional


class SweetShopError(Exception):
    """Base de toutes les erreurs métier"""

    code: str = "SWEET_SHOP_ERROR"
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def extra(self) -> Dict[str, Any]:
        """Données structurées ajoutées au corps de la réponse"""
        return {}


class ValidationError(SweetShopError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class DuplicateAccountError(SweetShopError):
    code = "DUPLICATE_ACCOUNT"
    default_message = "User already exists"


class DuplicateNameError(SweetShopError):
    code = "DUPLICATE_NAME"
    default_message = "Sweet with this name already exists"


class InvalidCredentialsError(SweetShopError):
    """Même message pour email inconnu et mot de passe erroné"""

    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class InvalidIdError(SweetShopError):
    code = "INVALID_ID"
    default_message = "Invalid sweet ID format"


class StockError(SweetShopError):
    code = "STOCK_ERROR"

    def __init__(self, available: int, message: Optional[str] = None):
        self.available = available
        super().__init__(message)

    @property
    def extra(self) -> Dict[str, Any]:
        return {"availableQuantity": self.available}


class OutOfStockError(StockError):
    code = "OUT_OF_STOCK"
    default_message = "Out of stock"

    def __init__(self, message: Optional[str] = None):
        super().__init__(0, message)


class InsufficientStockError(StockError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, available: int):
        super().__init__(
            available, f"Insufficient stock. Only {available} available"
        )


class UnauthenticatedError(SweetShopError):
    code = "UNAUTHENTICATED"
    default_message = "Authentication failed"


class ForbiddenError(SweetShopError):
    code = "FORBIDDEN"
    default_message = "Access denied. Admin privileges required."

    def __init__(self, role: str, message: Optional[str] = None):
        self.role = role
        super().__init__(message)

    @property
    def extra(self) -> Dict[str, Any]:
        return {"yourRole": self.role}


class NotFoundError(SweetShopError):
    code = "NOT_FOUND"
    default_message = "Sweet not found"
