"""Client library that keeps a user's product list in sync with the document store."""

from .client import StoreClient
from .models import Product, ProductState, AuthState, Session, CATEGORIES
from .outcome import Outcome
from .repository import ProductRepository
from .auth import AuthRepository
from .viewmodels import ProductViewModel, AuthViewModel

__all__ = [
    "StoreClient", "Product", "ProductState", "AuthState", "Session", "CATEGORIES",
    "Outcome", "ProductRepository", "AuthRepository", "ProductViewModel", "AuthViewModel",
]
