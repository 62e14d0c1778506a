from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

PRODUCTS_COLLECTION = "products"
OWNER_FIELD = "userId"

# suggested only, the store accepts any category
CATEGORIES = ("Electrónica", "Ropa", "Alimentos", "Hogar", "Deportes", "Otros")


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = ""
    user_id: str = Field("", alias="userId")
    name: str = Field(..., alias="nombre", min_length=1)
    price: float = Field(0.0, alias="precio", ge=0)
    stock: int = Field(0, ge=0)
    category: str = Field("", alias="categoria")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Product name cannot be blank")
        return v

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Optional["Product"]:
        """Build a product from a stored document, or None if the document does not fit."""
        try:
            return cls.model_validate(doc)
        except ValidationError:
            return None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"id"})


class Session(BaseModel):
    uid: str
    email: str
    token: str


@dataclass(frozen=True)
class ProductState:
    products: Tuple[Product, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None
    success_message: Optional[str] = None


@dataclass(frozen=True)
class AuthState:
    is_loading: bool = False
    is_logged_in: bool = False
    error: Optional[str] = None
    user_id: Optional[str] = None
