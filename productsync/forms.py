import math
from typing import Dict, Optional, Tuple

from .models import Product

FormErrors = Dict[str, str]


def parse_product_form(
    name: str, price: str, stock: str, category: str, user_id: str, product_id: str = ""
) -> Tuple[Optional[Product], FormErrors]:
    """Validate raw form input and build a Product.

    Returns ``(product, {})`` when every field is valid, otherwise
    ``(None, errors)`` keyed by field name.
    """
    errors: FormErrors = {}

    if not name or not name.strip():
        errors["name"] = "Name is required"

    parsed_price = None
    try:
        parsed_price = float(price)
    except (TypeError, ValueError):
        pass
    if parsed_price is None or not math.isfinite(parsed_price) or parsed_price < 0:
        errors["price"] = "Enter a valid price"

    parsed_stock = None
    try:
        parsed_stock = int(stock)
    except (TypeError, ValueError):
        pass
    if parsed_stock is None or parsed_stock < 0:
        errors["stock"] = "Enter a valid stock"

    if not category or not category.strip():
        errors["category"] = "Select a category"

    if errors:
        return None, errors

    product = Product(
        id=product_id,
        user_id=user_id,
        name=name.strip(),
        price=parsed_price,
        stock=parsed_stock,
        category=category.strip(),
    )
    return product, {}


def validate_credentials(email: str, password: str, confirm_password: Optional[str] = None) -> Optional[str]:
    if not email or not email.strip():
        return "Email must not be empty"
    if not password or not password.strip():
        return "Password must not be empty"
    if confirm_password is not None:
        if not confirm_password.strip():
            return "Confirm your password"
        if password != confirm_password:
            return "Passwords do not match"
    return None
