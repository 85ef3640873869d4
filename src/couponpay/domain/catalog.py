"""Static product catalog."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    """A fixed-price line item that can be put in a cart."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    unit_name: str
    price_sol: Decimal
    price_usd: Decimal


PRODUCTS: tuple[Product, ...] = (
    Product(
        id="single-day",
        name="Single Day",
        description="Full day of guided fly fishing. Includes lunch and gear.",
        unit_name="trip",
        price_sol=Decimal("0.06"),
        price_usd=Decimal("595"),
    ),
    Product(
        id="two-days",
        name="Two Days",
        description="Two full days of guided fly fishing. Includes lunch and gear.",
        unit_name="trip",
        price_sol=Decimal("0.12"),
        price_usd=Decimal("1190"),
    ),
)


def find_product(product_id: str) -> Optional[Product]:
    for product in PRODUCTS:
        if product.id == product_id:
            return product
    return None
