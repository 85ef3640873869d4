"""Cart pricing over the static catalog."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from ...domain.catalog import find_product

logger = logging.getLogger(__name__)


def _parse_quantity(raw: object) -> Optional[Decimal]:
    try:
        quantity = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not quantity.is_finite() or quantity < 0:
        return None
    return quantity


def calculate_price(cart: Mapping[str, object]) -> Decimal:
    """Total USD price of a cart mapping item id -> quantity string. Pure function.

    Unknown item ids (including non-item query keys such as `reference`) and
    malformed quantities are skipped rather than rejected, so extra query
    parameters never abort a checkout. An empty or fully unrecognized cart
    prices to zero; callers must refuse to charge zero.
    """
    amount = Decimal(0)
    for product_id, raw_quantity in cart.items():
        product = find_product(product_id)
        if product is None:
            continue
        quantity = _parse_quantity(raw_quantity)
        if quantity is None:
            logger.debug("Ignoring malformed quantity %r for %s", raw_quantity, product_id)
            continue
        amount += quantity * product.price_usd
    return amount


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Scale a human-readable amount into integer ledger units.

    Raises:
        ValueError: if the amount has more precision than the token supports.
    """
    scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"Amount {amount} cannot be represented with {decimals} decimals"
        )
    return int(scaled)
