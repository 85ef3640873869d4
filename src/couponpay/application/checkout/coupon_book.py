"""The buyer's coupon book: loyalty tokens collected toward a discount.

Every settled checkout earns one coupon. A full book of
``COUPON_BOOK_SIZE`` coupons is worth ``DISCOUNT_PERCENT`` off the next trip.
"""

from __future__ import annotations

import logging

from ...crypto.keys import derive_holding_address
from ...domain.ledger.entities import Commitment
from ...domain.shared import LedgerClientProtocol

logger = logging.getLogger(__name__)

COUPON_BOOK_SIZE = 5
DISCOUNT_PERCENT = 15

COLLECTED_MARK = "🎣"
EMPTY_MARK = "⚪"


async def get_coupon_balance(
    ledger: LedgerClientProtocol,
    owner: str,
    loyalty_token: str,
    cap: int = COUPON_BOOK_SIZE,
    commitment: Commitment = "confirmed",
) -> int:
    """Whole coupons held by `owner`, capped at `cap`.

    A buyer without a loyalty holding account has collected nothing yet; the
    merchant creates the account on their first checkout.
    """
    address = derive_holding_address(owner, loyalty_token)
    account = await ledger.get_holding_account(address, commitment)
    if account is None:
        logger.info("%s does not have a coupon account yet", owner)
        return 0

    metadata = await ledger.get_token_metadata(loyalty_token)
    coupons = account.amount // 10**metadata.decimals
    return min(coupons, cap)


def format_coupon_book(balance: int, size: int = COUPON_BOOK_SIZE) -> str:
    collected = max(0, min(balance, size))
    marks = COLLECTED_MARK * collected + EMPTY_MARK * (size - collected)
    return (
        f"Take {size} trips to receive a {DISCOUNT_PERCENT}% discount on your "
        f"next trip! {marks}"
    )
