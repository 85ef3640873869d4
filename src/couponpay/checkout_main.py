"""Buyer checkout CLI.

Prices a cart, gets it paid (either by signing the merchant's transaction
with the configured buyer key, or by printing a transfer link for an
external wallet) and then watches the ledger until the payment settles.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from decimal import Decimal
from typing import Optional, Sequence

import httpx

from .application.checkout.buyer_agent import sign_and_submit
from .application.checkout.coupon_book import format_coupon_book, get_coupon_balance
from .application.checkout.settlement import (
    Cancelled,
    InvalidSettlement,
    Settled,
    SettlementOutcome,
    SettlementWatcher,
    TimedOut,
)
from .application.checkout.settlement_validators import ExpectedSettlement
from .application.merchant.pricing import calculate_price
from .application.shared.payment_links import (
    TransferRequest,
    encode_transfer_request_url,
)
from .crypto.keys import generate_reference, load_private_key_from_pem, public_key_b64
from .domain.errors import LedgerError, MerchantRequestError
from .envs.checkout_env import Settings, get_settings
from .infrastructure.ledger.ledger_client import AsyncLedgerClient
from .infrastructure.merchant.merchant_client_async import MerchantClientAsync

logger = logging.getLogger(__name__)


def parse_items(items: Sequence[str]) -> dict[str, str]:
    """Turn ``["single-day=1", "two-days=2"]`` into a cart mapping."""
    cart: dict[str, str] = {}
    for item in items:
        product_id, sep, quantity = item.partition("=")
        if not sep or not product_id:
            raise argparse.ArgumentTypeError(
                f"Item must look like <product>=<quantity>, got {item!r}"
            )
        cart[product_id] = quantity
    return cart


async def _pay_with_buyer_key(
    settings: Settings, cart: dict[str, str], reference: str
) -> None:
    if settings.buyer_private_key_pem is None:
        raise ValueError("BUYER_PRIVATE_KEY_PEM is required in transaction mode")
    buyer_key = load_private_key_from_pem(settings.buyer_private_key_pem)

    async with MerchantClientAsync(settings.merchant_base_url) as merchant:
        metadata = await merchant.get_metadata()
        print(f"Paying {metadata.label}")
        result = await merchant.make_transaction(
            cart, reference, public_key_b64(buyer_key)
        )
    print(result.message)

    async with AsyncLedgerClient(settings.ledger_rpc_url) as ledger:
        signature = await sign_and_submit(ledger, result.transaction, buyer_key)
    print(f"Submitted transaction {signature}")


def _buyer_public_key(settings: Settings) -> Optional[str]:
    if settings.buyer_private_key_pem is None:
        return None
    return public_key_b64(load_private_key_from_pem(settings.buyer_private_key_pem))


async def _show_coupon_book(settings: Settings, buyer: str) -> None:
    assert settings.loyalty_token is not None
    try:
        async with AsyncLedgerClient(settings.ledger_rpc_url) as ledger:
            balance = await get_coupon_balance(ledger, buyer, settings.loyalty_token)
    except (LedgerError, httpx.HTTPError) as e:
        logger.warning("Could not read coupon balance: %s", e)
        return
    print(format_coupon_book(balance))


def _print_transfer_link(settings: Settings, amount: Decimal, reference: str) -> None:
    link = encode_transfer_request_url(
        TransferRequest(
            recipient=settings.merchant_public_key,
            amount=amount,
            token=settings.value_token,
            reference=reference,
            label="CouponPay checkout",
        )
    )
    print("Open this link in a wallet to pay:")
    print(link)


async def checkout(
    settings: Settings, cart: dict[str, str], mode: str
) -> SettlementOutcome:
    amount = calculate_price(cart)
    if amount == 0:
        raise ValueError("Cant checkout with charge of 0")

    reference = generate_reference()
    print(f"Total: {amount} (reference {reference})")

    buyer = _buyer_public_key(settings)
    show_coupons = buyer is not None and settings.loyalty_token is not None
    if show_coupons:
        await _show_coupon_book(settings, buyer)

    if mode == "transaction":
        await _pay_with_buyer_key(settings, cart, reference)
    else:
        _print_transfer_link(settings, amount, reference)

    watcher = SettlementWatcher(
        lambda: AsyncLedgerClient(settings.ledger_rpc_url),
        reference,
        ExpectedSettlement(
            recipient=settings.merchant_public_key,
            amount=amount,
            token=settings.value_token,
        ),
        poll_interval=settings.settlement_poll_interval,
        max_attempts=settings.settlement_max_attempts,
        commitment=settings.settlement_commitment,
    )
    print("Waiting for settlement...")
    outcome = await watcher.run()
    if show_coupons and isinstance(outcome, Settled):
        await _show_coupon_book(settings, buyer)
    return outcome


def _report(outcome: SettlementOutcome) -> int:
    if isinstance(outcome, Settled):
        print(f"Payment settled by transaction {outcome.record.signature}")
        return 0
    if isinstance(outcome, InvalidSettlement):
        print(f"Payment rejected: {outcome.reason}")
        return 1
    if isinstance(outcome, TimedOut):
        print(f"No settlement after {outcome.attempts} attempts")
        return 2
    assert isinstance(outcome, Cancelled)
    print("Checkout cancelled")
    return 130


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="couponpay-checkout", description="Pay for a cart and wait for settlement"
    )
    parser.add_argument(
        "--item",
        action="append",
        default=[],
        metavar="PRODUCT=QTY",
        help="cart line item, may be repeated (e.g. single-day=1)",
    )
    parser.add_argument(
        "--mode",
        choices=["transaction", "transfer"],
        default="transaction",
        help="sign the merchant's transaction here, or print a transfer link",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cart = parse_items(args.item)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    settings = get_settings()
    try:
        outcome = asyncio.run(checkout(settings, cart, args.mode))
    except KeyboardInterrupt:
        outcome = Cancelled()
    except (ValueError, MerchantRequestError) as e:
        print(f"Checkout failed: {e}")
        sys.exit(1)
    sys.exit(_report(outcome))


if __name__ == "__main__":
    main()
