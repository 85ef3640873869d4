"""Story: payments that do not match the request never settle it."""

from __future__ import annotations

import pytest
from cryptography.exceptions import InvalidSignature

from couponpay.application.checkout.settlement import (
    InvalidSettlement,
    Settled,
    SettlementWatcher,
    TimedOut,
)
from couponpay.application.checkout.settlement_validators import ExpectedSettlement
from couponpay.application.merchant.use_cases.payment_request import (
    PaymentRequestService,
)
from couponpay.crypto.keys import generate_reference
from couponpay.domain.errors import LedgerRpcError
from couponpay.domain.ledger.transaction import Transaction
from couponpay.domain.shared import LedgerClientFactory
from tests.fixtures import InMemoryLedger
from tests.use_cases.helpers import BuyerActor


@pytest.mark.asyncio
async def test_underpayment_with_valid_reference_is_invalid(
    ledger_client_factory: LedgerClientFactory,
    funded_ledger: InMemoryLedger,
    buyer: BuyerActor,
    merchant_public_key: str,
    value_token: str,
    expected_single_day: ExpectedSettlement,
) -> None:
    """Buyer skips the merchant's transaction and sends 1 unit tagged with the reference."""
    reference = generate_reference()
    await buyer.pay_directly(merchant_public_key, value_token, 1, reference)

    outcome = await SettlementWatcher(
        ledger_client_factory, reference, expected_single_day, poll_interval=0
    ).run()

    assert isinstance(outcome, InvalidSettlement)


@pytest.mark.asyncio
async def test_payment_to_someone_else_is_invalid(
    ledger_client_factory: LedgerClientFactory,
    funded_ledger: InMemoryLedger,
    buyer: BuyerActor,
    value_token: str,
    expected_single_day: ExpectedSettlement,
) -> None:
    reference = generate_reference()
    accomplice = generate_reference()
    funded_ledger.fund(accomplice, value_token, 0)
    units = 595 * 10 ** funded_ledger.tokens[value_token].decimals
    await buyer.pay_directly(accomplice, value_token, units, reference)

    outcome = await SettlementWatcher(
        ledger_client_factory, reference, expected_single_day, poll_interval=0
    ).run()

    assert isinstance(outcome, InvalidSettlement)
    assert outcome.reason == "Recipient not found"


@pytest.mark.asyncio
async def test_tampered_amount_is_refused_by_buyer_and_ledger(
    ledger_client_factory: LedgerClientFactory,
    funded_ledger: InMemoryLedger,
    payment_request_service: PaymentRequestService,
    buyer: BuyerActor,
    expected_single_day: ExpectedSettlement,
) -> None:
    """Lowering the charge after the merchant signed breaks the merchant signature."""
    reference = generate_reference()
    result = await payment_request_service.build_payment_request(
        {"single-day": "1"}, buyer.public_key, reference
    )
    tx = Transaction.from_base64(result.transaction)
    tx.instructions[0].data["amount"] = 1
    forged = tx.to_base64(require_all_signatures=False, verify_signatures=False)

    with pytest.raises(InvalidSignature):
        await buyer.accept(forged)

    # A wallet that ignores the check is stopped by the ledger
    tx.partial_sign(buyer.private_key)
    with pytest.raises(LedgerRpcError, match="signature verification"):
        await funded_ledger.send_transaction(
            tx.to_base64(verify_signatures=False)
        )

    outcome = await SettlementWatcher(
        ledger_client_factory,
        reference,
        expected_single_day,
        poll_interval=0,
        max_attempts=2,
    ).run()
    assert outcome == TimedOut(attempts=2)


@pytest.mark.asyncio
async def test_reused_reference_is_judged_by_its_first_payment(
    ledger_client_factory: LedgerClientFactory,
    funded_ledger: InMemoryLedger,
    payment_request_service: PaymentRequestService,
    buyer: BuyerActor,
    merchant_public_key: str,
    value_token: str,
    expected_single_day: ExpectedSettlement,
) -> None:
    """A correct payment made after a bogus one under the same reference does not help."""
    reference = generate_reference()
    await buyer.pay_directly(merchant_public_key, value_token, 1, reference)
    result = await payment_request_service.build_payment_request(
        {"single-day": "1"}, buyer.public_key, reference
    )
    await buyer.accept(result.transaction)

    outcome = await SettlementWatcher(
        ledger_client_factory, reference, expected_single_day, poll_interval=0
    ).run()

    assert not isinstance(outcome, Settled)
    assert isinstance(outcome, InvalidSettlement)
