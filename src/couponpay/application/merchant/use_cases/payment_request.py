"""Use case: turn a cart into a merchant-signed, buyer-payable transaction."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ....crypto.keys import derive_holding_address, is_valid_public_key, public_key_b64
from ....domain.errors import (
    InvalidPublicKeyError,
    MerchantMisconfiguredError,
    MissingBuyerIdentityError,
    MissingReferenceError,
    ZeroAmountError,
)
from ....domain.ledger.instructions import (
    append_reference,
    create_transfer_checked_instruction,
)
from ....domain.ledger.transaction import Transaction
from ....domain.merchant.attempt_recorder import PaymentAttempt, PaymentAttemptRecorder
from ....domain.shared import LedgerClientFactory
from ..config import MerchantConfig
from ..dtos import MakeTransactionOutputDTO
from ..pricing import calculate_price, to_base_units
from .holding_accounts import ensure_holding_account

logger = logging.getLogger(__name__)


class PaymentRequestService:
    """Builds payment requests: value transfer to the merchant plus a coupon back."""

    def __init__(
        self,
        ledger_client_factory: LedgerClientFactory,
        config: MerchantConfig,
        attempt_recorder: Optional[PaymentAttemptRecorder] = None,
    ):
        self.ledger_client_factory = ledger_client_factory
        self.config = config
        self.attempt_recorder = attempt_recorder

    async def build_payment_request(
        self,
        cart: Mapping[str, object],
        buyer_identity: Optional[str],
        reference: Optional[str],
    ) -> MakeTransactionOutputDTO:
        """Build, co-sign and serialize the checkout transaction.

        Input is validated before any ledger call. The returned transaction
        still needs the buyer's signature (the buyer is the fee payer and the
        owner of the paying account).

        Raises:
            ZeroAmountError, MissingReferenceError, MissingBuyerIdentityError,
            InvalidPublicKeyError: for bad caller input.
            MerchantMisconfiguredError: if no merchant key is configured.
        """
        # 1) Price the cart
        amount = calculate_price(cart)
        if amount == 0:
            raise ZeroAmountError()

        # 2) Reference and buyer are both mandatory
        if not reference:
            raise MissingReferenceError()
        if not buyer_identity:
            raise MissingBuyerIdentityError()
        if not is_valid_public_key(reference):
            raise InvalidPublicKeyError()
        if not is_valid_public_key(buyer_identity):
            raise InvalidPublicKeyError()

        merchant_key = self.config.merchant_private_key
        if merchant_key is None:
            raise MerchantMisconfiguredError()
        merchant = public_key_b64(merchant_key)
        value_token = self.config.value_token
        loyalty_token = self.config.loyalty_token

        async with self.ledger_client_factory() as ledger:
            # 3) Holding accounts; the buyer's coupon account may need creating,
            #    which the merchant pays for since the buyer has signed nothing yet
            buyer_loyalty = await ensure_holding_account(
                ledger,
                merchant_key,
                loyalty_token,
                buyer_identity,
                commitment=self.config.account_commitment,
                checkpoint_commitment=self.config.checkpoint_commitment,
                poll_attempts=self.config.holding_account_poll_attempts,
                poll_interval=self.config.holding_account_poll_interval,
            )
            merchant_loyalty = derive_holding_address(merchant, loyalty_token)
            buyer_value = derive_holding_address(buyer_identity, value_token)
            merchant_value = derive_holding_address(merchant, value_token)

            # 4) Token precision always comes from the ledger
            value_meta = await ledger.get_token_metadata(value_token)
            loyalty_meta = await ledger.get_token_metadata(loyalty_token)

            # 5) Bind to a recent checkpoint; bounds how long the buyer has to sign
            checkpoint = await ledger.get_latest_checkpoint(
                self.config.checkpoint_commitment
            )

        # 6) Value transfer first, tagged with the reference so it can be found
        transfer_instruction = create_transfer_checked_instruction(
            source=buyer_value,
            token=value_token,
            destination=merchant_value,
            owner=buyer_identity,
            amount=to_base_units(amount, value_meta.decimals),
            decimals=value_meta.decimals,
        )
        append_reference(transfer_instruction, reference)

        # 7) Then the coupon from merchant to buyer
        coupon_instruction = create_transfer_checked_instruction(
            source=merchant_loyalty,
            token=loyalty_token,
            destination=buyer_loyalty.address,
            owner=merchant,
            amount=self.config.loyalty_reward_tokens * 10**loyalty_meta.decimals,
            decimals=loyalty_meta.decimals,
        )

        transaction = Transaction(
            fee_payer=buyer_identity, recent_checkpoint=checkpoint.hash
        )
        transaction.add(transfer_instruction, coupon_instruction)

        # 8) Merchant signs now; any later change to the instructions breaks it
        transaction.partial_sign(merchant_key)

        # 9) The buyer's signature is still missing at this point
        transaction_b64 = transaction.to_base64(require_all_signatures=False)

        if self.attempt_recorder is not None:
            await self.attempt_recorder.record(
                PaymentAttempt(
                    reference=reference,
                    buyer=buyer_identity,
                    amount=amount,
                    transaction_b64=transaction_b64,
                )
            )

        return MakeTransactionOutputDTO(
            transaction=transaction_b64,
            message=self.config.confirmation_message,
        )
