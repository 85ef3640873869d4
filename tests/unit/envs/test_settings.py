"""Tests for settings loaded from environment variables."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from couponpay.crypto.keys import (
    generate_private_key,
    generate_reference,
    private_key_to_pem,
    public_key_b64,
)
from couponpay.envs import checkout_env, merchant_env


@pytest.fixture
def merchant_environ(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    environ = {
        "LEDGER_RPC_URL": "http://ledger.test:8899",
        "VALUE_TOKEN": generate_reference(),
        "LOYALTY_TOKEN": generate_reference(),
        "MERCHANT_API_PORT": "8010",
        "MERCHANT_API_CORS_ORIGINS": "https://a.test,https://b.test",
    }
    for name in (
        "SHOP_PRIVATE_KEY_PEM",
        "MERCHANT_CONFIRMATION_MESSAGE",
        "MERCHANT_LABEL",
        "MERCHANT_ICON_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in environ.items():
        monkeypatch.setenv(name, value)
    return environ


class TestMerchantSettings:
    def test_defaults_and_parsing(self, merchant_environ: dict[str, str]) -> None:
        settings = merchant_env.get_settings()

        assert settings.api_port == 8010
        assert settings.api_cors_origins == ["https://a.test", "https://b.test"]
        assert settings.merchant_label == "GUIDE-X Solana"
        assert settings.merchant_icon_url.endswith("/crypto/trout-crypto-key.svg")
        assert settings.shop_private_key_pem is None

    def test_missing_key_yields_config_without_credential(
        self, merchant_environ: dict[str, str]
    ) -> None:
        config = merchant_env.get_settings().to_merchant_config()

        assert config.merchant_private_key is None
        assert config.value_token == merchant_environ["VALUE_TOKEN"]

    def test_key_is_loaded_into_config(
        self, merchant_environ: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        key = generate_private_key()
        monkeypatch.setenv("SHOP_PRIVATE_KEY_PEM", private_key_to_pem(key))
        monkeypatch.setenv("MERCHANT_CONFIRMATION_MESSAGE", "Merci!")

        config = merchant_env.get_settings().to_merchant_config()

        assert config.merchant_private_key is not None
        assert public_key_b64(config.merchant_private_key) == public_key_b64(key)
        assert config.confirmation_message == "Merci!"

    def test_malformed_pem_rejected(
        self, merchant_environ: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SHOP_PRIVATE_KEY_PEM", "not a pem")
        with pytest.raises(ValidationError, match="Invalid shop private key PEM"):
            merchant_env.get_settings()

    def test_malformed_token_rejected(
        self, merchant_environ: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("VALUE_TOKEN", "abc")
        with pytest.raises(ValidationError):
            merchant_env.get_settings()


class TestCheckoutSettings:
    def test_required_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MERCHANT_BASE_URL", raising=False)
        with pytest.raises(ValueError, match="MERCHANT_BASE_URL"):
            checkout_env.get_settings()

    def test_unbounded_polling_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MERCHANT_BASE_URL", "http://localhost:8000/api/v1")
        monkeypatch.setenv("LEDGER_RPC_URL", "http://localhost:8899")
        monkeypatch.setenv("MERCHANT_PUBLIC_KEY", generate_reference())
        monkeypatch.setenv("VALUE_TOKEN", generate_reference())
        monkeypatch.delenv("SETTLEMENT_MAX_ATTEMPTS", raising=False)
        monkeypatch.delenv("SETTLEMENT_POLL_INTERVAL", raising=False)
        monkeypatch.delenv("BUYER_PRIVATE_KEY_PEM", raising=False)

        settings = checkout_env.get_settings()

        assert settings.settlement_max_attempts is None
        assert settings.settlement_poll_interval == 0.5
        assert settings.settlement_commitment == "confirmed"
        assert settings.buyer_private_key_pem is None

    def test_loyalty_token_is_optional_and_validated(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MERCHANT_BASE_URL", "http://localhost:8000/api/v1")
        monkeypatch.setenv("LEDGER_RPC_URL", "http://localhost:8899")
        monkeypatch.setenv("MERCHANT_PUBLIC_KEY", generate_reference())
        monkeypatch.setenv("VALUE_TOKEN", generate_reference())
        monkeypatch.delenv("LOYALTY_TOKEN", raising=False)
        assert checkout_env.get_settings().loyalty_token is None

        loyalty_token = generate_reference()
        monkeypatch.setenv("LOYALTY_TOKEN", loyalty_token)
        assert checkout_env.get_settings().loyalty_token == loyalty_token

        monkeypatch.setenv("LOYALTY_TOKEN", "abc")
        with pytest.raises(ValidationError):
            checkout_env.get_settings()
