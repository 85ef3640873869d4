"""Merchant server launcher (``couponpay-merchant``)."""

from __future__ import annotations

import asyncio
import os
import sys

import uvicorn

if sys.platform != "win32":
    try:
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    except ImportError:
        pass

from .envs.merchant_env import Settings, get_settings

APP_IMPORT_PATH = "couponpay.api.merchant_api.app:app"


def _reset_prometheus_multiproc_dir() -> None:
    """Workers share metrics through PROMETHEUS_MULTIPROC_DIR; start it empty."""
    prom_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if not prom_dir:
        return

    os.makedirs(prom_dir, exist_ok=True)
    for filename in os.listdir(prom_dir):
        path = os.path.join(prom_dir, filename)
        if os.path.isfile(path):
            os.remove(path)


def _announce(settings: Settings) -> None:
    base = f"http://{settings.api_host}:{settings.api_port}"
    print(f"{settings.app_name} merchant v{settings.app_version}")
    print(f"  ledger:               {settings.ledger_rpc_url}")
    print(f"  value token:          {settings.value_token}")
    print(f"  loyalty token:        {settings.loyalty_token}")
    print(f"  transaction requests: {base}/api/v1/merchant/transaction-requests")
    if settings.shop_private_key_pem is None:
        print("  SHOP_PRIVATE_KEY_PEM is not set: every transaction request will fail")


def main() -> None:
    settings = get_settings()
    _announce(settings)
    _reset_prometheus_multiproc_dir()

    # uvicorn only reloads a single process
    workers = 1 if settings.api_debug else settings.api_workers
    uvicorn.run(
        APP_IMPORT_PATH,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        workers=workers,
        log_level="debug" if settings.api_debug else "info",
    )


if __name__ == "__main__":
    main()
