"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .ledger_client_protocol import LedgerClientProtocol, LedgerClientFactory

__all__ = ["LedgerClientProtocol", "LedgerClientFactory"]
