"""Ledger module.

Provides the abstraction layer over the Stellar payment history.
"""

from fluxapay.ledger.assets import AssetRegistry, ExpectedAsset
from fluxapay.ledger.base import (
    LedgerClient,
    LedgerRecord,
    is_newer_token,
    max_paging_token,
    paging_token_key,
)
from fluxapay.ledger.horizon import HorizonLedgerClient

__all__ = [
    "AssetRegistry",
    "ExpectedAsset",
    "HorizonLedgerClient",
    "LedgerClient",
    "LedgerRecord",
    "is_newer_token",
    "max_paging_token",
    "paging_token_key",
]
