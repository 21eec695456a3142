"""Core module - configuration, exceptions and Redis."""

from fluxapay.core.config import Settings, get_settings
from fluxapay.core.exceptions import (
    FluxaPayError,
    LedgerUnavailable,
    MalformedRecord,
    PaymentNotFound,
    PersistenceConflict,
    UnsupportedAssetError,
)

__all__ = [
    "Settings",
    "get_settings",
    "FluxaPayError",
    "LedgerUnavailable",
    "MalformedRecord",
    "PaymentNotFound",
    "PersistenceConflict",
    "UnsupportedAssetError",
]
