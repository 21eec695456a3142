"""Base ledger client interface.

Defines the record type returned by ledger adapters, the abstract adapter
interface and the ordering rules for paging tokens.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

# Horizon operation types that credit funds to the destination account
PAYMENT_RECORD_TYPES = frozenset(
    {
        "payment",
        "path_payment_strict_receive",
        "path_payment_strict_send",
    }
)


@dataclass(frozen=True)
class LedgerRecord:
    """A payment-history record as observed on the ledger.

    ``amount`` is kept as the raw decimal string; parsing happens at
    reconciliation time so a malformed record can be skipped on its own.
    """

    paging_token: str | None
    type: str
    amount: str | None = None
    asset_type: str | None = None
    asset_code: str | None = None
    asset_issuer: str | None = None
    source_account: str | None = None
    destination_account: str | None = None
    transaction_hash: str | None = None
    transaction_successful: bool = True
    id: str | None = None
    created_at: str | None = None

    @property
    def is_payment(self) -> bool:
        return self.type in PAYMENT_RECORD_TYPES


def paging_token_key(token: str) -> tuple[int, int | str]:
    """Sort key for a paging token.

    Horizon paging tokens are 64-bit integers rendered as decimal strings, so
    two digit-only tokens compare numerically ("10" > "9"). Anything else falls
    back to lexicographic order and sorts after numeric tokens.
    """
    if token.isdigit():
        return (0, int(token))
    return (1, token)


def is_newer_token(candidate: str | None, current: str | None) -> bool:
    """Check whether ``candidate`` is strictly greater than ``current``.

    A missing candidate is never newer; any candidate is newer than no token.
    """
    if not candidate:
        return False
    if not current:
        return True
    return paging_token_key(candidate) > paging_token_key(current)


def max_paging_token(current: str | None, tokens: Iterable[str | None]) -> str | None:
    """Return the greatest of ``current`` and ``tokens``."""
    latest = current
    for token in tokens:
        if is_newer_token(token, latest):
            latest = token
    return latest


class LedgerClient(ABC):
    """Abstract base class for ledger payment-history adapters."""

    @abstractmethod
    async def fetch_recent_payments(
        self,
        address: str,
        cursor: str | None = None,
    ) -> list[LedgerRecord]:
        """Fetch one page of payment records for an account.

        Args:
            address: Ledger account to inspect
            cursor: Paging token from a previous scan; when given, only
                records after it are returned

        Returns:
            A single finite page of records, possibly empty

        Raises:
            LedgerUnavailable: Network error, timeout or unusable response
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        return None
