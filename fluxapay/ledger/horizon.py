"""Stellar Horizon ledger client.

Reads account payment history from the Horizon REST API using httpx.
"""

import logging
from typing import Any

import httpx

from fluxapay.core.config import Settings
from fluxapay.core.exceptions import LedgerUnavailable
from fluxapay.ledger.base import LedgerClient, LedgerRecord

logger = logging.getLogger(__name__)


class HorizonLedgerClient(LedgerClient):
    """Horizon payment-history adapter.

    Without a cursor the most recent page is fetched (``order=desc``). With a
    cursor Horizon is asked for the records after it (``order=asc``), which is
    the only ordering in which a Horizon cursor excludes records already seen.
    """

    def __init__(
        self,
        base_url: str,
        page_size: int = 10,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/hal+json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HorizonLedgerClient":
        return cls(
            base_url=settings.stellar_horizon_url,
            page_size=settings.ledger_page_size,
            timeout=settings.ledger_timeout_seconds,
        )

    @property
    def page_size(self) -> int:
        return self._page_size

    def build_params(self, cursor: str | None = None) -> dict[str, str | int]:
        """Build query parameters for a payments request."""
        params: dict[str, str | int] = {"limit": self._page_size}
        if cursor:
            params["order"] = "asc"
            params["cursor"] = cursor
        else:
            params["order"] = "desc"
        return params

    async def fetch_recent_payments(
        self,
        address: str,
        cursor: str | None = None,
    ) -> list[LedgerRecord]:
        """Fetch one page of payments for ``address``."""
        url = f"{self._base_url}/accounts/{address}/payments"
        params = self.build_params(cursor)

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise LedgerUnavailable(
                f"Horizon request timed out for {address}",
                {"address": address, "cursor": cursor},
            ) from e
        except httpx.HTTPError as e:
            raise LedgerUnavailable(
                f"Horizon request failed for {address}: {e}",
                {"address": address, "cursor": cursor},
            ) from e

        if response.status_code == 404:
            # Account not created on-ledger yet: nothing to observe
            logger.debug(f"Account {address} not found on Horizon")
            return []

        if response.status_code >= 400:
            raise LedgerUnavailable(
                f"Horizon returned HTTP {response.status_code} for {address}",
                {"address": address, "status_code": response.status_code},
            )

        try:
            data = response.json()
            raw_records = data["_embedded"]["records"]
        except (ValueError, KeyError, TypeError) as e:
            raise LedgerUnavailable(
                f"Unexpected Horizon response for {address}",
                {"address": address},
            ) from e

        if not isinstance(raw_records, list):
            raise LedgerUnavailable(
                f"Unexpected Horizon response for {address}: records is not a list",
                {"address": address},
            )

        records = []
        for raw in raw_records:
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed Horizon record for {address}: {raw!r}")
                continue
            records.append(self._parse_record(raw))
        return records

    @staticmethod
    def _parse_record(raw: dict[str, Any]) -> LedgerRecord:
        """Convert a Horizon payment operation into a LedgerRecord."""
        return LedgerRecord(
            paging_token=raw.get("paging_token"),
            type=raw.get("type", ""),
            amount=raw.get("amount"),
            asset_type=raw.get("asset_type"),
            asset_code=raw.get("asset_code"),
            asset_issuer=raw.get("asset_issuer"),
            source_account=raw.get("from") or raw.get("source_account"),
            destination_account=raw.get("to"),
            transaction_hash=raw.get("transaction_hash"),
            transaction_successful=raw.get("transaction_successful", True),
            id=raw.get("id"),
            created_at=raw.get("created_at"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
