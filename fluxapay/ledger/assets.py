"""Ledger asset resolution.

Maps a payment currency code to the exact Stellar asset that may settle it.
Matching on the code alone would let any issuer's "USDC" satisfy an invoice.
"""

import logging
from dataclasses import dataclass

from fluxapay.core.config import Settings
from fluxapay.core.exceptions import UnsupportedAssetError
from fluxapay.ledger.base import LedgerRecord

logger = logging.getLogger(__name__)

NATIVE_ASSET_CODE = "XLM"


@dataclass(frozen=True)
class ExpectedAsset:
    """Asset a payment must be settled in."""

    code: str
    issuer: str | None = None

    @property
    def is_native(self) -> bool:
        return self.issuer is None

    @property
    def asset_type(self) -> str:
        if self.is_native:
            return "native"
        return "credit_alphanum4" if len(self.code) <= 4 else "credit_alphanum12"

    def matches(self, record: LedgerRecord) -> bool:
        """Check whether a ledger record carries this asset."""
        if record.asset_type != self.asset_type:
            return False
        if self.is_native:
            return True
        return record.asset_code == self.code and record.asset_issuer == self.issuer


class AssetRegistry:
    """Lookup of accepted assets by currency code."""

    def __init__(self, assets: dict[str, ExpectedAsset]):
        self._assets = {code.upper(): asset for code, asset in assets.items()}

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetRegistry":
        """Build the registry from configuration.

        XLM and USDC are always accepted; ``extra_assets`` adds
        ``CODE:ISSUER`` pairs.
        """
        assets = {
            NATIVE_ASSET_CODE: ExpectedAsset(code=NATIVE_ASSET_CODE),
            "USDC": ExpectedAsset(code="USDC", issuer=settings.usdc_issuer_public_key),
        }
        for entry in settings.extra_assets.split(","):
            entry = entry.strip()
            if not entry:
                continue
            code, sep, issuer = entry.partition(":")
            if not sep or not code or not issuer:
                logger.warning(f"Ignoring malformed asset entry: {entry!r}")
                continue
            assets[code.strip().upper()] = ExpectedAsset(
                code=code.strip().upper(), issuer=issuer.strip()
            )
        return cls(assets)

    @property
    def codes(self) -> list[str]:
        return sorted(self._assets)

    def resolve(self, currency: str) -> ExpectedAsset:
        """Resolve a currency code to its ledger asset.

        Raises:
            UnsupportedAssetError: If the currency is not accepted
        """
        asset = self._assets.get(currency.upper())
        if asset is None:
            raise UnsupportedAssetError(
                f"Unsupported currency: {currency}",
                {"currency": currency, "supported": self.codes},
            )
        return asset
