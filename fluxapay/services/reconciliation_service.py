"""Reconciliation Service - match ledger payments against pending payments.

For one payment: fetch the ledger page after the stored cursor, scan the whole
page for the highest paging token, pick the first record that pays the
expected asset to the deposit address with a sufficient amount, and write the
outcome through a single conditional update.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from fluxapay.core.exceptions import (
    LedgerUnavailable,
    MalformedRecord,
    PaymentNotFound,
    PersistenceConflict,
    UnsupportedAssetError,
)
from fluxapay.ledger.assets import AssetRegistry, ExpectedAsset
from fluxapay.ledger.base import LedgerClient, LedgerRecord, max_paging_token
from fluxapay.models.payment import Payment, PaymentStatus
from fluxapay.services.payment_store import PaymentStore
from fluxapay.utils.helpers import utc_now

logger = logging.getLogger(__name__)


class ReconciliationOutcome(str, Enum):
    """What a reconciliation attempt did."""

    SETTLED = "settled"  # Marked paid
    CURSOR_ADVANCED = "cursor_advanced"  # Still pending, cursor moved forward
    UNCHANGED = "unchanged"  # Nothing new on the ledger
    FAILED = "failed"  # Marked failed (unsupported currency)
    SKIPPED = "skipped"  # Not eligible (expired, no address, not pending)
    LEDGER_UNAVAILABLE = "ledger_unavailable"  # Retried next tick, nothing written
    CONFLICT = "conflict"  # Row changed concurrently, nothing written
    NOT_FOUND = "not_found"  # Row disappeared


@dataclass
class ReconciliationResult:
    """Result of reconciling one payment."""

    payment_id: str
    outcome: ReconciliationOutcome
    previous_token: str | None = None
    paging_token: str | None = None
    transaction_hash: str | None = None
    amount_received: Decimal | None = None
    error: str | None = None


@dataclass
class PageEvaluation:
    """Decision taken from one ledger page."""

    latest_token: str | None
    match: LedgerRecord | None = None
    amount: Decimal | None = None
    malformed: int = 0


def parse_record_amount(record: LedgerRecord) -> Decimal:
    """Parse a record amount as a Decimal.

    Raises:
        MalformedRecord: Amount missing, unparseable, non-finite or negative
    """
    if record.amount is None:
        raise MalformedRecord("Record has no amount", {"paging_token": record.paging_token})
    try:
        amount = Decimal(record.amount)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise MalformedRecord(
            f"Unparseable amount {record.amount!r}",
            {"paging_token": record.paging_token},
        ) from e
    if not amount.is_finite() or amount < 0:
        raise MalformedRecord(
            f"Invalid amount {record.amount!r}",
            {"paging_token": record.paging_token},
        )
    return amount


def evaluate_page(
    payment: Payment,
    records: Sequence[LedgerRecord],
    asset: ExpectedAsset,
) -> PageEvaluation:
    """Evaluate a ledger page for a payment.

    The cursor is the maximum paging token over the entire page, so a match
    early in the page never leaves newer tokens behind. Records are matched in
    the order received.

    Args:
        payment: Payment being reconciled
        records: One page from the ledger client
        asset: Asset the payment must be settled in

    Returns:
        PageEvaluation with the new cursor and the settling record, if any
    """
    evaluation = PageEvaluation(
        latest_token=max_paging_token(
            payment.last_paging_token, (record.paging_token for record in records)
        )
    )

    for record in records:
        if not record.is_payment or not record.transaction_successful:
            continue
        if record.destination_account and record.destination_account != payment.stellar_address:
            # Outgoing payment from the deposit account
            continue
        if not asset.matches(record):
            continue

        try:
            amount = parse_record_amount(record)
        except MalformedRecord as e:
            evaluation.malformed += 1
            logger.warning(f"Payment {payment.id}: skipping malformed record: {e.message}")
            continue

        if amount >= payment.amount:
            evaluation.match = record
            evaluation.amount = amount
            break

        logger.info(
            f"Payment {payment.id}: underpayment {amount} {asset.code} "
            f"(expected {payment.amount}) in record {record.paging_token}"
        )

    return evaluation


class ReconciliationService:
    """Reconcile pending payments against the ledger.

    Args:
        ledger: Ledger payment-history adapter
        store: Payment store
        assets: Accepted asset registry
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        ledger: LedgerClient,
        store: PaymentStore,
        assets: AssetRegistry,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._ledger = ledger
        self._store = store
        self._assets = assets
        self._clock = clock

    async def reconcile(
        self,
        payment: Payment,
        now: datetime | None = None,
    ) -> ReconciliationResult:
        """Reconcile one payment.

        Ledger, conflict and not-found errors are contained here and reported
        through the outcome. Nothing is written when the ledger is
        unavailable.

        Args:
            payment: Payment snapshot as read from the store
            now: Current time, defaults to the injected clock

        Returns:
            ReconciliationResult
        """
        now = now or self._clock()
        previous_token = payment.last_paging_token
        result = ReconciliationResult(
            payment_id=payment.id,
            outcome=ReconciliationOutcome.SKIPPED,
            previous_token=previous_token,
            paging_token=previous_token,
        )

        if payment.status != PaymentStatus.PENDING:
            return result
        if not payment.stellar_address or payment.expiration <= now:
            return result

        try:
            asset = self._assets.resolve(payment.currency)
        except UnsupportedAssetError as e:
            logger.error(f"Payment {payment.id}: {e.message}, marking failed")
            return await self._persist(
                result,
                ReconciliationOutcome.FAILED,
                self._store.mark_failed(payment.id, previous_token),
            )

        try:
            records = await self._ledger.fetch_recent_payments(
                payment.stellar_address, cursor=previous_token
            )
        except LedgerUnavailable as e:
            logger.warning(f"Payment {payment.id}: ledger unavailable: {e.message}")
            result.outcome = ReconciliationOutcome.LEDGER_UNAVAILABLE
            result.error = e.message
            return result

        evaluation = evaluate_page(payment, records, asset)
        result.paging_token = evaluation.latest_token

        if evaluation.match is not None and evaluation.amount is not None:
            match = evaluation.match
            result.transaction_hash = match.transaction_hash
            result.amount_received = evaluation.amount
            if evaluation.amount > payment.amount:
                logger.info(
                    f"Payment {payment.id}: overpaid, received {evaluation.amount} "
                    f"expected {payment.amount}"
                )
            outcome = await self._persist(
                result,
                ReconciliationOutcome.SETTLED,
                self._store.mark_paid(
                    payment.id,
                    expected_token=previous_token,
                    paging_token=evaluation.latest_token,
                    transaction_hash=match.transaction_hash,
                    amount_received=evaluation.amount,
                    confirmed_at=now,
                ),
            )
            if outcome.outcome == ReconciliationOutcome.SETTLED:
                logger.info(
                    f"Payment {payment.id} settled: tx={match.transaction_hash}, "
                    f"amount={evaluation.amount} {asset.code}, "
                    f"cursor={evaluation.latest_token}"
                )
            return outcome

        if evaluation.latest_token and evaluation.latest_token != previous_token:
            return await self._persist(
                result,
                ReconciliationOutcome.CURSOR_ADVANCED,
                self._store.advance_cursor(
                    payment.id,
                    expected_token=previous_token,
                    paging_token=evaluation.latest_token,
                ),
            )

        result.outcome = ReconciliationOutcome.UNCHANGED
        return result

    async def _persist(self, result, outcome, write) -> ReconciliationResult:
        """Await a store write and map its errors onto the result."""
        try:
            await write
        except PersistenceConflict as e:
            logger.info(f"Payment {result.payment_id}: {e.message}, retrying next tick")
            result.outcome = ReconciliationOutcome.CONFLICT
            result.paging_token = result.previous_token
            result.error = e.message
            return result
        except PaymentNotFound as e:
            logger.info(f"Payment {result.payment_id} disappeared before update")
            result.outcome = ReconciliationOutcome.NOT_FOUND
            result.paging_token = result.previous_token
            result.error = e.message
            return result

        result.outcome = outcome
        return result
