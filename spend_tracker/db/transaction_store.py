"""Transaction persistence"""

from datetime import datetime
from typing import Iterable, List, Optional, Set

from spend_tracker.constants import TRANSACTIONS_COLLECTION, EXTERNAL_ID_INDEX
from spend_tracker.models import Transaction
from spend_tracker.utils.errors import NotFoundError, StorageError
from spend_tracker.utils.logging import get_logger

logger = get_logger(__name__)


class TransactionStore:
    """
    Transaction records keyed by internal ID, with an external-ID index for dedup.

    Queries scan the collection; a month of card activity is small enough that
    no secondary indexes are kept.
    """

    def __init__(self, backend):
        self.backend = backend

    def _all(self) -> List[Transaction]:
        return [Transaction.model_validate(doc) for doc in self.backend.list(TRANSACTIONS_COLLECTION)]

    @staticmethod
    def _newest_first(transactions: List[Transaction]) -> List[Transaction]:
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def exists_by_external_id(self, external_id: str) -> bool:
        return self.backend.get(EXTERNAL_ID_INDEX, external_id) is not None

    def existing_external_ids(self, external_ids: Iterable[str]) -> Set[str]:
        """Subset of the given external IDs that are already stored (one round trip)"""
        ids = list(dict.fromkeys(external_ids))
        found = self.backend.get_many(EXTERNAL_ID_INDEX, ids)
        return {external_id for external_id, doc in zip(ids, found) if doc is not None}

    def bulk_insert(self, transactions: List[Transaction]) -> int:
        """
        Insert a batch atomically

        Raises:
            StorageError: If an external ID repeats within the batch or is already stored
        """
        if not transactions:
            return 0

        external_ids = [t.external_id for t in transactions]
        if len(set(external_ids)) != len(external_ids):
            raise StorageError("Duplicate external IDs within insert batch")

        already_stored = self.existing_external_ids(external_ids)
        if already_stored:
            raise StorageError(f"Transactions already exist for external IDs: {sorted(already_stored)}")

        writes = []
        for transaction in transactions:
            writes.append((TRANSACTIONS_COLLECTION, transaction.id, transaction.model_dump(mode="json")))
            writes.append((EXTERNAL_ID_INDEX, transaction.external_id, {'id': transaction.id}))

        self.backend.write_batch(writes)
        logger.info("Inserted transactions", count=len(transactions))
        return len(transactions)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        doc = self.backend.get(TRANSACTIONS_COLLECTION, transaction_id)
        return Transaction.model_validate(doc) if doc else None

    def list_by_month(self, month: str) -> List[Transaction]:
        return self._newest_first([t for t in self._all() if t.month == month])

    def list_by_vendor_and_month(self, vendor_id: str, month: str) -> List[Transaction]:
        return self._newest_first([t for t in self._all() if t.vendor_id == vendor_id and t.month == month])

    def list_unmatched(self, month: str) -> List[Transaction]:
        return self._newest_first([t for t in self._all() if t.month == month and not t.vendor_id])

    def list_by_date_range(self, start: datetime, end: datetime) -> List[Transaction]:
        """Transactions dated within [start, end], newest first"""
        return self._newest_first([t for t in self._all() if start <= t.date <= end])

    def update_vendor(self, transaction_id: str, vendor_id: Optional[str]) -> Transaction:
        """
        Remap a transaction to another vendor (or to none); the only mutation allowed

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        remapped = transaction.model_copy(update={'vendor_id': vendor_id})
        self.backend.write_batch([(TRANSACTIONS_COLLECTION, transaction_id, remapped.model_dump(mode="json"))])
        logger.info(
            "Remapped transaction",
            transaction_id=transaction_id,
            from_vendor=transaction.vendor_id,
            to_vendor=vendor_id
        )
        return remapped
