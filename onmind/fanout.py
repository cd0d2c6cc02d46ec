"""
Fan-out writes: one logical change applied to every entry that carries a value.

Sequential mode writes one entry at a time and stops at the first failure,
leaving earlier writes in place. Atomic mode hands the whole batch to the
store's single-transaction update_many().
"""

import logging
from typing import Any

from .errors import PartialFanoutFailure
from .protocol import EntryStoreProtocol

logger = logging.getLogger(__name__)

BATCH_ID = "<batch>"


def apply_updates(
    store: EntryStoreProtocol,
    operation: str,
    updates: dict[str, dict[str, Any]],
    *,
    atomic: bool = False,
) -> list[str]:
    """
    Persist per-entry field updates.

    Args:
        store: Session-scoped entry store
        operation: Human description used in logs and errors
        updates: entry id -> fields to write
        atomic: Use the store's transactional batch write if it has one

    Returns:
        Ids of the entries written, in order

    Raises:
        PartialFanoutFailure: A write failed. ``updated`` lists the entries
            already written (always empty in atomic mode).
    """
    if not updates:
        return []

    logger.info("%s on %d entries", operation, len(updates))

    if atomic and hasattr(store, "update_many"):
        try:
            store.update_many(updates)
        except Exception as e:
            logger.warning("%s: batch write failed: %s", operation, e)
            raise PartialFanoutFailure(operation, [], BATCH_ID, cause=e) from e
        return list(updates)

    written: list[str] = []
    for entry_id, fields in updates.items():
        try:
            store.update(entry_id, fields)
        except Exception as e:
            logger.warning(
                "%s: write to %s failed after %d of %d: %s",
                operation, entry_id, len(written), len(updates), e,
            )
            raise PartialFanoutFailure(operation, written, entry_id, cause=e) from e
        written.append(entry_id)
    return written
