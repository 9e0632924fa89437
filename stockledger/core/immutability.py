"""
Append-only enforcement for the inventory transaction log.

Ledger entries may be inserted but never updated or deleted. Two ORM paths
are covered:

* unit-of-work flushes (``before_update`` / ``before_delete`` mapper events)
* bulk ``update()`` / ``delete()`` statements executed through a Session
  (``do_orm_execute``)

Raw SQL on a bare connection is outside the ORM and not covered here.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from stockledger.core.exceptions import ImmutableTransactionError

logger = logging.getLogger(__name__)


def _block_transaction_update(mapper, connection, target):
    logger.error(
        "Immutability violation blocked",
        extra={"entity_id": target.id, "operation": "UPDATE"},
    )
    raise ImmutableTransactionError(target.id)


def _block_transaction_delete(mapper, connection, target):
    logger.error(
        "Immutability violation blocked",
        extra={"entity_id": target.id, "operation": "DELETE"},
    )
    raise ImmutableTransactionError(target.id)


def _block_bulk_statements(orm_execute_state):
    from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction

    if not (orm_execute_state.is_update or orm_execute_state.is_delete):
        return

    mapper = orm_execute_state.bind_mapper
    if mapper is not None and mapper.class_ is InventoryTransaction:
        operation = "UPDATE" if orm_execute_state.is_update else "DELETE"
        logger.error(
            "Immutability violation blocked",
            extra={"entity_id": None, "operation": f"BULK {operation}"},
        )
        raise ImmutableTransactionError("(bulk)")


def register_immutability_listeners():
    """Install the listeners once; safe to call repeatedly."""
    from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction

    if not event.contains(InventoryTransaction, "before_update", _block_transaction_update):
        event.listen(InventoryTransaction, "before_update", _block_transaction_update)
    if not event.contains(InventoryTransaction, "before_delete", _block_transaction_delete):
        event.listen(InventoryTransaction, "before_delete", _block_transaction_delete)
    if not event.contains(Session, "do_orm_execute", _block_bulk_statements):
        event.listen(Session, "do_orm_execute", _block_bulk_statements)
