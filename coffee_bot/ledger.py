"""
Order Ledger
============

The ledger is the append-only record of finalized orders. Each order is one
row:

    [timestamp, customer_name, items_json, total, status, order_number]

Rows are never edited except for their status, which moves from "pending"
to "ready", "fulfilled" or "cancelled" as the counter works through the
queue. Rows are addressed by their 0-based position in read_all() order
(oldest first).

Every failure is raised as LedgerError. Writes are never dropped silently.
"""

import logging
from typing import Any, Callable, List, Protocol

from sqlalchemy.orm import Session

from .errors import LedgerError, LedgerRowNotFound
from .models import LedgerOrder

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pending", "ready", "fulfilled", "cancelled")
INITIAL_STATUS = "pending"


class Ledger(Protocol):
    def append(self, row: List[Any]) -> None:
        ...

    def read_all(self) -> List[List[Any]]:
        ...

    def update_status(self, row_index: int, status: str) -> None:
        ...


def validate_status(status: str) -> str:
    """Normalize a status value, raising ValueError for unknown ones."""
    normalized = (status or "").strip().lower()
    if normalized not in ORDER_STATUSES:
        raise ValueError(
            f"Unknown order status '{status}'. Valid statuses: {', '.join(ORDER_STATUSES)}"
        )
    return normalized


class SqlLedger:
    """Ledger backed by the ledger_orders table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def append(self, row: List[Any]) -> None:
        if len(row) != 6:
            raise LedgerError(f"Ledger rows have 6 columns, got {len(row)}")

        timestamp, customer_name, items_json, total, status, order_number = row
        db = self._session_factory()
        try:
            record = LedgerOrder(
                timestamp=str(timestamp),
                customer_name=str(customer_name),
                items_json=items_json,
                total=float(total),
                status=status,
                order_number=order_number,
            )
            db.add(record)
            db.commit()
            logger.info("Ledger append: order #%s for %s ($%.2f)", order_number, customer_name, float(total))
        except Exception as e:
            db.rollback()
            logger.error("Ledger append failed: %s", e, exc_info=True)
            raise LedgerError(f"Failed to append order: {e}") from e
        finally:
            db.close()

    def read_all(self) -> List[List[Any]]:
        db = self._session_factory()
        try:
            records = db.query(LedgerOrder).order_by(LedgerOrder.id).all()
            return [
                [r.timestamp, r.customer_name, r.items_json, r.total, r.status, r.order_number]
                for r in records
            ]
        except Exception as e:
            logger.error("Ledger read failed: %s", e, exc_info=True)
            raise LedgerError(f"Failed to read orders: {e}") from e
        finally:
            db.close()

    def update_status(self, row_index: int, status: str) -> None:
        status = validate_status(status)
        if row_index < 0:
            raise LedgerRowNotFound(f"No order at row {row_index}")

        db = self._session_factory()
        try:
            record = (
                db.query(LedgerOrder)
                .order_by(LedgerOrder.id)
                .offset(row_index)
                .limit(1)
                .first()
            )
            if record is None:
                raise LedgerRowNotFound(f"No order at row {row_index}")

            previous = record.status
            record.status = status
            db.commit()
            logger.info("Order row %d status: %s -> %s", row_index, previous, status)
        except LedgerError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error("Ledger status update failed: %s", e, exc_info=True)
            raise LedgerError(f"Failed to update order status: {e}") from e
        finally:
            db.close()
