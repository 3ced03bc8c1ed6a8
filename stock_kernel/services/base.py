"""
Service base classes -- session handling contracts.

Responsibility:
    BaseService is the flush-only base for helpers that run inside another
    service's unit of work (lot bookkeeping).  OwningService is the base for
    services whose public methods are each one atomic unit of work (ledger
    writer, BOM administration, balance reconciliation).

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - BaseService never calls ``session.commit()`` or ``session.rollback()``.
    - OwningService commits on success and rolls back on any exception
      before re-raising, so callers never observe partial writes.  With
      ``auto_commit=False`` it only flushes and the caller owns the
      boundary, which lets several operations share one transaction.
"""

import time
from abc import ABC
from contextlib import contextmanager
from typing import Any, Generator, Generic, TypeVar

from sqlalchemy.orm import Session

from stock_kernel.db.base import Base
from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.logging_config import get_logger

ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("services.base")


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for flush-only services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()


class OwningService(ABC):
    """
    Base for services that own their transaction boundary.

    Subclasses wrap each public write in ``self._unit_of_work(...)``.
    The yielded dict collects structured fields for the completion log
    line (e.g. the id of the transaction that was written).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _unit_of_work(
        self, operation: str, **fields: Any
    ) -> Generator[dict[str, Any], None, None]:
        t0 = time.monotonic()
        result: dict[str, Any] = {}
        try:
            yield result
            if self._auto_commit:
                self._session.commit()
            else:
                self._session.flush()
        except Exception:
            if self._auto_commit:
                self._session.rollback()
            logger.warning(
                f"{operation}_failed",
                extra={"operation": operation, **fields},
                exc_info=True,
            )
            raise

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info(
            f"{operation}_completed",
            extra={"operation": operation, **fields, **result, "duration_ms": duration_ms},
        )
