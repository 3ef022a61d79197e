"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service.  Concrete services receive the caller's
    SQLAlchemy ``Session`` (the unit of work) and use ``session.flush()``,
    never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back the outer transaction themselves.  They
    may open SAVEPOINTs (``session.begin_nested()``) to make a group of
    writes all-or-nothing inside that transaction.

Failure modes:
    - A subclass that commits breaks the atomicity of multi-step operations
      such as restock receiving (movements + item updates + status change).
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the caller's transaction.

    Non-goals:
        - Does NOT provide read-only query methods; those belong in
          ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source for stamped records (SystemClock by default).
        """
        self.session = session
        self.clock = clock or SystemClock()
