"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from functools import wraps
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tiffin.config.settings import settings
from tiffin.core.clock import Clock, ServiceClock
from tiffin.core.exceptions import BaseAppException, ConflictError, OperationError
from tiffin.core.logging import get_logger
from tiffin.core.notifications import LoggingNotifier, Notifier, send_notification

T = TypeVar("T")


def default_clock() -> ServiceClock:
    return ServiceClock(settings.SERVICE_UTC_OFFSET_MINUTES, settings.PAUSE_CUTOFF_HOUR)


def transient_read(func: Callable[..., T]) -> Callable[..., T]:
    """
    Retry a read-only service method on transient storage failures.

    Only OperationalError (lost connection, lock timeout) is retried. The
    session is rolled back between attempts so the next try starts clean.
    Never apply this to a method that writes.
    """

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(settings.READ_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.1, max=2),
        reraise=True,
    )
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except OperationalError as exc:
            self._logger.warning(f"Transient read failure in {func.__name__}: {exc}")
            self._rollback()
            raise

    return wrapper


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger, db session, clock and notifier
    - One transaction per public operation
    - Notifications dispatched only after commit
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
    ):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
            clock: Source of the service-local time
            notifier: Outbound notification collaborator
        """
        self.db: Session = db_session
        self.clock: Clock = clock or default_clock()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._logger = get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self._outbox: List[Tuple[str, str, str]] = []

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, conflict: Optional[ConflictError] = None):
        """
        Context manager for one all-or-nothing unit of work.

        Args:
            conflict: Error to raise when a storage uniqueness constraint
                rejects the write. Without it an IntegrityError surfaces
                as a generic OperationError.

        Example:
            with self.transaction(conflict=ConflictError("duplicate")):
                self.repository.create(entity)
        """
        try:
            yield self.db
            self.db.commit()
        except BaseAppException:
            self._rollback()
            self._outbox.clear()
            raise
        except IntegrityError as exc:
            self._rollback()
            self._outbox.clear()
            if conflict is not None:
                self._logger.info(f"Uniqueness guard rejected write: {exc.orig}")
                raise conflict from exc
            self._logger.error(f"Integrity failure: {exc}", exc_info=True)
            raise OperationError("Request could not be completed") from exc
        except SQLAlchemyError as exc:
            self._rollback()
            self._outbox.clear()
            self._logger.error(f"Transaction failed: {exc}", exc_info=True)
            raise OperationError("Request could not be completed") from exc
        except Exception:
            self._rollback()
            self._outbox.clear()
            self._logger.error("Transaction failed", exc_info=True)
            raise
        else:
            self._dispatch_notifications()

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # Rollback errors should not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _notify(self, user_id: str, title: str, message: str) -> None:
        """Queue a notification for delivery once the transaction commits."""
        self._outbox.append((user_id, title, message))

    def _dispatch_notifications(self) -> None:
        pending, self._outbox = self._outbox, []
        for user_id, title, message in pending:
            send_notification(self.notifier, user_id, title, message)
