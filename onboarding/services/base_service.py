"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager

from sqlalchemy.orm import Session

from onboarding.core.logging import get_logger


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Transaction management utilities
    """

    def __init__(self, db_session: Session):
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__).add_context(service=self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Example:
            with self.transaction():
                self.profiles.save(profile)
                # commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        """Commit the current transaction."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, logging rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")
