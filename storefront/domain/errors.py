# storefront/domain/errors.py
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ServiceError(Exception):
    """Bazowy blad domeny, mapowany na status HTTP w create_app."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def detail(self) -> str:
        return self.message


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class InvalidStateError(ServiceError):
    status_code = 400


class DuplicateRequestError(InvalidStateError):
    status_code = 409


class DependencyError(ServiceError):
    """Awaria bazy, katalogu lub redisa. Szczegoly tylko w logach."""

    status_code = 503

    @property
    def detail(self) -> str:
        return "Service temporarily unavailable"


@contextmanager
def storage_errors(db: Session, action: str):
    """Rollback + DependencyError dla kazdego bledu SQLAlchemy w bloku."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure during {action}: {e}")
        raise DependencyError(f"Storage failure during {action}") from e


class ConfigurationError(RuntimeError):
    """Bledna konfiguracja wykryta przy starcie (np. nieobslugiwana baza)."""
