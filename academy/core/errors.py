from __future__ import annotations


class AcademyError(Exception):
    """Base class for scheduling, reporting and store failures."""


class ValidationError(AcademyError, ValueError):
    """A required field is missing or does not resolve to an existing record."""


class NotFoundError(AcademyError, LookupError):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f'{collection} record not found: {record_id}')


class PersistenceError(AcademyError):
    """The record store rejected a read or write (network, permission, driver)."""


class ConversionError(AcademyError, ValueError):
    """Unknown IANA zone or an unparseable date/time string."""
