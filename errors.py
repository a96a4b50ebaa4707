"""
Service exceptions.

Each exception carries the HTTP status the API layer answers with, so
routes never translate errors themselves.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for errors raised by the pet and order services."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """A required input field is missing or has the wrong type."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidReference(ServiceError):
    """An order points at a pet that does not exist."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ServiceError):
    """The requested record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class StorageError(ServiceError):
    """MongoDB rejected or failed an operation; message is passed through."""
