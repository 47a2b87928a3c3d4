"""Error taxonomy for restmapper.

Every error a caller can observe carries an HTTP-style status code so the
transport layer can turn it into a response without interpreting it:

- 400 BadRequestError: missing/invalid parameters, malformed overrides
- 404 NotFoundError: unknown entity, unloadable join target
- 501 NotImplementedVerbError: verb not enabled on the entity
- 500 DriverError: any failure raised by the database driver
"""

from typing import Any, Iterable


class RestError(Exception):
    """Base error with an HTTP-style status code.

    Attributes:
        message: Human-readable message
        status_code: HTTP-style status code
        fields: Offending field names (may be empty)
        details: Per-field messages, keyed by field name
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        fields: Iterable[str] = (),
        details: dict[str, list[str]] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.fields = list(fields)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": self.message,
            "status": self.status_code,
        }
        if self.fields:
            result["fields"] = self.fields
        if self.details:
            result["details"] = self.details
        return result


class BadRequestError(RestError):
    """Client error: reported before any SQL is built."""

    status_code = 400


class NotFoundError(RestError):
    """A named entity (or join target) could not be loaded."""

    status_code = 404


class NotImplementedVerbError(RestError):
    """The verb is not implemented for this entity."""

    status_code = 501


class DriverError(RestError):
    """The database driver failed executing a statement."""

    status_code = 500
