from __future__ import annotations

import contextlib
import logging
from typing import Any, ClassVar, Iterator

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Store-level failures (raised by DocumentStore implementations)
# -------------------------------------------------------------------
class DocumentNotFound(LookupError):
    """The document has never been written."""


class DocumentReadError(OSError):
    pass


class DocumentWriteError(OSError):
    pass


# -------------------------------------------------------------------
# Service-level failures (translated to transport responses)
# -------------------------------------------------------------------
class PersistenceError(Exception):
    """
    Base for every failure reported to the caller of DocumentService.

    `kind` is machine readable, `message` is meant for humans, and any extra
    keyword arguments are carried verbatim into the response body.
    """

    kind: ClassVar[str] = "error"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        return {"error": True, "message": self.message, **self.details}


class WriteRejected(PersistenceError):
    def to_body(self) -> dict[str, Any]:
        return {"success": False, "error": self.kind, "message": self.message, **self.details}


class PermissionDenied(WriteRejected):
    kind = "permission_denied"
    status_code = 403


class EmptyPayload(WriteRejected):
    kind = "empty_data"
    status_code = 400


class InvalidJson(WriteRejected):
    kind = "invalid_json"
    status_code = 400


class WriteFailed(WriteRejected):
    kind = "write_failed"
    status_code = 500


class UnexpectedWriteFailure(WriteRejected):
    kind = "exception"
    status_code = 500


class MalformedStoredData(PersistenceError):
    kind = "malformed_stored_data"
    status_code = 500


class ReadFailed(PersistenceError):
    kind = "read_failed"
    status_code = 500


class UnsupportedOperation(PersistenceError):
    kind = "unsupported_operation"
    status_code = 405


@contextlib.contextmanager
def best_effort(what: str, *, log: logging.Logger | None = None) -> Iterator[None]:
    """
    Run a block whose failure must never fail the surrounding operation.

    Errors are logged as warnings and discarded.
    """
    try:
        yield
    except Exception as e:
        (log or logger).warning("%s failed (ignored): %r", what, e)
