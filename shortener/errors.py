"""Domain error taxonomy and HTTP response mapping.

Every failure that leaves the service is a ``ShortenError`` tagged with one
``ErrorKind``. The kind alone decides the HTTP status and the machine-readable
code sent back to the caller; the wrapped message is informational.

Error Table
===========
::
    ErrorKind            status  code
    ─────────────────────────────────────────────────
    BIND_FAILURE         500     BIND_ERROR
    CONNECTION_FAILURE   500     CLIENT_CONNECTION_ERROR
    IDENTIFIER_CONFLICT  409     PRIMARY_KEY_CONFLICT
    STORAGE_FAILURE      500     DB_OPERATION_ERROR
    NOT_FOUND            404     NOT_FOUND
    RETRY_EXHAUSTED      422     RETRY_EXHAUSTED

Classes:
    ErrorKind:  Closed set of failure kinds, valued by their response code.
    ShortenError:  The single exception type raised by gateway and workflows.

Functions:
    error_status():  Total mapping from kind to HTTP status.
    shorten_error_handler():  FastAPI exception handler rendering the JSON body.
"""

from enum import StrEnum

from fastapi import Request
from fastapi.responses import JSONResponse

__all__ = ["ErrorKind", "ShortenError", "error_status", "shorten_error_handler"]


class ErrorKind(StrEnum):
    """Failure kinds; each value is the code reported to clients."""

    BIND_FAILURE = "BIND_ERROR"
    CONNECTION_FAILURE = "CLIENT_CONNECTION_ERROR"
    IDENTIFIER_CONFLICT = "PRIMARY_KEY_CONFLICT"
    STORAGE_FAILURE = "DB_OPERATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"

    @property
    def code(self) -> str:
        return self.value


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BIND_FAILURE: 500,
    ErrorKind.CONNECTION_FAILURE: 500,
    ErrorKind.IDENTIFIER_CONFLICT: 409,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RETRY_EXHAUSTED: 422,
}

if set(_STATUS_BY_KIND) != set(ErrorKind):
    raise RuntimeError("every ErrorKind needs an HTTP status")


def error_status(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND[kind]


class ShortenError(Exception):
    """Domain error carrying its kind and a human readable message.

    Use the named constructors so messages stay consistent across call sites.
    """

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ShortenError(kind={self.kind.name}, message={self.message!r})"

    @property
    def status_code(self) -> int:
        return error_status(self.kind)

    @property
    def code(self) -> str:
        return self.kind.code

    def to_payload(self) -> dict[str, str]:
        return {"message": self.message, "code": self.code}

    @classmethod
    def bind_failure(cls, exc: BaseException, addr: str) -> "ShortenError":
        return cls(ErrorKind.BIND_FAILURE, f"{exc}: {addr}")

    @classmethod
    def connection_failure(cls, detail: object) -> "ShortenError":
        return cls(ErrorKind.CONNECTION_FAILURE, f"Connection/Accept failure: {detail}")

    @classmethod
    def identifier_conflict(cls, constraint: str) -> "ShortenError":
        return cls(ErrorKind.IDENTIFIER_CONFLICT, f"{constraint} constraint violation")

    @classmethod
    def storage_failure(cls, detail: object) -> "ShortenError":
        return cls(ErrorKind.STORAGE_FAILURE, f"DB Operation: {detail}")

    @classmethod
    def not_found(cls) -> "ShortenError":
        return cls(ErrorKind.NOT_FOUND, "Redirect URL not found")

    @classmethod
    def retry_exhausted(cls, attempts: int) -> "ShortenError":
        return cls(ErrorKind.RETRY_EXHAUSTED, f"Exceed max retry times ({attempts})")


async def shorten_error_handler(request: Request, exc: ShortenError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
