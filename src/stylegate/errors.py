from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from fastapi import status


class ErrorCode(str, Enum):
    invalid_configuration = "invalid_configuration"
    too_large = "too_large"
    unauthorized = "unauthorized"
    internal_error = "internal_error"


_DEFAULT_MESSAGE: Final[dict[ErrorCode, str]] = {
    ErrorCode.invalid_configuration: "Invalid checker configuration.",
    ErrorCode.too_large: "Source exceeds size limit.",
    ErrorCode.unauthorized: "Unauthorized.",
    ErrorCode.internal_error: "Internal server error.",
}


@dataclass(frozen=True)
class ErrorResponse:
    code: ErrorCode
    message: str
    request_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code.value,
            "message": self.message,
            "request_id": self.request_id,
        }


class ReadFailure(Exception):
    """A source file could not be loaded (missing, unreadable, or not UTF-8)."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = str(path)
        self.reason = reason


class ConfigurationError(Exception):
    """Invalid rule selection, threshold, or config file. Fatal before checking starts."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AppError(Exception):
    def __init__(self, code: ErrorCode, http_status: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.http_status = http_status
        self.message = message


def new_error(code: ErrorCode, request_id: str, message: str | None = None) -> ErrorResponse:
    msg = message if message is not None else _DEFAULT_MESSAGE.get(code, "")
    return ErrorResponse(code=code, message=msg, request_id=request_id)


def status_for(code: ErrorCode) -> int:
    if code is ErrorCode.invalid_configuration:
        return status.HTTP_400_BAD_REQUEST
    if code is ErrorCode.too_large:
        return 413  # Content Too Large
    if code is ErrorCode.unauthorized:
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_500_INTERNAL_SERVER_ERROR
