"""Typed outcomes returned by catalog and cart operations."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResultStatus(str, Enum):
    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"


HTTP_STATUS_BY_RESULT = {
    ResultStatus.OK: 200,
    ResultStatus.VALIDATION_ERROR: 400,
    ResultStatus.NOT_FOUND: 404,
    ResultStatus.IO_ERROR: 500,
}


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutation; ``value`` carries the affected record on success."""

    status: ResultStatus
    message: str = ""
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.OK

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_RESULT[self.status]

    @classmethod
    def success(cls, value: Any, message: str = "") -> "OperationResult":
        return cls(ResultStatus.OK, message, value)

    @classmethod
    def validation_error(cls, message: str) -> "OperationResult":
        return cls(ResultStatus.VALIDATION_ERROR, message)

    @classmethod
    def not_found(cls, message: str) -> "OperationResult":
        return cls(ResultStatus.NOT_FOUND, message)

    @classmethod
    def io_error(cls, message: str) -> "OperationResult":
        return cls(ResultStatus.IO_ERROR, message)
