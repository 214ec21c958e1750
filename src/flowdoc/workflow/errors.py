"""Error taxonomy for workflow loading."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    MALFORMED_INPUT = "malformed_input"
    VERSION = "version"
    MIGRATION = "migration"
    SCHEMA = "schema"
    UNKNOWN = "unknown"


class WorkflowLoadError(ValueError):
    """Base class for every failure the load pipeline classifies."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "kind": self.kind.value,
            "message": str(self),
        }


class MissingInputError(WorkflowLoadError):
    """Raised when neither a workflow nor a graph was provided."""

    kind = ErrorKind.MISSING_INPUT


class MalformedInputError(WorkflowLoadError):
    """Raised when the serialized input cannot be parsed."""

    kind = ErrorKind.MALFORMED_INPUT


class WorkflowVersionError(WorkflowLoadError):
    """Raised when a document declares a version outside the known set."""

    kind = ErrorKind.VERSION


class WorkflowMigrationError(WorkflowLoadError):
    """Raised when a known version cannot be migrated to the current one."""

    kind = ErrorKind.MIGRATION


class SchemaValidationError(WorkflowLoadError):
    """Raised when a current-version document violates the schema.

    ``issues`` holds one ``{"path", "expected"}`` entry per violation.
    """

    kind = ErrorKind.SCHEMA
    prefix = "Workflow Validation Error"

    def __init__(self, issues: list[dict[str, str]]):
        self.issues = issues
        details = "; ".join(f"{issue['expected']} at \"{issue['path']}\"" for issue in issues)
        super().__init__(f"{self.prefix}: {details}")

    @classmethod
    def single(cls, path: str, expected: str) -> "SchemaValidationError":
        return cls([{"path": path, "expected": expected}])

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["issues"] = list(self.issues)
        return payload


def serialize_error(exc: BaseException) -> dict[str, Any]:
    if isinstance(exc, WorkflowLoadError):
        return exc.to_dict()
    return {
        "type": type(exc).__name__,
        "kind": ErrorKind.UNKNOWN.value,
        "message": str(exc),
    }
