"""Versioned workflow document loading, migration and validation."""

from .access import AccessCheckers, ResourceKind
from .workflow import WorkflowInput, WorkflowLoader, WorkflowValidator

__all__ = [
    "__version__",
    "AccessCheckers",
    "ResourceKind",
    "WorkflowInput",
    "WorkflowLoader",
    "WorkflowValidator",
]

__version__ = "0.1.0"
