from .errors import (
    ErrorKind,
    MalformedInputError,
    MissingInputError,
    SchemaValidationError,
    WorkflowLoadError,
    WorkflowMigrationError,
    WorkflowVersionError,
)
from .graph import GraphDocument, graph_to_workflow
from .loader import LoadEffects, Notification, WorkflowInput, WorkflowLoader
from .migrations import CURRENT_WORKFLOW_VERSION, MIGRATIONS, migrate_workflow
from .templates import FieldTemplate, NodeTemplate, TemplateLoader, TemplateValidationError
from .types import ValidationResult, ValidationWarning, WarningCode, WorkflowDocument
from .validator import ValidationOutcome, WorkflowValidator, validate_workflow

__all__ = [
    "CURRENT_WORKFLOW_VERSION",
    "MIGRATIONS",
    "ErrorKind",
    "WorkflowLoadError",
    "MissingInputError",
    "MalformedInputError",
    "WorkflowVersionError",
    "WorkflowMigrationError",
    "SchemaValidationError",
    "GraphDocument",
    "graph_to_workflow",
    "migrate_workflow",
    "FieldTemplate",
    "NodeTemplate",
    "TemplateLoader",
    "TemplateValidationError",
    "ValidationResult",
    "ValidationWarning",
    "WarningCode",
    "WorkflowDocument",
    "ValidationOutcome",
    "WorkflowValidator",
    "validate_workflow",
    "WorkflowInput",
    "WorkflowLoader",
    "LoadEffects",
    "Notification",
]
