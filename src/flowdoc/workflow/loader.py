"""Workflow loader: routes workflow or graph input through validation."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Mapping, Optional, Protocol

from pydantic import BaseModel, ValidationError

from .errors import (
    ErrorKind,
    MalformedInputError,
    MissingInputError,
    WorkflowLoadError,
    serialize_error,
)
from .graph import GraphDocument, graph_to_workflow
from .templates import coerce_templates
from .types import ValidationResult, WorkflowDocument
from .validator import ValidationOutcome, WorkflowValidator

logger = logging.getLogger(__name__)

WORKFLOW_LOADED = "WORKFLOW_LOADED"
UNABLE_TO_VALIDATE_WORKFLOW = "UNABLE_TO_VALIDATE_WORKFLOW"

UNABLE_TO_VALIDATE_TITLE = "Unable to validate workflow"
GENERIC_FAILURE_DESCRIPTION = "The workflow could not be read. Check that it is a valid workflow or graph."
UNKNOWN_ERROR_DESCRIPTION = "Unknown error validating workflow"


class WorkflowInput(BaseModel):
    """Serialized workflow or graph, as delivered by the transport."""

    workflow: Optional[str] = None
    graph: Optional[str] = None


class Notification(BaseModel):
    id: str
    title: str
    status: Literal["success", "warning", "error"]
    description: Optional[str] = None


class LoadEffects(BaseModel):
    """What a load asks the surrounding application to apply."""

    workflow: Optional[WorkflowDocument] = None
    reset_execution_states: bool = False
    needs_fit: bool = False
    notification: Notification
    error_kind: Optional[ErrorKind] = None


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None:
        """Show a notification to the user."""


class EffectsSink(Protocol):
    def apply(self, effects: LoadEffects) -> None:
        """Publish the workflow and apply the reset/fit signals."""


def _parse_json(raw: str, label: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Unable to parse {label}: {exc}") from exc


def _load_payload(raw: WorkflowInput, templates: Mapping[str, Any]) -> Any:
    if raw.workflow:
        # Workflow wins over graph when both are present.
        return _parse_json(raw.workflow, "workflow")
    if raw.graph:
        payload = _parse_json(raw.graph, "graph")
        try:
            graph = GraphDocument.from_payload(payload)
        except ValidationError as exc:
            raise MalformedInputError(f"Unable to parse graph: {exc}") from exc
        return graph_to_workflow(graph, True, coerce_templates(templates))
    raise MissingInputError("No workflow or graph provided")


def read_workflow_input(
    raw: WorkflowInput,
    templates: Mapping[str, Any],
    validator: WorkflowValidator,
) -> ValidationOutcome:
    """Parse, convert when needed, and validate into a tagged outcome."""
    try:
        payload = _load_payload(raw, templates)
    except WorkflowLoadError as exc:
        return ValidationOutcome.failed(exc.kind, exc)
    return validator.check(payload, templates)


def _failure_description(kind: ErrorKind, exc: BaseException) -> str:
    descriptions = {
        ErrorKind.MISSING_INPUT: GENERIC_FAILURE_DESCRIPTION,
        ErrorKind.MALFORMED_INPUT: GENERIC_FAILURE_DESCRIPTION,
        ErrorKind.VERSION: str(exc),
        ErrorKind.MIGRATION: str(exc),
        ErrorKind.SCHEMA: str(exc),
        ErrorKind.UNKNOWN: UNKNOWN_ERROR_DESCRIPTION,
    }
    return descriptions[kind]


class WorkflowLoader:
    """Loads serialized workflows or graphs into validated workflows.

    Never raises: failures become a single error notification and a ``None``
    result. Each call is independent; templates are read-only snapshots.
    """

    def __init__(
        self,
        validator: WorkflowValidator | None = None,
        notifier: Notifier | None = None,
        effects_sink: EffectsSink | None = None,
    ):
        self.validator = validator or WorkflowValidator()
        self.notifier = notifier
        self.effects_sink = effects_sink

    def load(self, raw: WorkflowInput, templates: Mapping[str, Any]) -> ValidationResult | None:
        result, _ = self.load_with_effects(raw, templates)
        return result

    def load_with_effects(
        self,
        raw: WorkflowInput,
        templates: Mapping[str, Any],
    ) -> tuple[ValidationResult | None, LoadEffects]:
        try:
            outcome = read_workflow_input(raw, templates, self.validator)
        except Exception as exc:  # noqa: BLE001
            outcome = ValidationOutcome.failed(ErrorKind.UNKNOWN, exc)

        result = outcome.result
        if outcome.ok:
            effects = self._loaded(result)
        else:
            effects = self._failed(outcome.kind, outcome.error)

        if self.notifier is not None:
            self.notifier.notify(effects.notification)
        if self.effects_sink is not None:
            self.effects_sink.apply(effects)
        return result, effects

    def _loaded(self, result: ValidationResult) -> LoadEffects:
        if not result.warnings:
            notification = Notification(id=WORKFLOW_LOADED, title="Workflow loaded", status="success")
        else:
            notification = Notification(
                id=WORKFLOW_LOADED,
                title="Workflow loaded with warnings",
                status="warning",
            )
            for warning in result.warnings:
                logger.warning("%s", warning.message, extra={"warning": warning.context()})

        return LoadEffects(
            workflow=result.workflow,
            reset_execution_states=True,
            needs_fit=True,
            notification=notification,
        )

    def _failed(self, kind: ErrorKind, exc: BaseException) -> LoadEffects:
        description = _failure_description(kind, exc)
        logger.error(
            "%s",
            description,
            extra={"error": serialize_error(exc)},
            exc_info=exc if kind is ErrorKind.UNKNOWN else None,
        )
        return LoadEffects(
            notification=Notification(
                id=UNABLE_TO_VALIDATE_WORKFLOW,
                title=UNABLE_TO_VALIDATE_TITLE,
                status="error",
                description=description,
            ),
            error_kind=kind,
        )
