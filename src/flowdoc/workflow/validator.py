"""Validation helpers for workflow documents."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from flowdoc.access import AccessCheckers, ResourceKind
from flowdoc.settings import settings

from .errors import ErrorKind, SchemaValidationError, WorkflowLoadError
from .migrations import migrate_workflow
from .templates import ANY_FIELD_TYPE, NodeTemplate, coerce_templates
from .types import (
    CURRENT_WORKFLOW_VERSION,
    ValidationResult,
    ValidationWarning,
    WarningCode,
    WorkflowDocument,
    WorkflowNode,
)

logger = logging.getLogger(__name__)

BOARD_SENTINELS = frozenset({"auto", "none"})


@dataclass(frozen=True)
class ResourceReference:
    node_id: str
    field_name: str
    kind: ResourceKind
    resource_id: str
    index: int | None = None

    @property
    def field_path(self) -> str:
        path = f"nodes.{self.node_id}.inputs.{self.field_name}"
        return path if self.index is None else f"{path}.{self.index}"


def _format_loc(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _reference_id(kind: ResourceKind, value: Any) -> str | None:
    if kind is ResourceKind.BOARD and isinstance(value, str):
        return None if value in BOARD_SENTINELS else value
    if not isinstance(value, dict):
        return None
    key = {
        ResourceKind.IMAGE: "image_name",
        ResourceKind.BOARD: "board_id",
        ResourceKind.MODEL: "key",
    }[kind]
    resource_id = value.get(key)
    return resource_id if isinstance(resource_id, str) and resource_id else None


def find_resource_references(node: WorkflowNode, template: NodeTemplate) -> list[ResourceReference]:
    references: list[ResourceReference] = []
    for field_name, value in node.inputs.items():
        field = template.inputs.get(field_name)
        kind = None if field is None else field.resource_kind
        if kind is None:
            continue
        if isinstance(value, list):
            for index, item in enumerate(value):
                resource_id = _reference_id(kind, item)
                if resource_id is not None:
                    references.append(ResourceReference(node.id, field_name, kind, resource_id, index))
            continue
        resource_id = _reference_id(kind, value)
        if resource_id is not None:
            references.append(ResourceReference(node.id, field_name, kind, resource_id))
    return references


@dataclass
class ValidationOutcome:
    """Either a validation result or the kind of failure that prevented one."""

    result: ValidationResult | None = None
    kind: ErrorKind | None = None
    error: BaseException | None = None

    @classmethod
    def failed(cls, kind: ErrorKind, error: BaseException) -> "ValidationOutcome":
        return cls(kind=kind, error=error)

    @property
    def ok(self) -> bool:
        return self.result is not None


class WorkflowValidator:
    """Migrates, validates and access-checks workflow payloads."""

    def __init__(
        self,
        access_checkers: AccessCheckers | None = None,
        max_workers: int | None = None,
    ):
        self.access_checkers = access_checkers or AccessCheckers.allow_all()
        self.max_workers = max(int(max_workers or settings.access_check_workers), 1)

    def validate(self, payload: Any, templates: Mapping[str, Any]) -> ValidationResult:
        if not isinstance(payload, dict):
            raise SchemaValidationError.single("<root>", "Expected object")

        migrated = migrate_workflow(payload)
        workflow = self._parse(migrated)
        node_templates = coerce_templates(templates)

        warnings: list[ValidationWarning] = []
        warnings.extend(self._check_nodes(workflow, node_templates))
        warnings.extend(self._check_edges(workflow, node_templates))
        warnings.extend(self._check_form(workflow, node_templates))
        warnings.extend(self._check_resources(workflow, node_templates))
        return ValidationResult(workflow=workflow, warnings=warnings)

    def check(self, payload: Any, templates: Mapping[str, Any]) -> ValidationOutcome:
        """Like ``validate``, but reports failures as a tagged outcome."""
        try:
            return ValidationOutcome(result=self.validate(payload, templates))
        except WorkflowLoadError as exc:
            return ValidationOutcome.failed(exc.kind, exc)
        except Exception as exc:  # noqa: BLE001
            return ValidationOutcome.failed(ErrorKind.UNKNOWN, exc)

    def _parse(self, payload: dict[str, Any]) -> WorkflowDocument:
        try:
            workflow = WorkflowDocument.model_validate(payload)
        except ValidationError as exc:
            raise SchemaValidationError(
                [
                    {"path": _format_loc(error["loc"]), "expected": error["msg"]}
                    for error in exc.errors()
                ]
            ) from exc
        if workflow.version != CURRENT_WORKFLOW_VERSION:
            raise SchemaValidationError.single(
                "version", f"Expected version {CURRENT_WORKFLOW_VERSION!r}"
            )
        return workflow

    def _check_nodes(
        self,
        workflow: WorkflowDocument,
        templates: Mapping[str, NodeTemplate],
    ) -> list[ValidationWarning]:
        warnings: list[ValidationWarning] = []
        for index, node in enumerate(workflow.nodes):
            template = templates.get(node.type)
            if template is None:
                raise SchemaValidationError.single(
                    f"nodes.{index}.type", f"Expected a known node type, got '{node.type}'"
                )
            if node.version and template.version and node.version != template.version:
                warnings.append(
                    ValidationWarning(
                        message=(
                            f"Node '{node.id}' has version {node.version} "
                            f"but template '{node.type}' is version {template.version}"
                        ),
                        code=WarningCode.NODE_VERSION_MISMATCH,
                        node_id=node.id,
                    )
                )
            for field_name in node.inputs:
                if field_name not in template.inputs:
                    warnings.append(
                        ValidationWarning(
                            message=f"Node '{node.id}' has unknown input field '{field_name}'",
                            code=WarningCode.UNKNOWN_FIELD,
                            node_id=node.id,
                            field_name=field_name,
                            field_path=f"nodes.{node.id}.inputs.{field_name}",
                        )
                    )
        return warnings

    def _check_edges(
        self,
        workflow: WorkflowDocument,
        templates: Mapping[str, NodeTemplate],
    ) -> list[ValidationWarning]:
        warnings: list[ValidationWarning] = []
        for index, edge in enumerate(workflow.edges):
            source = workflow.node_by_id(edge.source)
            if source is None:
                raise SchemaValidationError.single(
                    f"edges.{index}.source", f"Expected an existing node id, got '{edge.source}'"
                )
            target = workflow.node_by_id(edge.target)
            if target is None:
                raise SchemaValidationError.single(
                    f"edges.{index}.target", f"Expected an existing node id, got '{edge.target}'"
                )

            source_field = templates[source.type].outputs.get(edge.source_field)
            if source_field is None:
                raise SchemaValidationError.single(
                    f"edges.{index}.source_field",
                    f"Expected an output of '{source.type}', got '{edge.source_field}'",
                )
            target_field = templates[target.type].inputs.get(edge.target_field)
            if target_field is None:
                raise SchemaValidationError.single(
                    f"edges.{index}.target_field",
                    f"Expected an input of '{target.type}', got '{edge.target_field}'",
                )

            if ANY_FIELD_TYPE not in (source_field.type, target_field.type) and (
                source_field.type != target_field.type
            ):
                warnings.append(
                    ValidationWarning(
                        message=(
                            f"Edge {edge.source}.{edge.source_field} -> {edge.target}.{edge.target_field} "
                            f"connects {source_field.type} to {target_field.type}"
                        ),
                        code=WarningCode.EDGE_TYPE_MISMATCH,
                        node_id=edge.target,
                        field_name=edge.target_field,
                        field_path=f"nodes.{edge.target}.inputs.{edge.target_field}",
                    )
                )
        return warnings

    def _check_form(
        self,
        workflow: WorkflowDocument,
        templates: Mapping[str, NodeTemplate],
    ) -> list[ValidationWarning]:
        warnings: list[ValidationWarning] = []
        kept = []
        for element in workflow.form.elements:
            node = workflow.node_by_id(element.node_id)
            if node is not None and element.field_name in templates[node.type].inputs:
                kept.append(element)
                continue
            warnings.append(
                ValidationWarning(
                    message=(
                        f"Form element {element.node_id}.{element.field_name} "
                        "does not match any node field and was removed"
                    ),
                    code=WarningCode.FORM_ELEMENT_MISSING,
                    node_id=element.node_id,
                    field_name=element.field_name,
                )
            )
        workflow.form.elements = kept
        return warnings

    def _check_access(self, kind: ResourceKind, resource_id: str) -> bool:
        try:
            return bool(self.access_checkers.for_kind(kind)(resource_id))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "access check failed for %s %s, treating as inaccessible: %s",
                kind.value,
                resource_id,
                exc,
            )
            return False

    def _check_resources(
        self,
        workflow: WorkflowDocument,
        templates: Mapping[str, NodeTemplate],
    ) -> list[ValidationWarning]:
        references: list[ResourceReference] = []
        for node in workflow.nodes:
            references.extend(find_resource_references(node, templates[node.type]))
        if not references:
            return []

        unique = list(dict.fromkeys((ref.kind, ref.resource_id) for ref in references))
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as pool:
            outcomes = list(pool.map(lambda pair: self._check_access(*pair), unique))
        accessible = dict(zip(unique, outcomes))

        warnings: list[ValidationWarning] = []
        denied: list[ResourceReference] = []
        for ref in references:
            if accessible[(ref.kind, ref.resource_id)]:
                continue
            denied.append(ref)
            warnings.append(
                ValidationWarning(
                    message=(
                        f"Node '{ref.node_id}' field '{ref.field_name}' references "
                        f"inaccessible {ref.kind.value} '{ref.resource_id}'"
                    ),
                    code=WarningCode.INACCESSIBLE_RESOURCE,
                    node_id=ref.node_id,
                    field_name=ref.field_name,
                    field_path=ref.field_path,
                    resource_kind=ref.kind,
                    resource_id=ref.resource_id,
                )
            )
        self._clear_references(workflow, denied)
        return warnings

    @staticmethod
    def _clear_references(workflow: WorkflowDocument, denied: list[ResourceReference]) -> None:
        dropped: dict[tuple[str, str], set[int]] = {}
        for ref in denied:
            node = workflow.node_by_id(ref.node_id)
            if node is None:
                continue
            if ref.index is None:
                node.inputs[ref.field_name] = None
            else:
                dropped.setdefault((ref.node_id, ref.field_name), set()).add(ref.index)

        # Input lists may be shared with the caller's payload.
        for (node_id, field_name), indexes in dropped.items():
            node = workflow.node_by_id(node_id)
            node.inputs[field_name] = [
                item for index, item in enumerate(node.inputs[field_name]) if index not in indexes
            ]


def validate_workflow(
    payload: Any,
    templates: Mapping[str, Any],
    access_checkers: AccessCheckers | None = None,
) -> ValidationResult:
    return WorkflowValidator(access_checkers).validate(payload, templates)
