"""Typed workflow documents and validation results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from flowdoc.access import ResourceKind

CURRENT_WORKFLOW_VERSION = "3.0.0"


class Position(BaseModel):
    x: float = 0
    y: float = 0


class WorkflowNode(BaseModel):
    """One invocation node; ``inputs`` only holds field-value overrides."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    label: str = ""
    version: Optional[str] = None
    position: Position = Field(default_factory=Position)
    is_intermediate: bool = True
    use_cache: bool = True
    inputs: Dict[str, Any] = Field(default_factory=dict)


class WorkflowEdge(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    source: str = Field(..., min_length=1)
    source_field: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    target_field: str = Field(..., min_length=1)


class FormElement(BaseModel):
    node_id: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)


class WorkflowForm(BaseModel):
    elements: List[FormElement] = Field(default_factory=list)


class WorkflowDocument(BaseModel):
    """A current-version workflow document."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    version: str = Field(default=CURRENT_WORKFLOW_VERSION, min_length=1)
    name: str = ""
    author: str = ""
    description: str = ""
    notes: str = ""
    tags: str = ""
    contact: str = ""
    category: Literal["user", "default", "project"] = "user"
    form: WorkflowForm = Field(default_factory=WorkflowForm)
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_node_ids(self) -> "WorkflowDocument":
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"duplicate node id '{node.id}'")
            seen.add(node.id)
        return self

    def node_by_id(self, node_id: str) -> WorkflowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class WarningCode(str, Enum):
    UNKNOWN_FIELD = "unknown_field"
    NODE_VERSION_MISMATCH = "node_version_mismatch"
    EDGE_TYPE_MISMATCH = "edge_type_mismatch"
    FORM_ELEMENT_MISSING = "form_element_missing"
    INACCESSIBLE_RESOURCE = "inaccessible_resource"


class ValidationWarning(BaseModel):
    """A non-fatal finding; it never blocks a load."""

    message: str
    code: WarningCode
    node_id: Optional[str] = None
    field_name: Optional[str] = None
    field_path: Optional[str] = None
    resource_kind: Optional[ResourceKind] = None
    resource_id: Optional[str] = None

    def context(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"message"}, exclude_none=True)


class ValidationResult(BaseModel):
    workflow: WorkflowDocument
    warnings: List[ValidationWarning] = Field(default_factory=list)
