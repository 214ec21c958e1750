"""API schemas for flowdoc."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .workflow import Notification, ValidationWarning, WorkflowDocument
from .workflow.errors import ErrorKind


class WorkflowLoadResponse(BaseModel):
    workflow: WorkflowDocument
    warnings: list[ValidationWarning]
    notification: Notification
    reset_execution_states: bool
    needs_fit: bool


class WorkflowLoadFailure(BaseModel):
    kind: ErrorKind
    notification: Notification


class GraphConvertResponse(BaseModel):
    workflow: dict[str, Any]


class TemplateSummary(BaseModel):
    type: str
    title: str
    version: Optional[str]
    inputs: list[str]
    outputs: list[str]


class CatalogResourceCreateRequest(BaseModel):
    resource_id: str = Field(..., min_length=1)
    owner_id: Optional[str] = None
    is_public: bool = False


class CatalogResourceSummary(BaseModel):
    kind: Literal["image", "board", "model"]
    resource_id: str
    owner_id: Optional[str]
    is_public: bool
    created_at: datetime


class CatalogAccessResponse(BaseModel):
    kind: Literal["image", "board", "model"]
    resource_id: str
    actor_id: str
    accessible: bool
