"""Node templates and the YAML template directory loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from flowdoc.access import ResourceKind

ANY_FIELD_TYPE = "any"

_RESOURCE_FIELD_TYPES = {
    "ImageField": ResourceKind.IMAGE,
    "BoardField": ResourceKind.BOARD,
    "ModelIdentifierField": ResourceKind.MODEL,
}


class TemplateValidationError(ValueError):
    """Raised when a node template definition is invalid."""


class FieldTemplate(BaseModel):
    type: str = Field(default=ANY_FIELD_TYPE, min_length=1)
    default: Any = None
    description: Optional[str] = None

    @property
    def resource_kind(self) -> ResourceKind | None:
        kind = _RESOURCE_FIELD_TYPES.get(self.type)
        if kind is None and self.type.endswith("ModelField"):
            return ResourceKind.MODEL
        return kind


class NodeTemplate(BaseModel):
    """Describes the fields one node type accepts and produces."""

    type: str = Field(..., min_length=1)
    title: str = ""
    version: Optional[str] = None
    inputs: Dict[str, FieldTemplate] = Field(default_factory=dict)
    outputs: Dict[str, FieldTemplate] = Field(default_factory=dict)


TemplateMap = Mapping[str, NodeTemplate]


def coerce_templates(templates: Mapping[str, Any] | None) -> dict[str, NodeTemplate]:
    """Return a template map, validating any raw dict entries."""
    coerced: dict[str, NodeTemplate] = {}
    for node_type, template in (templates or {}).items():
        if isinstance(template, NodeTemplate):
            coerced[node_type] = template
            continue
        payload = dict(template or {})
        payload.setdefault("type", node_type)
        try:
            coerced[node_type] = NodeTemplate.model_validate(payload)
        except ValidationError as exc:
            raise TemplateValidationError(f"Invalid template '{node_type}': {exc}") from exc
    return coerced


class TemplateLoader:
    """Loads node templates from a directory of YAML files."""

    suffixes = (".yaml", ".yml")

    def __init__(self, template_dir: str | Path):
        self.template_dir = Path(template_dir).expanduser().resolve()

    def _path_for(self, node_type: str) -> Path | None:
        for suffix in self.suffixes:
            file_path = self.template_dir / f"{node_type}{suffix}"
            if file_path.exists():
                return file_path
        return None

    def load(self, node_type: str) -> NodeTemplate:
        file_path = self._path_for(node_type)
        if file_path is None:
            raise FileNotFoundError(
                f"Node template not found for '{node_type}' in {self.template_dir}"
            )
        return self._load_file(file_path)

    def load_all(self) -> dict[str, NodeTemplate]:
        if not self.template_dir.is_dir():
            return {}
        templates: dict[str, NodeTemplate] = {}
        for file_path in sorted(self.template_dir.iterdir()):
            if file_path.suffix not in self.suffixes:
                continue
            template = self._load_file(file_path)
            templates[template.type] = template
        return templates

    def _load_file(self, file_path: Path) -> NodeTemplate:
        with file_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}

        if not isinstance(payload, dict):
            raise TemplateValidationError(f"Template file {file_path} must contain a mapping")
        if "type" not in payload:
            payload["type"] = file_path.stem
        try:
            return NodeTemplate.model_validate(payload)
        except ValidationError as exc:
            raise TemplateValidationError(f"Invalid template file {file_path}: {exc}") from exc
