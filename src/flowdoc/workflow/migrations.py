"""Version-to-version workflow migrations.

The chain is an ordered list of ``(from_version, transform)`` pairs. Each
transform is pure: it deep-copies its input and returns a document stamped
with the next version. ``migrate_workflow`` folds a document through the
chain until it reaches ``CURRENT_WORKFLOW_VERSION``.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable

from .errors import WorkflowMigrationError, WorkflowVersionError
from .types import CURRENT_WORKFLOW_VERSION

logger = logging.getLogger(__name__)

Document = dict[str, Any]
Migration = Callable[[Document], Document]

# Oldest first. "0.1" is the pre-release format whose migration was retired.
KNOWN_VERSIONS: tuple[str, ...] = ("0.1", "1.0.0", "2.0.0", CURRENT_WORKFLOW_VERSION)

NOTES_NODE_TYPE = "notes"
COLLAPSED_EDGE_TYPE = "collapsed"


def _migrate_node_v1(node: Document) -> Document:
    data = node.get("data")
    if not isinstance(data, dict):
        raise ValueError(f"node {node.get('id')!r} has no data mapping")
    data = dict(data)
    raw_inputs = data.get("inputs") or {}
    inputs: Document = {}
    for field_name, field in raw_inputs.items():
        if isinstance(field, dict):
            inputs[field_name] = field.get("value")
        else:
            inputs[field_name] = field
    migrated: Document = {
        "id": node["id"],
        "type": data.get("type") or node["type"],
        "label": data.get("label") or "",
        "position": node.get("position") or {"x": 0, "y": 0},
        "inputs": inputs,
    }
    if data.get("version"):
        migrated["version"] = data["version"]
    for flag in ("is_intermediate", "use_cache"):
        if flag in data:
            migrated[flag] = data[flag]
    return migrated


def migrate_v1_to_v2(doc: Document) -> Document:
    """Flatten node data, fold notes nodes into workflow notes, rename edge handles."""
    migrated = copy.deepcopy(doc)
    migrated.pop("meta", None)

    notes = [migrated.get("notes") or ""]
    nodes = []
    for node in migrated.get("nodes") or []:
        data = node.get("data") or {}
        if node.get("type") == NOTES_NODE_TYPE or data.get("type") == NOTES_NODE_TYPE:
            notes.append(data.get("notes") or "")
            continue
        nodes.append(_migrate_node_v1(node))

    edges = []
    for edge in migrated.get("edges") or []:
        if edge.get("type") == COLLAPSED_EDGE_TYPE:
            continue
        edges.append(
            {
                "id": edge.get("id"),
                "source": edge["source"],
                "source_field": edge["sourceHandle"],
                "target": edge["target"],
                "target_field": edge["targetHandle"],
            }
        )

    migrated["notes"] = "\n\n".join(text for text in notes if text)
    migrated["nodes"] = nodes
    migrated["edges"] = edges
    migrated["version"] = "2.0.0"
    return migrated


def migrate_v2_to_v3(doc: Document) -> Document:
    """Replace exposed fields with a form layout and default the category."""
    migrated = copy.deepcopy(doc)
    exposed = migrated.pop("exposedFields", None) or []
    migrated["form"] = {
        "elements": [
            {"node_id": field["nodeId"], "field_name": field["fieldName"]}
            for field in exposed
        ]
    }
    migrated.setdefault("category", "user")
    migrated["version"] = CURRENT_WORKFLOW_VERSION
    return migrated


MIGRATIONS: list[tuple[str, Migration]] = [
    ("1.0.0", migrate_v1_to_v2),
    ("2.0.0", migrate_v2_to_v3),
]


def get_version(doc: Document) -> Any:
    """Return the declared version, or ``None`` when the document declares none."""
    if "version" in doc:
        return doc["version"]
    meta = doc.get("meta")
    if isinstance(meta, dict) and "version" in meta:
        return meta["version"]
    return None


def migrate_workflow(
    doc: Document,
    migrations: list[tuple[str, Migration]] | None = None,
    known_versions: tuple[str, ...] = KNOWN_VERSIONS,
) -> Document:
    """Walk ``doc`` forward through the chain until it is current."""
    chain = dict(MIGRATIONS if migrations is None else migrations)
    version = get_version(doc)
    if version is None:
        raise WorkflowVersionError("Workflow does not declare a version")
    if not isinstance(version, str) or version not in known_versions:
        raise WorkflowVersionError(f"Unrecognized workflow version: {version!r}")

    current = doc
    while version != CURRENT_WORKFLOW_VERSION:
        step = chain.get(version)
        if step is None:
            raise WorkflowMigrationError(
                f"Unable to migrate workflow from version {version!r}: no migration registered"
            )
        try:
            current = step(current)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise WorkflowMigrationError(
                f"Failed to migrate workflow from version {version!r}: {exc}"
            ) from exc
        next_version = get_version(current)
        if (
            next_version not in known_versions
            or known_versions.index(next_version) <= known_versions.index(version)
        ):
            raise WorkflowMigrationError(
                f"Migration from version {version!r} produced version {next_version!r}"
            )
        logger.debug("migrated workflow from %s to %s", version, next_version)
        version = next_version
    return current
