"""Command-line workflow loader."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from flowdoc.access import AccessCheckers, CatalogAccessCheckers
from flowdoc.settings import settings
from flowdoc.workflow import TemplateLoader, WorkflowInput, WorkflowLoader, WorkflowValidator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load, migrate and validate a workflow or graph file.")
    parser.add_argument("path", type=Path, help="workflow (or graph with --graph) JSON file")
    parser.add_argument("--graph", action="store_true", help="treat the file as a legacy graph")
    parser.add_argument(
        "--templates",
        type=Path,
        default=None,
        help=f"node template directory (default: {settings.template_dir})",
    )
    parser.add_argument(
        "--actor-id",
        default=settings.default_actor_id,
        help="actor whose resource access is checked",
    )
    parser.add_argument(
        "--allow-all",
        action="store_true",
        help="skip catalog lookups and treat every resource as accessible",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    raw_text = args.path.read_text(encoding="utf-8")
    raw = WorkflowInput(graph=raw_text) if args.graph else WorkflowInput(workflow=raw_text)
    templates = TemplateLoader(args.templates or settings.template_dir_path).load_all()

    if args.allow_all:
        checkers = AccessCheckers.allow_all()
    else:
        from flowdoc.db import create_db_and_tables, get_session

        create_db_and_tables()
        checkers = CatalogAccessCheckers(get_session, args.actor_id).as_checkers()

    result, effects = WorkflowLoader(WorkflowValidator(checkers)).load_with_effects(raw, templates)
    if result is None:
        print(json.dumps(effects.notification.model_dump(mode="json"), indent=2))
        return 1

    logger.info("%s (%d warning(s))", effects.notification.title, len(result.warnings))
    print(json.dumps(result.workflow.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
