"""flowdoc FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlmodel import Session

from flowdoc.access import CatalogAccessCheckers, ResourceKind
from flowdoc.db import create_db_and_tables, get_session
from flowdoc.models import CatalogResource
from flowdoc.repositories import list_catalog_resources, upsert_catalog_resource
from flowdoc.schemas import (
    CatalogAccessResponse,
    CatalogResourceCreateRequest,
    CatalogResourceSummary,
    GraphConvertResponse,
    TemplateSummary,
    WorkflowLoadFailure,
    WorkflowLoadResponse,
)
from flowdoc.settings import settings
from flowdoc.workflow import (
    GraphDocument,
    TemplateLoader,
    WorkflowInput,
    WorkflowLoader,
    WorkflowValidator,
    graph_to_workflow,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="flowdoc", version="0.1.0")

template_loader = TemplateLoader(settings.template_dir_path)


def db_session() -> Generator[Session, None, None]:
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _serialize_resource(row: CatalogResource) -> CatalogResourceSummary:
    return CatalogResourceSummary(
        kind=row.kind,
        resource_id=row.resource_id,
        owner_id=row.owner_id,
        is_public=row.is_public,
        created_at=row.created_at,
    )


@app.on_event("startup")
def startup() -> None:
    create_db_and_tables()


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "flowdoc"}


@app.get("/templates", response_model=list[TemplateSummary])
def list_templates() -> list[TemplateSummary]:
    return [
        TemplateSummary(
            type=template.type,
            title=template.title,
            version=template.version,
            inputs=list(template.inputs),
            outputs=list(template.outputs),
        )
        for template in template_loader.load_all().values()
    ]


@app.post(
    "/workflows/load",
    response_model=WorkflowLoadResponse,
    responses={422: {"model": WorkflowLoadFailure}},
)
def load_workflow(
    payload: WorkflowInput,
    x_actor_id: Optional[str] = Header(default=None),
) -> Any:
    actor_id = x_actor_id or settings.default_actor_id
    logger.info("loading workflow for actor %s", actor_id)
    checkers = CatalogAccessCheckers(get_session, actor_id).as_checkers()
    loader = WorkflowLoader(WorkflowValidator(checkers))
    result, effects = loader.load_with_effects(payload, template_loader.load_all())
    if result is None:
        failure = WorkflowLoadFailure(kind=effects.error_kind, notification=effects.notification)
        return JSONResponse(status_code=422, content=failure.model_dump(mode="json"))
    return WorkflowLoadResponse(
        workflow=result.workflow,
        warnings=result.warnings,
        notification=effects.notification,
        reset_execution_states=effects.reset_execution_states,
        needs_fit=effects.needs_fit,
    )


@app.post("/graphs/convert", response_model=GraphConvertResponse)
def convert_graph(
    payload: dict[str, Any],
    layout: bool = Query(default=True),
) -> GraphConvertResponse:
    try:
        graph = GraphDocument.from_payload(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return GraphConvertResponse(workflow=graph_to_workflow(graph, layout, template_loader.load_all()))


@app.post("/catalog/{kind}", response_model=CatalogResourceSummary, status_code=201)
def register_resource(
    kind: ResourceKind,
    payload: CatalogResourceCreateRequest,
    session: Session = Depends(db_session),
) -> CatalogResourceSummary:
    row = upsert_catalog_resource(
        session,
        kind=kind.value,
        resource_id=payload.resource_id,
        owner_id=payload.owner_id,
        is_public=payload.is_public,
    )
    return _serialize_resource(row)


@app.get("/catalog/{kind}", response_model=list[CatalogResourceSummary])
def list_resources(
    kind: ResourceKind,
    limit: int = Query(default=100, ge=1, le=1000),
    session: Session = Depends(db_session),
) -> list[CatalogResourceSummary]:
    return [_serialize_resource(row) for row in list_catalog_resources(session, kind.value, limit=limit)]


@app.get("/catalog/{kind}/{resource_id}/access", response_model=CatalogAccessResponse)
def check_resource_access(
    kind: ResourceKind,
    resource_id: str,
    actor_id: Optional[str] = Query(default=None),
) -> CatalogAccessResponse:
    effective_actor_id = actor_id or settings.default_actor_id
    checker = CatalogAccessCheckers(get_session, effective_actor_id)
    return CatalogAccessResponse(
        kind=kind.value,
        resource_id=resource_id,
        actor_id=effective_actor_id,
        accessible=checker.is_accessible(kind, resource_id),
    )


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(
        "flowdoc.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
