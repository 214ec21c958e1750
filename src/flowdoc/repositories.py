"""Repository helpers for catalog entities."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from .models import CatalogResource


def get_catalog_resource(session: Session, kind: str, resource_id: str) -> Optional[CatalogResource]:
    statement = (
        select(CatalogResource)
        .where(CatalogResource.kind == kind)
        .where(CatalogResource.resource_id == resource_id)
    )
    return session.exec(statement).first()


def upsert_catalog_resource(
    session: Session,
    *,
    kind: str,
    resource_id: str,
    owner_id: Optional[str] = None,
    is_public: bool = False,
) -> CatalogResource:
    row = get_catalog_resource(session, kind, resource_id)
    if row is None:
        row = CatalogResource(kind=kind, resource_id=resource_id)
    row.owner_id = owner_id
    row.is_public = is_public
    session.add(row)
    session.flush()
    return row


def list_catalog_resources(session: Session, kind: str, limit: int = 100) -> list[CatalogResource]:
    statement = (
        select(CatalogResource)
        .where(CatalogResource.kind == kind)
        .order_by(CatalogResource.resource_id.asc())
        .limit(limit)
    )
    return list(session.exec(statement).all())
