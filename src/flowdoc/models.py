"""SQLModel entities for the flowdoc resource catalog."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class CatalogResource(SQLModel, table=True):
    """An image, board or model a workflow may reference."""

    __tablename__ = "catalog_resources"
    __table_args__ = (UniqueConstraint("kind", "resource_id", name="uq_catalog_kind_resource"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    kind: str = Field(index=True)
    resource_id: str = Field(index=True)
    owner_id: Optional[str] = Field(default=None, index=True)
    is_public: bool = Field(default=False)
    created_at: datetime = Field(default_factory=now_utc)
