"""Resource access checks for images, boards and models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from sqlmodel import Session

from .repositories import get_catalog_resource

AccessCheck = Callable[[str], bool]


class ResourceKind(str, Enum):
    IMAGE = "image"
    BOARD = "board"
    MODEL = "model"


def _allow(resource_id: str) -> bool:
    del resource_id
    return True


@dataclass(frozen=True)
class AccessCheckers:
    """The three access predicates a validation run consults."""

    check_image_access: AccessCheck
    check_board_access: AccessCheck
    check_model_access: AccessCheck

    @classmethod
    def allow_all(cls) -> "AccessCheckers":
        return cls(
            check_image_access=_allow,
            check_board_access=_allow,
            check_model_access=_allow,
        )

    def for_kind(self, kind: ResourceKind) -> AccessCheck:
        if kind is ResourceKind.IMAGE:
            return self.check_image_access
        if kind is ResourceKind.BOARD:
            return self.check_board_access
        return self.check_model_access


class CatalogAccessCheckers:
    """Answers access checks from the resource catalog for a single actor.

    Each check opens its own session so checks may run on worker threads.
    A resource is accessible when it exists and is either public or owned
    by the actor.
    """

    def __init__(self, session_factory: Callable[[], Session], actor_id: str):
        self._session_factory = session_factory
        self.actor_id = actor_id

    def is_accessible(self, kind: ResourceKind, resource_id: str) -> bool:
        session = self._session_factory()
        try:
            row = get_catalog_resource(session, kind.value, resource_id)
            if row is None:
                return False
            return bool(row.is_public or row.owner_id == self.actor_id)
        finally:
            session.close()

    def as_checkers(self) -> AccessCheckers:
        return AccessCheckers(
            check_image_access=lambda resource_id: self.is_accessible(ResourceKind.IMAGE, resource_id),
            check_board_access=lambda resource_id: self.is_accessible(ResourceKind.BOARD, resource_id),
            check_model_access=lambda resource_id: self.is_accessible(ResourceKind.MODEL, resource_id),
        )
