import unittest

from _test_support import reset_database
from flowdoc.access import AccessCheckers, CatalogAccessCheckers, ResourceKind
from flowdoc.db import get_session, session_scope
from flowdoc.repositories import get_catalog_resource, list_catalog_resources, upsert_catalog_resource


class CatalogAccessTests(unittest.TestCase):
    def setUp(self):
        reset_database()
        with session_scope() as session:
            upsert_catalog_resource(session, kind="image", resource_id="mine.png", owner_id="alice")
            upsert_catalog_resource(session, kind="image", resource_id="theirs.png", owner_id="bob")
            upsert_catalog_resource(session, kind="board", resource_id="shared", owner_id="bob", is_public=True)
            upsert_catalog_resource(session, kind="model", resource_id="sd-1", is_public=True)

    def test_owner_can_access_private_resource(self):
        checker = CatalogAccessCheckers(get_session, "alice")
        self.assertTrue(checker.is_accessible(ResourceKind.IMAGE, "mine.png"))
        self.assertFalse(checker.is_accessible(ResourceKind.IMAGE, "theirs.png"))

    def test_public_resources_are_accessible_to_everyone(self):
        checkers = CatalogAccessCheckers(get_session, "alice").as_checkers()
        self.assertTrue(checkers.check_board_access("shared"))
        self.assertTrue(checkers.check_model_access("sd-1"))

    def test_unknown_resource_is_inaccessible(self):
        checkers = CatalogAccessCheckers(get_session, "alice").as_checkers()
        self.assertFalse(checkers.check_image_access("nope.png"))
        self.assertFalse(checkers.check_model_access("mine.png"))

    def test_upsert_updates_existing_row(self):
        with session_scope() as session:
            upsert_catalog_resource(session, kind="image", resource_id="theirs.png", owner_id="bob", is_public=True)
        with session_scope() as session:
            row = get_catalog_resource(session, "image", "theirs.png")
            self.assertTrue(row.is_public)
            self.assertEqual(len(list_catalog_resources(session, "image")), 2)

    def test_allow_all_and_for_kind(self):
        checkers = AccessCheckers.allow_all()
        for kind in ResourceKind:
            self.assertTrue(checkers.for_kind(kind)("anything"))


if __name__ == "__main__":
    unittest.main()
