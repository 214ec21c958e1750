import json
import unittest

from _test_support import TEMPLATES, current_workflow, edge, node
from flowdoc.access import AccessCheckers
from flowdoc.workflow import (
    CURRENT_WORKFLOW_VERSION,
    ErrorKind,
    MissingInputError,
    WorkflowInput,
    WorkflowLoader,
    WorkflowValidator,
)
from flowdoc.workflow.loader import read_workflow_input
from flowdoc.workflow.migrations import migrate_v2_to_v3


class _RecordingNotifier:
    def __init__(self):
        self.notifications = []

    def notify(self, notification):
        self.notifications.append(notification)


class _RecordingSink:
    def __init__(self):
        self.effects = []

    def apply(self, effects):
        self.effects.append(effects)


def _deny_images(*image_names):
    return AccessCheckers(
        check_image_access=lambda resource_id: resource_id not in image_names,
        check_board_access=lambda resource_id: True,
        check_model_access=lambda resource_id: True,
    )


class WorkflowLoaderTests(unittest.TestCase):
    def setUp(self):
        self.notifier = _RecordingNotifier()
        self.sink = _RecordingSink()
        self.loader = WorkflowLoader(notifier=self.notifier, effects_sink=self.sink)

    def test_graph_example_loads_with_node_at_origin(self):
        raw = WorkflowInput(graph='{"nodes":[{"id":"a","type":"noop"}],"edges":[]}')
        result = self.loader.load(raw, {"noop": {}})

        self.assertIsNotNone(result)
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.workflow.version, CURRENT_WORKFLOW_VERSION)
        self.assertEqual(len(result.workflow.nodes), 1)
        loaded = result.workflow.nodes[0]
        self.assertEqual((loaded.id, loaded.type), ("a", "noop"))
        self.assertEqual((loaded.position.x, loaded.position.y), (0, 0))
        self.assertEqual(result.workflow.edges, [])

    def test_retired_version_example_returns_none_with_migration_error(self):
        raw = WorkflowInput(workflow='{"version":"0.1","nodes":[],"edges":[]}')
        result, effects = self.loader.load_with_effects(raw, TEMPLATES)

        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.MIGRATION)
        self.assertIsNone(effects.workflow)
        self.assertFalse(effects.reset_execution_states)
        self.assertFalse(effects.needs_fit)

    def test_valid_current_document_loads_unchanged(self):
        payload = current_workflow(
            nodes=[node("load", "load_image"), node("resize", "resize", {"width": 640})],
            edges=[edge("load", "image", "resize", "image")],
        )
        result, effects = self.loader.load_with_effects(WorkflowInput(workflow=json.dumps(payload)), TEMPLATES)

        self.assertEqual(result.workflow.to_payload(), payload)
        self.assertEqual(result.warnings, [])
        self.assertEqual(effects.notification.status, "success")
        self.assertEqual(effects.notification.id, "WORKFLOW_LOADED")
        self.assertTrue(effects.reset_execution_states)
        self.assertTrue(effects.needs_fit)
        self.assertIs(effects.workflow, result.workflow)

    def test_one_step_behind_matches_manual_migration(self):
        old = {
            "version": "2.0.0",
            "name": "old",
            "exposedFields": [],
            "nodes": [{"id": "resize", "type": "resize", "inputs": {"width": 640}}],
            "edges": [],
        }
        result = self.loader.load(WorkflowInput(workflow=json.dumps(old)), TEMPLATES)
        by_hand = migrate_v2_to_v3(old)

        self.assertEqual(result.workflow.version, by_hand["version"])
        self.assertEqual(result.workflow.nodes[0].inputs, by_hand["nodes"][0]["inputs"])
        self.assertEqual(result.workflow.form.model_dump(), by_hand["form"])
        self.assertEqual(result.workflow.name, by_hand["name"])

    def test_unknown_version_returns_none_with_version_error(self):
        raw = WorkflowInput(workflow='{"version":"9.9.9","nodes":[],"edges":[]}')
        result, effects = self.loader.load_with_effects(raw, TEMPLATES)

        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.VERSION)
        self.assertIn("9.9.9", effects.notification.description)

    def test_dangling_edge_fails_with_schema_error(self):
        payload = current_workflow(
            nodes=[node("load", "load_image")],
            edges=[edge("load", "image", "ghost", "image")],
        )
        with self.assertLogs("flowdoc.workflow.loader", level="ERROR"):
            result, effects = self.loader.load_with_effects(
                WorkflowInput(workflow=json.dumps(payload)), TEMPLATES
            )

        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.SCHEMA)
        self.assertTrue(effects.notification.description.startswith("Workflow Validation Error:"))

    def test_inaccessible_image_loads_with_warning_notification(self):
        loader = WorkflowLoader(
            WorkflowValidator(_deny_images("secret.png")),
            notifier=self.notifier,
        )
        payload = current_workflow(nodes=[node("load", "load_image", {"image": {"image_name": "secret.png"}})])
        with self.assertLogs("flowdoc.workflow.loader", level="WARNING") as logs:
            result = loader.load(WorkflowInput(workflow=json.dumps(payload)), TEMPLATES)

        self.assertEqual(len(result.warnings), 1)
        self.assertEqual(result.warnings[0].field_name, "image")
        self.assertEqual(len(self.notifier.notifications), 1)
        self.assertEqual(self.notifier.notifications[0].status, "warning")
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(logs.records[0].warning["resource_id"], "secret.png")

    def test_missing_input_returns_none(self):
        result, effects = self.loader.load_with_effects(WorkflowInput(), TEMPLATES)
        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.MISSING_INPUT)

    def test_read_workflow_input_tags_missing_input(self):
        outcome = read_workflow_input(WorkflowInput(), TEMPLATES, WorkflowValidator())

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.kind, ErrorKind.MISSING_INPUT)
        self.assertIsInstance(outcome.error, MissingInputError)

    def test_read_workflow_input_tags_validator_failures(self):
        raw = WorkflowInput(workflow='{"version":"0.1","nodes":[],"edges":[]}')
        outcome = read_workflow_input(raw, TEMPLATES, WorkflowValidator())
        self.assertEqual(outcome.kind, ErrorKind.MIGRATION)

    def test_unversioned_document_is_rejected_instead_of_losing_inputs(self):
        unversioned = {
            "nodes": [{"id": "resize", "type": "resize", "inputs": {"width": 640}}],
            "edges": [],
        }
        result, effects = self.loader.load_with_effects(
            WorkflowInput(workflow=json.dumps(unversioned)), TEMPLATES
        )

        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.VERSION)
        self.assertIsNone(effects.workflow)

    def test_malformed_json_returns_none(self):
        for raw in (WorkflowInput(workflow="{not json"), WorkflowInput(graph="[1, 2")):
            result, effects = self.loader.load_with_effects(raw, TEMPLATES)
            self.assertIsNone(result)
            self.assertEqual(effects.error_kind, ErrorKind.MALFORMED_INPUT)

    def test_malformed_graph_shape_returns_none(self):
        raw = WorkflowInput(graph='{"nodes":[{"type":"noop"}],"edges":[]}')
        _, effects = self.loader.load_with_effects(raw, TEMPLATES)
        self.assertEqual(effects.error_kind, ErrorKind.MALFORMED_INPUT)

    def test_workflow_is_preferred_over_graph(self):
        raw = WorkflowInput(
            workflow=json.dumps(current_workflow(nodes=[node("w", "noop")])),
            graph='{"nodes":[{"id":"g","type":"noop"}],"edges":[]}',
        )
        result = self.loader.load(raw, TEMPLATES)
        self.assertEqual([n.id for n in result.workflow.nodes], ["w"])

    def test_unexpected_error_is_reported_as_unknown(self):
        class _ExplodingValidator(WorkflowValidator):
            def validate(self, payload, templates):
                raise RuntimeError("boom")

        loader = WorkflowLoader(_ExplodingValidator(), notifier=self.notifier)
        with self.assertLogs("flowdoc.workflow.loader", level="ERROR"):
            result, effects = loader.load_with_effects(WorkflowInput(workflow="{}"), TEMPLATES)

        self.assertIsNone(result)
        self.assertEqual(effects.error_kind, ErrorKind.UNKNOWN)
        self.assertEqual(effects.notification.description, "Unknown error validating workflow")

    def test_failure_issues_exactly_one_notification(self):
        self.loader.load(WorkflowInput(workflow='{"version":"0.1"}'), TEMPLATES)

        self.assertEqual(len(self.notifier.notifications), 1)
        notification = self.notifier.notifications[0]
        self.assertEqual(notification.id, "UNABLE_TO_VALIDATE_WORKFLOW")
        self.assertEqual(notification.status, "error")
        self.assertEqual(len(self.sink.effects), 1)


if __name__ == "__main__":
    unittest.main()
