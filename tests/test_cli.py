import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from _test_support import TEMPLATE_DIR, current_workflow, node, reset_database
from flowdoc.cli import main


class CliTests(unittest.TestCase):
    def setUp(self):
        reset_database()

    def _run(self, payload, *extra):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "input.json"
            path.write_text(json.dumps(payload), encoding="utf-8")
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                code = main([str(path), "--templates", str(TEMPLATE_DIR), *extra])
        return code, stdout.getvalue()

    def test_loads_workflow_file(self):
        code, output = self._run(current_workflow(nodes=[node("a", "noop")]), "--allow-all")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output)["nodes"][0]["id"], "a")

    def test_loads_graph_file_with_catalog_checks(self):
        graph = {"nodes": [{"id": "m", "type": "main_model_loader", "model": {"key": "sd-1"}}], "edges": []}
        code, output = self._run(graph, "--graph", "--actor-id", "alice")
        self.assertEqual(code, 0)
        self.assertIsNone(json.loads(output)["nodes"][0]["inputs"]["model"])

    def test_failure_prints_notification_and_exits_nonzero(self):
        code, output = self._run({"version": "7.7.7", "nodes": [], "edges": []}, "--allow-all")
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(output)["status"], "error")


if __name__ == "__main__":
    unittest.main()
