"""Tests for the click command line."""

import json
from click.testing import CliRunner

from lira.cli import main
from lira.models import BoardSnapshot
from lira.version import VERSION

SCRIPT = """
version: "1.0"
steps:
  - add_user: {name: alice, as: a}
  - add_issue: {title: Checkout, type: epic, as: e}
  - add_issue: {title: Payment form, type: feature, as: f}
  - set_parent: {issue: f, parent: e}
  - assign: {user: a, issue: f}
"""


def _write(tmp_path, text):
    path = tmp_path / "script.yml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestCli:
    """Test the lira command."""

    def test_version(self):
        """Test the version option."""
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_replay_table(self, tmp_path):
        """Test printing a replayed board as a table."""
        result = CliRunner().invoke(main, ["replay", _write(tmp_path, SCRIPT)])

        assert result.exit_code == 0, result.output
        assert "Ran 5 steps" in result.output
        assert "Issues: 2" in result.output
        lines = [line.split() for line in result.output.splitlines()]
        assert ["Payment", "form", "feature", "todo", "Checkout", "alice"] in lines

    def test_replay_yaml(self, tmp_path):
        """Test printing a replayed board as YAML."""
        result = CliRunner().invoke(main, ["replay", _write(tmp_path, SCRIPT), "--format", "yaml"])

        assert result.exit_code == 0, result.output
        snapshot = BoardSnapshot.from_yaml(result.output)
        assert [i.title for i in snapshot.issues] == ["Checkout", "Payment form"]
        assert len(snapshot.assignments) == 1

    def test_replay_failure(self, tmp_path):
        """Test the exit code of a failing script."""
        script = 'version: "1.0"\nsteps:\n  - remove_user: {user: ghost}\n'
        result = CliRunner().invoke(main, ["replay", _write(tmp_path, script)])

        assert result.exit_code == 1
        assert "ScriptError" in result.output

    def test_schema(self):
        """Test printing the script schema."""
        result = CliRunner().invoke(main, ["schema"])
        assert result.exit_code == 0
        assert json.loads(result.output)["required"] == ["version", "steps"]
