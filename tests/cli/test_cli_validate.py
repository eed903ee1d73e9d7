"""
Functional tests for the validate CLI command.

Tests span validation from files including:
- Table, JSON and CSV output
- Strict failures and lenient retry
- Directories of inputs and result files
- Policy and option overrides
"""

import json
import tempfile
from pathlib import Path

import pytest

from spanlabels.__main__ import cli

FOX = "the quick brown fox jumps"


def write_input(path, spans, text=FOX, meta=None):
    doc = {"text": text, "spans": spans}
    if meta is not None:
        doc["meta"] = meta
    Path(path).write_text(json.dumps(doc))
    return str(path)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for input files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fox_file(temp_dir):
    return write_input(temp_dir / "fox.json", [{"text": "fox", "role": "subject", "start": 30}])


@pytest.fixture
def bad_file(temp_dir):
    return write_input(temp_dir / "bad.json", [
        {"text": "fox", "role": "subject"},
        {"text": "quick", "role": "animal"},
    ])


class TestValidateOutput:
    def test_table(self, runner, fox_file):
        result = runner.invoke(cli, ["validate", fox_file])

        assert result.exit_code == 0
        assert "Status: ok" in result.output
        assert "subject" in result.output
        assert "auto-adjusted" in result.output

    def test_quiet_hides_notes(self, runner, fox_file):
        result = runner.invoke(cli, ["validate", fox_file, "-q"])
        assert result.exit_code == 0
        assert "Notes:" not in result.output

    def test_json(self, runner, fox_file):
        result = runner.invoke(cli, ["validate", fox_file, "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["spans"][0]["start"] == 16
        assert data["spans"][0]["end"] == 19
        assert data["meta"]["version"] == "v1"
        assert "auto-adjusted" in data["meta"]["notes"]

    def test_csv(self, runner, fox_file):
        result = runner.invoke(cli, ["validate", fox_file, "-f", "csv"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0] == "start,end,role,confidence,text"
        assert lines[1] == "16,19,subject,0.7,fox"

    def test_meta_version(self, runner, temp_dir):
        path = write_input(
            temp_dir / "meta.json",
            [{"text": "fox", "role": "subject", "start": 16, "end": 19}],
            meta={"version": "v2"},
        )
        result = runner.invoke(cli, ["validate", path, "-f", "json"])
        assert json.loads(result.output)["meta"]["version"] == "v2"


class TestValidateModes:
    def test_strict_failure_exits_nonzero(self, runner, bad_file):
        result = runner.invoke(cli, ["validate", bad_file])

        assert result.exit_code == 1
        assert "FAILED" in result.output
        assert 'role "animal" is not in the allowed set' in result.output

    def test_attempt_two_is_lenient(self, runner, bad_file):
        result = runner.invoke(cli, ["validate", bad_file, "--attempt", "2"])
        assert result.exit_code == 0
        assert 'dropped: invalid role "animal"' in result.output

    def test_retry_lenient(self, runner, bad_file):
        result = runner.invoke(cli, ["validate", bad_file, "--retry-lenient"])
        assert result.exit_code == 0
        assert "Status: ok" in result.output

    def test_attempt_must_be_positive(self, runner, fox_file):
        result = runner.invoke(cli, ["validate", fox_file, "--attempt", "0"])
        assert result.exit_code == 2


class TestValidateInputs:
    def test_directory_with_output_file(self, runner, temp_dir, fox_file, bad_file):
        out = temp_dir / "out" / "results.json"
        out.parent.mkdir()
        result = runner.invoke(cli, ["validate", str(temp_dir), "-o", str(out), "--retry-lenient"])

        assert result.exit_code == 0
        assert "Results written to" in result.output
        assert "Summary: 2/2 inputs ok" in result.output

        data = json.loads(out.read_text())
        assert [Path(entry["file"]).name for entry in data] == ["bad.json", "fox.json"]
        assert all(entry["ok"] for entry in data)

    def test_single_output_file(self, runner, temp_dir, fox_file):
        out = temp_dir / "result.json"
        result = runner.invoke(cli, ["validate", fox_file, "-o", str(out)])

        assert result.exit_code == 0
        data = json.loads(out.read_text())
        assert data["spans"][0]["text"] == "fox"

    def test_one_failure_fails_batch(self, runner, fox_file, bad_file):
        result = runner.invoke(cli, ["validate", fox_file, bad_file, "-q"])
        assert result.exit_code == 1

    def test_invalid_json(self, runner, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_missing_text_field(self, runner, temp_dir):
        path = temp_dir / "notext.json"
        path.write_text(json.dumps({"spans": []}))
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert '"text" field' in result.output

    def test_empty_directory(self, runner, temp_dir):
        empty = temp_dir / "empty"
        empty.mkdir()
        result = runner.invoke(cli, ["validate", str(empty)])

        assert result.exit_code == 1
        assert "No input files found" in result.output


class TestValidateOverrides:
    def test_max_spans(self, runner, temp_dir):
        colors = ["red", "green", "blue", "amber", "violet"]
        text = ", ".join(colors)
        spans = [{"text": c, "role": "subject.appearance", "confidence": 0.9} for c in colors]
        path = write_input(temp_dir / "colors.json", spans, text=text)

        result = runner.invoke(cli, ["validate", path, "--max-spans", "2", "-f", "json"])

        data = json.loads(result.output)
        assert [s["text"] for s in data["spans"]] == ["red", "green"]

    def test_min_confidence(self, runner, temp_dir):
        path = write_input(temp_dir / "low.json", [
            {"text": "fox", "role": "subject", "start": 16, "end": 19, "confidence": 0.6},
        ])
        result = runner.invoke(cli, ["validate", path, "--min-confidence", "0.8", "-f", "json"])
        assert json.loads(result.output)["spans"] == []

    def test_policy_file(self, runner, temp_dir, fox_file):
        policy = temp_dir / "policy.yaml"
        policy.write_text("policy:\n  allowed_roles: [action]\n")
        result = runner.invoke(cli, ["validate", fox_file, "--policy", str(policy)])

        assert result.exit_code == 1
        assert 'role "subject" is not in the allowed set' in result.output

    def test_bad_policy_file(self, runner, temp_dir, fox_file):
        policy = temp_dir / "policy.yaml"
        policy.write_text("- just\n- a list\n")
        result = runner.invoke(cli, ["validate", fox_file, "--policy", str(policy)])

        assert result.exit_code == 1
        assert "must contain a mapping" in result.output

    def test_config_file(self, runner, temp_dir, fox_file):
        config = temp_dir / "spanlabels.yaml"
        config.write_text("options:\n  template_version: v7\n")
        result = runner.invoke(cli, ["--config", str(config), "validate", fox_file, "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["meta"]["version"] == "v7"
