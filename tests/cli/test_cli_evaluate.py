"""
Functional tests for the evaluate CLI command.
"""

import json

import pytest

from spanlabels.__main__ import cli

GOLD = [
    {"text": "quick", "role": "subject.appearance", "start": 4, "end": 9},
    {"text": "fox", "role": "subject", "start": 16, "end": 19},
]


@pytest.fixture
def gold_file(tmp_path):
    path = tmp_path / "gold.json"
    path.write_text(json.dumps(GOLD))
    return str(path)


def write_predicted(tmp_path, spans, wrap=False):
    path = tmp_path / "pred.json"
    payload = {"ok": True, "spans": spans} if wrap else spans
    path.write_text(json.dumps(payload))
    return str(path)


class TestEvaluateCommand:
    def test_perfect_match(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD)
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["f1"] == 1.0
        assert data["true_positives"] == 2
        assert data["false_negatives"] == 0

    def test_accepts_validate_output(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD[1:], wrap=True)
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "-f", "json"])

        data = json.loads(result.output)
        assert data["precision"] == 1.0
        assert data["recall"] == 0.5
        assert data["f1"] == 0.6667

    def test_role_mismatch_is_not_a_match(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, [{"start": 16, "end": 19, "role": "action"}])
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "-f", "json"])

        data = json.loads(result.output)
        assert data["true_positives"] == 0
        assert data["false_positives"] == 1

    def test_table_output(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD)
        result = runner.invoke(cli, ["evaluate", pred, gold_file])

        assert result.exit_code == 0
        assert "f1: 1.0" in result.output

    def test_by_role(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD[1:])
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "--by-role", "-f", "json"])

        rows = {row["role"]: row for row in json.loads(result.output)["by_role"]}
        assert rows["subject"]["f1"] == 1.0
        assert rows["subject.appearance"]["recall"] == 0.0
        assert rows["subject.appearance"]["support"] == 1

    def test_by_role_table(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD)
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "--by-role"])

        assert result.exit_code == 0
        assert "Support" in result.output
        assert "subject.appearance" in result.output

    def test_not_a_span_list(self, runner, tmp_path, gold_file):
        pred = tmp_path / "pred.json"
        pred.write_text(json.dumps({"spans": "nope"}))
        result = runner.invoke(cli, ["evaluate", str(pred), gold_file])

        assert result.exit_code == 1
        assert "Expected a list of spans" in result.output

    def test_threshold_range(self, runner, tmp_path, gold_file):
        pred = write_predicted(tmp_path, GOLD)
        result = runner.invoke(cli, ["evaluate", pred, gold_file, "--iou-threshold", "1.5"])
        assert result.exit_code == 2
