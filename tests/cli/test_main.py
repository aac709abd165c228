"""Tests for the response-quality CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from response_quality.cli.main import app

runner = CliRunner()


@pytest.fixture
def write_payload(tmp_path):
    def write(content: str, **extra) -> str:
        path = tmp_path / "payload.json"
        path.write_text(json.dumps({"response": {"id": "cli-1", "content": content}, **extra}))
        return str(path)

    return write


class TestStatusCommand:
    def test_status_lists_components(self):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "Result Cache" in result.output
        assert "Audit" in result.output


class TestClaimsCommand:
    def test_lists_claims(self, write_payload):
        result = runner.invoke(app, ["claims", write_payload("The Nile is 6650 km long. I like rivers!")])

        assert result.exit_code == 0
        assert "claim_0" in result.output

    def test_no_claims(self, write_payload):
        result = runner.invoke(app, ["claims", write_payload("Hello there!")])

        assert result.exit_code == 0
        assert "No verifiable claims found" in result.output

    def test_payload_without_response(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"context": {}}))

        result = runner.invoke(app, ["claims", str(path)])

        assert result.exit_code == 1

    def test_unparseable_payload(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["claims", str(path)])

        assert result.exit_code == 1


class TestEvaluateCommand:
    def test_strict_rejection_exits_with_two(self, write_payload):
        payload = write_payload("Here is how to hack the school network quickly.")

        result = runner.invoke(app, ["evaluate", payload, "--strict"])

        assert result.exit_code == 2
        assert "reject" in result.output

    def test_json_output(self, write_payload):
        payload = write_payload(
            "Water boils at 100 degrees Celsius.",
            context={"knowledge_base": [{"content": "Water boils at 100 degrees Celsius"}]},
        )

        result = runner.invoke(app, ["evaluate", payload, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["metadata"]["response_id"] == "cli-1"
        assert len(data["processing_stages"]) == 4

    def test_payload_level_used_without_flag(self, write_payload):
        payload = write_payload("Water is wet.", options={"validation_level": "basic"})

        result = runner.invoke(app, ["evaluate", payload, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["metadata"]["validation_level"] == "basic"

    def test_level_flag_overrides_payload(self, write_payload):
        payload = write_payload("Water is wet.", options={"validation_level": "basic"})

        result = runner.invoke(app, ["evaluate", payload, "--json", "--level", "enhanced"])

        assert result.exit_code == 0
        assert json.loads(result.output)["metadata"]["validation_level"] == "enhanced"


class TestContradictionsCommand:
    def test_reports_self_contradiction(self, write_payload):
        payload = write_payload(
            "The experiment was conducted in 2020. The experiment was never conducted."
        )

        result = runner.invoke(app, ["contradictions", payload, "--threshold", "0.4"])

        assert result.exit_code == 0
        assert "Contradictions" in result.output

    def test_single_claim_has_nothing_to_compare(self, write_payload):
        result = runner.invoke(app, ["contradictions", write_payload("Water is wet.")])

        assert result.exit_code == 0
        assert "No contradictions found" in result.output
        assert "Insufficient claims for contradiction analysis" in result.output
