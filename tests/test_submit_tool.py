# ============================================================================
# SUBMIT TOOL TESTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tests - CLI submission helpers
# PURPOSE: Verify specification loading, submission and polling
# CREATED: 18 OCT 2026
# ============================================================================
"""
Submit Tool Tests

Tests tools/submit_job.py against an httpx.MockTransport service.

Run with:
    pytest tests/test_submit_tool.py -v
"""

import json

import httpx
import pytest
import yaml

from tools.submit_job import load_specification, main, poll_status, submit_job


SPEC = {
    "name": "@scope/weather",
    "description": "Weather lookups",
    "actions": [{"name": "getWeather", "description": "Current weather"}],
}


def _client(handler) -> httpx.Client:
    return httpx.Client(base_url="http://forge.test", transport=httpx.MockTransport(handler))


# ============================================================================
# LOADING
# ============================================================================

class TestLoadSpecification:

    def test_yaml(self, tmp_path):
        path = tmp_path / "weather.yaml"
        path.write_text(yaml.safe_dump(SPEC))

        spec = load_specification(str(path))

        assert spec.name == "@scope/weather"
        assert spec.actions[0].name == "getWeather"

    def test_json_wrapped(self, tmp_path):
        path = tmp_path / "weather.json"
        path.write_text(json.dumps({"specification": SPEC}))

        assert load_specification(str(path)).description == "Weather lookups"

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError):
            load_specification(str(path))


# ============================================================================
# SUBMIT / POLL
# ============================================================================

class TestSubmit:

    def test_payload(self, tmp_path):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(202, json={"job_id": "job-1", "status": "pending"})

        path = tmp_path / "weather.json"
        path.write_text(json.dumps(SPEC))
        with _client(handler) as client:
            accepted = submit_job(
                client,
                load_specification(str(path)),
                use_template=False,
                model="claude-3-5-sonnet-20241022",
                api_key="sk-1",
            )

        assert accepted["job_id"] == "job-1"
        assert seen["path"] == "/api/v1/jobs"
        assert seen["body"]["specification"]["name"] == "@scope/weather"
        assert seen["body"]["use_template"] is False
        assert seen["body"]["model"] == "claude-3-5-sonnet-20241022"
        assert seen["body"]["api_key"] == "sk-1"

    def test_rejection_raises(self, tmp_path):
        def handler(request):
            return httpx.Response(409, json={"error": "duplicate_artifact", "message": "already created"})

        path = tmp_path / "weather.json"
        path.write_text(json.dumps(SPEC))
        with _client(handler) as client:
            with pytest.raises(RuntimeError, match="HTTP 409 duplicate_artifact"):
                submit_job(client, load_specification(str(path)))

    def test_poll_until_terminal(self):
        statuses = iter(["running", "running", "completed"])
        sleeps = []

        def handler(request):
            return httpx.Response(200, json={"status": next(statuses), "current_iteration": 1})

        with _client(handler) as client:
            data = poll_status(client, "job-1", timeout=60, interval=2, sleep=sleeps.append)

        assert data["status"] == "completed"
        assert sleeps == [2, 2]

    def test_poll_unknown_job(self):
        with _client(lambda request: httpx.Response(404, json={})) as client:
            assert poll_status(client, "gone", sleep=lambda _: None) is None

    def test_poll_timeout(self):
        with _client(lambda request: httpx.Response(200, json={"status": "running"})) as client:
            assert poll_status(client, "job-1", timeout=0, sleep=lambda _: None) is None


class TestMain:

    def test_missing_file_exits_nonzero(self, tmp_path):
        assert main([str(tmp_path / "nope.yaml")]) == 1
