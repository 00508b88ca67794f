"""
Jira client request shaping against httpx.MockTransport.
"""

import json

import httpx
import pytest

from apprabbit_tools.jira_integration import JiraClient, JiraClientError, TestFailure, TestRunSummary
from apprabbit_tools.jira_integration import jira_client as jira_module


class JiraStub:
    """Records every request and answers from a (method, path) -> response map."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, json={"errorMessages": ["not found"]})
        if isinstance(answer, Exception):
            raise answer
        return answer

    def body(self, index):
        return json.loads(self.requests[index].content)


def _client(stub, **kwargs):
    return JiraClient(
        url="acme.atlassian.net",
        email="qa@apprabbit.com",
        api_token="jira-token",
        project_key="ALT",
        transport=httpx.MockTransport(stub),
        **kwargs,
    )


LOGIN_UI_FAILURE = TestFailure(
    test_name="test_login_with_valid_credentials",
    test_file="testsuites/ui_testing/tests/test_login.py",
    error="TimeoutError: dashboard never appeared",
    stack_trace="Traceback ...",
    duration_ms=1234.0,
)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(jira_module.time, "sleep", lambda seconds: None)


class TestFailureClassification:

    def test_ui_and_api_detection_uses_path_segments(self):
        api = TestFailure("test_get_profile", "testsuites/api_testing/tests/test_auth_api.py", "boom")
        assert api.is_api_test and not api.is_ui_test
        assert LOGIN_UI_FAILURE.is_ui_test and not LOGIN_UI_FAILURE.is_api_test

    def test_priority(self):
        assert JiraClient.determine_priority(LOGIN_UI_FAILURE) == "High"
        assert JiraClient.determine_priority(TestFailure("test_auth_refresh", "x", "e")) == "High"
        assert JiraClient.determine_priority(TestFailure("test_navigate_apps", "x", "e")) == "Medium"

    def test_labels_and_components(self):
        assert JiraClient.generate_labels(LOGIN_UI_FAILURE) == [
            "automated-test", "test-failure", "ui-test", "login",
        ]
        assert JiraClient.determine_components(LOGIN_UI_FAILURE) == [
            {"name": "Authentication"}, {"name": "UI"},
        ]

    def test_success_rate(self):
        assert TestRunSummary(total=8, passed=6, failed=2).success_rate == 75
        assert TestRunSummary(total=0, passed=0, failed=0).success_rate == 0


class TestJiraClient:

    def test_url_gets_scheme(self):
        assert _client(JiraStub({})).url == "https://acme.atlassian.net"

    def test_create_bug_payload(self):
        stub = JiraStub({("POST", "/rest/api/2/issue"): httpx.Response(201, json={"key": "ALT-7"})})

        key = _client(stub).create_bug_from_test_failure(LOGIN_UI_FAILURE)

        assert key == "ALT-7"
        assert len(stub.requests) == 1
        request = stub.requests[0]
        assert request.headers["Authorization"].startswith("Basic ")
        fields = stub.body(0)["fields"]
        assert fields["project"] == {"key": "ALT"}
        assert fields["summary"] == "Test Failure: test_login_with_valid_credentials"
        assert fields["issuetype"] == {"name": "Bug"}
        assert fields["priority"] == {"name": "High"}
        assert "login" in fields["labels"]
        assert "## Stack Trace" in fields["description"]
        assert "**Duration:** 1234ms" in fields["description"]

    def test_screenshot_attached_after_bug(self, tmp_path):
        shot = tmp_path / "failure.png"
        shot.write_bytes(b"\x89PNG fake")
        stub = JiraStub({
            ("POST", "/rest/api/2/issue"): httpx.Response(201, json={"key": "ALT-8"}),
            ("POST", "/rest/api/2/issue/ALT-8/attachments"): httpx.Response(200, json=[{"id": "1"}]),
        })
        failure = TestFailure("test_logout", "testsuites/ui_testing/tests/test_dashboard.py", "e", screenshot=str(shot))

        _client(stub).create_bug_from_test_failure(failure)

        upload = stub.requests[1]
        assert upload.headers["X-Atlassian-Token"] == "no-check"
        assert upload.headers["Content-Type"].startswith("multipart/form-data")
        assert b"failure.png" in upload.content

    def test_screenshot_failure_is_logged_not_raised(self, tmp_path):
        stub = JiraStub({("POST", "/rest/api/2/issue"): httpx.Response(201, json={"key": "ALT-9"})})
        client = _client(stub)

        assert client.attach_screenshot("ALT-9", str(tmp_path / "missing.png")) is False

        shot = tmp_path / "shot.png"
        shot.write_bytes(b"png")
        assert client.attach_screenshot("ALT-9", str(shot)) is False

    def test_error_status_raises(self):
        stub = JiraStub({
            ("POST", "/rest/api/2/issue"): httpx.Response(400, json={"errors": {"priority": "invalid"}}),
        })
        with pytest.raises(JiraClientError, match="400"):
            _client(stub).create_bug_from_test_failure(LOGIN_UI_FAILURE)
        assert len(stub.requests) == 1

    def test_rate_limit_then_success(self):
        responses = iter([
            httpx.Response(429, headers={"Retry-After": "1"}),
            httpx.Response(201, json={"key": "ALT-10"}),
        ])
        calls = []

        def handler(request):
            calls.append(request)
            return next(responses)

        client = JiraClient("https://jira.test", "a@b.c", "t", transport=httpx.MockTransport(handler))
        assert client.create_test_execution_issue(TestRunSummary(10, 9, 1, 5000)) == "ALT-10"
        assert len(calls) == 2

    @pytest.mark.parametrize("retry_after", ["Wed, 21 Oct 2026 07:28:00 GMT", "1.5", "nan"])
    def test_rate_limit_with_unusual_retry_after(self, monkeypatch, retry_after):
        waits = []
        monkeypatch.setattr(jira_module.time, "sleep", waits.append)
        responses = iter([
            httpx.Response(429, headers={"Retry-After": retry_after}),
            httpx.Response(201, json={"key": "ALT-11"}),
        ])
        client = JiraClient("https://jira.test", "a@b.c", "t",
                            transport=httpx.MockTransport(lambda request: next(responses)))

        assert client.create_test_execution_issue(TestRunSummary(2, 1, 1, 100)) == "ALT-11"
        assert len(waits) == 1
        assert 0 < waits[0] <= jira_module.MAX_RETRY_AFTER

    def test_invalid_json_body_raises_client_error(self):
        stub = JiraStub({("POST", "/rest/api/2/issue"): httpx.Response(201, text="<html>")})

        with pytest.raises(JiraClientError, match="invalid JSON"):
            _client(stub).create_bug_from_test_failure(LOGIN_UI_FAILURE)

    def test_network_errors_exhaust_retries(self):
        stub = JiraStub({("POST", "/rest/api/2/issueLink"): httpx.ConnectError("refused")})

        with pytest.raises(JiraClientError, match="refused"):
            _client(stub, max_retries=2).link_issues("ALT-1", "ALT-2")
        assert len(stub.requests) == 2

    def test_execution_issue_payload(self):
        stub = JiraStub({("POST", "/rest/api/2/issue"): httpx.Response(201, json={"key": "ALT-11"})})

        _client(stub).create_test_execution_issue(TestRunSummary(total=4, passed=3, failed=1))

        fields = stub.body(0)["fields"]
        assert fields["issuetype"] == {"name": "Task"}
        assert fields["labels"] == ["test-execution", "automated"]
        assert "**Success Rate:** 75%" in fields["description"]

    def test_link_issues(self):
        stub = JiraStub({("POST", "/rest/api/2/issueLink"): httpx.Response(201)})

        _client(stub).link_issues("ALT-1", "ALT-2", link_type="Blocks")

        assert stub.body(0) == {
            "type": {"name": "Blocks"},
            "inwardIssue": {"key": "ALT-1"},
            "outwardIssue": {"key": "ALT-2"},
        }


class TestUpdateTestCase:

    TRANSITIONS = {"transitions": [{"id": "31", "name": "Passed"}, {"id": "41", "name": "Failed"}]}

    def test_transition_found_by_name(self):
        stub = JiraStub({
            ("GET", "/rest/api/2/issue/ALT-3/transitions"): httpx.Response(200, json=self.TRANSITIONS),
            ("POST", "/rest/api/2/issue/ALT-3/transitions"): httpx.Response(204),
        })

        assert _client(stub).update_test_case("ALT-3", "fail", details="broke on CI") is True

        body = stub.body(1)
        assert body["transition"] == {"id": "41"}
        assert body["update"]["comment"][0]["add"]["body"] == "broke on CI"

    def test_missing_transition_returns_false(self):
        stub = JiraStub({
            ("GET", "/rest/api/2/issue/ALT-3/transitions"): httpx.Response(200, json={"transitions": []}),
        })
        assert _client(stub).update_test_case("ALT-3", "PASS") is False
        assert len(stub.requests) == 1

    def test_api_error_returns_false(self):
        assert _client(JiraStub({})).update_test_case("ALT-404", "PASS") is False

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            _client(JiraStub({})).update_test_case("ALT-3", "SKIPPED")
