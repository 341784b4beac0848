"""
Tests for SonarClient (sonar_report/venues/sonar_client.py).

**Testing philosophy**: Use mocked HTTP responses (no real server).
  - Fast and deterministic
  - No token required
  - Error conditions (auth failures, server errors, stuck tasks) are easy to simulate
"""

import pytest
import requests
from unittest.mock import Mock, patch

from sonar_report.config.settings import SonarSettings
from sonar_report.data.schemas import RunSettings
from sonar_report.venues.sonar_client import (
    CeTask,
    SonarClient,
    SonarClientError,
    SonarAuthenticationError,
    SonarTaskNotFoundError,
    SonarServerError,
    SonarTaskTimeoutError,
)


CE_TASK_URL = "http://sq/api/ce/task?id=task123"


@pytest.fixture
def sonar_settings():
    """SonarSettings with a fake token and a short polling budget."""
    return SonarSettings(
        token="squ_test_token",
        timeout_seconds=15,
        poll_interval_seconds=0.5,
        max_poll_attempts=3,
    )


@pytest.fixture
def run_settings():
    return RunSettings(
        project_key="abc",
        server_url="http://sq",
        dashboard_url="http://sq/dashboard/abc",
        ce_task_id="task123",
        ce_task_url=CE_TASK_URL,
    )


def make_response(status_code=200, body=None, text=""):
    """Build a mock response with the given status and JSON body."""
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = body
    return response


def task_body(status, **extra):
    return {"task": dict({"id": "task123", "status": status}, **extra)}


def test_client_initialization_with_token(sonar_settings):
    """Test that the token is sent as basic auth username with empty password."""
    client = SonarClient(sonar_settings)

    assert client.session.auth == ("squ_test_token", "")
    assert client.session.headers["Accept"] == "application/json"


def test_client_initialization_anonymous():
    """Test that no auth is configured without a token."""
    client = SonarClient(SonarSettings())
    assert client.session.auth is None


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_success(mock_get, sonar_settings):
    """Test the happy path: GET the ceTaskUrl and parse the task."""
    mock_get.return_value = make_response(
        body=task_body("SUCCESS", analysisId="AXa1", type="REPORT")
    )

    task = SonarClient(sonar_settings).get_task(CE_TASK_URL)

    mock_get.assert_called_once()
    assert mock_get.call_args.args[0] == CE_TASK_URL
    assert mock_get.call_args.kwargs["timeout"] == 15
    assert task == CeTask(task_id="task123", status="SUCCESS", analysis_id="AXa1")
    assert task.is_finished


@pytest.mark.parametrize("status_code, error", [
    (401, SonarAuthenticationError),
    (403, SonarAuthenticationError),
    (404, SonarTaskNotFoundError),
    (500, SonarServerError),
    (503, SonarServerError),
    (400, SonarClientError),
])
@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_http_errors(mock_get, status_code, error, sonar_settings):
    """Test that HTTP error statuses map to the matching exception."""
    mock_get.return_value = make_response(status_code=status_code, text="nope")

    with pytest.raises(error):
        SonarClient(sonar_settings).get_task(CE_TASK_URL)


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_invalid_json(mock_get, sonar_settings):
    """Test that an unparseable body raises SonarClientError."""
    response = make_response()
    response.json.side_effect = ValueError("Expecting value")
    mock_get.return_value = response

    with pytest.raises(SonarClientError, match="Failed to parse JSON"):
        SonarClient(sonar_settings).get_task(CE_TASK_URL)


@pytest.mark.parametrize("body, message", [
    ({"errors": []}, "missing 'task' object"),
    ({"task": {"id": "task123"}}, "Missing required fields"),
    ([], "Expected a JSON object"),
])
@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_unexpected_body(mock_get, body, message, sonar_settings):
    """Test that a body without a usable task raises SonarClientError."""
    mock_get.return_value = make_response(body=body)

    with pytest.raises(SonarClientError, match=message):
        SonarClient(sonar_settings).get_task(CE_TASK_URL)


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_timeout(mock_get, sonar_settings):
    """Test that timeouts are re-raised as requests.Timeout with context."""
    mock_get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(requests.Timeout, match="timed out after 15s"):
        SonarClient(sonar_settings).get_task(CE_TASK_URL)


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_get_task_connection_error(mock_get, sonar_settings):
    """Test that connection failures raise SonarClientError."""
    mock_get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(SonarClientError, match="Failed to connect"):
        SonarClient(sonar_settings).get_task(CE_TASK_URL)


def test_get_task_empty_url(sonar_settings):
    with pytest.raises(ValueError):
        SonarClient(sonar_settings).get_task("")


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_wait_for_task_polls_until_finished(mock_get, sonar_settings, run_settings):
    """Test that polling sleeps between checks and stops on a terminal status."""
    mock_get.side_effect = [
        make_response(body=task_body("PENDING")),
        make_response(body=task_body("IN_PROGRESS")),
        make_response(body=task_body("FAILED", errorMessage="Out of memory")),
    ]
    sleep = Mock()

    task = SonarClient(sonar_settings).wait_for_task(run_settings, sleep=sleep)

    assert task.status == "FAILED"
    assert task.error_message == "Out of memory"
    assert mock_get.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(0.5)


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_wait_for_task_immediate_success(mock_get, sonar_settings, run_settings):
    """Test that a finished task returns without sleeping."""
    mock_get.return_value = make_response(body=task_body("SUCCESS"))
    sleep = Mock()

    task = SonarClient(sonar_settings).wait_for_task(run_settings, sleep=sleep)

    assert task.status == "SUCCESS"
    sleep.assert_not_called()


@patch("sonar_report.venues.sonar_client.requests.Session.get")
def test_wait_for_task_gives_up(mock_get, sonar_settings, run_settings):
    """Test that a task still running after max_poll_attempts raises."""
    mock_get.return_value = make_response(body=task_body("IN_PROGRESS"))
    sleep = Mock()

    with pytest.raises(SonarTaskTimeoutError, match="did not finish after 3 status checks"):
        SonarClient(sonar_settings).wait_for_task(run_settings, sleep=sleep)

    assert mock_get.call_count == 3
    assert sleep.call_count == 2


def test_context_manager_closes_session(sonar_settings):
    """Test that leaving the with block closes the session."""
    with patch("sonar_report.venues.sonar_client.requests.Session.close") as mock_close:
        with SonarClient(sonar_settings):
            pass

    mock_close.assert_called_once()
