"""
HTTP client for the SonarQube compute-engine task endpoint.

**Conceptual**: When a scanner submits an analysis, the server queues it as a
compute-engine (CE) task and the scanner writes that task's status URL into
report-task.txt as ceTaskUrl. Steps such as quality-gate checks must wait for
the task to finish before the analysis results exist. This module fetches and
polls that status URL.

**Design pattern**: A thin client, the same shape as the other venue clients:
it handles authentication, request construction, status-code mapping and JSON
parsing. Deciding what to do with a FAILED analysis is the caller's job.

**Task statuses** (as returned by the server):
  - PENDING, IN_PROGRESS: still running.
  - SUCCESS, FAILED, CANCELED: finished.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from sonar_report.config.settings import SonarSettings
from sonar_report.data.schemas import RunSettings
from sonar_report.utils.messages import get_message, TASK_NOT_FINISHED

logger = logging.getLogger(__name__)

RUNNING_STATUSES = ("PENDING", "IN_PROGRESS")


class SonarClientError(Exception):
    """
    Base exception for SonarQube API client errors.

    Catch this to handle every client failure; catch the subclasses for
    fine-grained handling.
    """
    pass


class SonarAuthenticationError(SonarClientError):
    """
    Raised on 401 Unauthorized or 403 Forbidden.

    **Recovery**: Check SONAR_TOKEN and that its user can browse the project.
    """
    pass


class SonarTaskNotFoundError(SonarClientError):
    """Raised when the server has no task at the given ceTaskUrl (404)."""
    pass


class SonarServerError(SonarClientError):
    """
    Raised when the server returns a 5xx status.

    **Recovery**: Usually transient; re-run the step.
    """
    pass


class SonarTaskTimeoutError(SonarClientError):
    """Raised when a task is still running after max_poll_attempts checks."""
    pass


@dataclass(frozen=True)
class CeTask:
    """
    Status of one compute-engine task.

    Attributes:
        task_id: Task identifier (matches the report's ceTaskId).
        status: One of PENDING, IN_PROGRESS, SUCCESS, FAILED, CANCELED.
        analysis_id: Analysis identifier, present once the task succeeded.
        error_message: Server-side failure reason, present for FAILED tasks.
    """
    task_id: str
    status: str
    analysis_id: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        """True once the task has left the queue, whatever the outcome."""
        return self.status not in RUNNING_STATUSES

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "CeTask":
        """
        Build a CeTask from the JSON body of /api/ce/task.

        Raises:
            SonarClientError: If the body has no usable 'task' object.
        """
        task = data.get("task")
        if not isinstance(task, dict):
            raise SonarClientError(
                f"Response missing 'task' object. Keys: {list(data.keys())}"
            )

        missing = [key for key in ("id", "status") if not task.get(key)]
        if missing:
            raise SonarClientError(
                f"Missing required fields in task: {missing}. "
                f"Available: {list(task.keys())}"
            )

        return cls(
            task_id=task["id"],
            status=task["status"],
            analysis_id=task.get("analysisId"),
            error_message=task.get("errorMessage"),
        )


class SonarClient:
    """
    Thin HTTP client for SonarQube CE task status.

    **Responsibilities**:
      - Authenticate with the user token (HTTP basic, token as username)
      - GET the task status URL with a timeout
      - Map HTTP errors (401/403, 404, 5xx, timeout) to exceptions
      - Parse the JSON body into a CeTask
      - Poll until the task finishes

    **Example usage**:
        >>> from sonar_report.config.settings import get_settings
        >>> from sonar_report.data.loaders import load_configured_run_settings
        >>>
        >>> run_settings = load_configured_run_settings()
        >>> with SonarClient(get_settings().sonar) as client:
        ...     task = client.wait_for_task(run_settings)
        >>> print(task.status)  # "SUCCESS"
    """

    def __init__(self, settings: SonarSettings):
        """
        Initialize the client with API settings.

        Args:
            settings: Token, timeout and polling configuration.
        """
        self.settings = settings
        self.session = requests.Session()

        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "sonar_report/1.0",
        })
        if self.settings.token:
            self.session.auth = (self.settings.token, "")

    def get_task(self, ce_task_url: str) -> CeTask:
        """
        Fetch the current status of a CE task.

        Args:
            ce_task_url: Status URL from the task report
                         (e.g. "http://sq/api/ce/task?id=task123").

        Returns:
            CeTask parsed from the response.

        Raises:
            SonarAuthenticationError: On 401/403.
            SonarTaskNotFoundError: On 404.
            SonarServerError: On 5xx.
            requests.Timeout: If the request exceeds the timeout.
            SonarClientError: For other errors (bad status, bad JSON, network).
            ValueError: If ce_task_url is empty.
        """
        if not ce_task_url:
            raise ValueError("ce_task_url cannot be empty")

        try:
            response = self.session.get(
                ce_task_url,
                timeout=self.settings.timeout_seconds,
            )

            if response.status_code == 401 or response.status_code == 403:
                raise SonarAuthenticationError(
                    f"Authentication failed (status {response.status_code}). "
                    f"Check your SONAR_TOKEN. Response: {response.text}"
                )

            if response.status_code == 404:
                raise SonarTaskNotFoundError(
                    f"Task not found at {ce_task_url}. Response: {response.text}"
                )

            if response.status_code >= 500:
                raise SonarServerError(
                    f"SonarQube server error (status {response.status_code}). "
                    f"Response: {response.text}"
                )

            if 400 <= response.status_code < 500:
                raise SonarClientError(
                    f"Client error (status {response.status_code}). "
                    f"Response: {response.text}"
                )

            response.raise_for_status()

            try:
                data = response.json()
            except ValueError as e:
                raise SonarClientError(
                    f"Failed to parse JSON response: {e}. Response: {response.text}"
                )

            if not isinstance(data, dict):
                raise SonarClientError(
                    f"Expected a JSON object, got {type(data).__name__}"
                )

            return CeTask.from_response(data)

        except requests.Timeout as e:
            raise requests.Timeout(
                f"Request to {ce_task_url} timed out after {self.settings.timeout_seconds}s. "
                f"Check network connection or increase SONAR_TIMEOUT_SECONDS."
            ) from e

        except requests.ConnectionError as e:
            raise SonarClientError(
                f"Failed to connect to {ce_task_url}. "
                f"Check network connection and the report's serverUrl."
            ) from e

        except requests.RequestException as e:
            raise SonarClientError(
                f"HTTP request failed: {e}"
            ) from e

    def wait_for_task(
        self,
        run_settings: RunSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CeTask:
        """
        Poll the report's CE task until it finishes.

        Checks at most max_poll_attempts times, sleeping poll_interval_seconds
        between checks (not after the last one).

        Args:
            run_settings: Loaded task report.
            sleep: Sleep function; tests pass a fake to avoid real delays.

        Returns:
            The finished CeTask. Its status may be FAILED or CANCELED;
            interpreting that is up to the caller.

        Raises:
            SonarTaskTimeoutError: If the task is still running after the
                last attempt.
            SonarClientError: Any error from get_task().
        """
        attempts = self.settings.max_poll_attempts
        task = None

        for attempt in range(1, attempts + 1):
            task = self.get_task(run_settings.ce_task_url)
            logger.debug(
                f"Task {task.task_id} status {task.status} "
                f"(check {attempt}/{attempts})"
            )
            if task.is_finished:
                return task
            if attempt < attempts:
                sleep(self.settings.poll_interval_seconds)

        raise SonarTaskTimeoutError(
            get_message(TASK_NOT_FINISHED, run_settings.ce_task_id, attempts, task.status)
        )

    def close(self):
        """Close the HTTP session and release its connection pool."""
        self.session.close()

    def __enter__(self):
        """Enable context manager support (with statement)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up session when exiting context manager."""
        self.close()
        return False
