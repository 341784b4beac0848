"""
Task report contract: required keys, the RunSettings record, and its errors.

**Conceptual**: A SonarQube scanner writes `report-task.txt` when an analysis
is submitted. Downstream steps (status polling, dashboard links) need five of
its values and cannot do anything useful without all of them. This module
defines that contract once, so every consumer can trust a RunSettings object
without re-checking its fields.

**Contract**:
  - Five required report keys, checked in a fixed order: projectKey,
    serverUrl, dashboardUrl, ceTaskId, ceTaskUrl.
  - A RunSettings instance only exists if all five are non-empty strings.
    Construction either fully succeeds or raises; there is no half-built record.
  - RunSettings is frozen. It is built once per workflow step and never mutated.

**Errors**:
  - MissingFieldError: direct construction with an empty or absent field.
    Names the report key that failed.
  - ReportInvalidError: anything wrong with a report file (absent, unreadable,
    empty, or missing a key). Deliberately carries no detail; see io.py.
"""

from dataclasses import dataclass, fields
from typing import Dict, Mapping, Optional

from sonar_report.utils.messages import get_message, MISSING_FIELD, TASK_REPORT_INVALID


class TaskReportError(Exception):
    """
    Base exception for task report problems.

    Catch this to handle both error kinds at once; catch the subclasses when
    the distinction matters.
    """
    pass


class MissingFieldError(TaskReportError):
    """
    Raised when RunSettings is constructed with an empty or absent field.

    Attributes:
        field_name: Report key of the first empty field (e.g. "ceTaskId").
    """

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(get_message(MISSING_FIELD, field_name))


class ReportInvalidError(TaskReportError):
    """
    Raised when a task report file cannot be turned into RunSettings.

    **Conceptual**: From the caller's point of view, a report that is missing,
    unreadable, empty, or incomplete is the same thing: the scanner did not
    produce something this step can trust. The root cause is written to the
    debug log, not attached to the exception.
    """

    def __init__(self):
        super().__init__(get_message(TASK_REPORT_INVALID))


# Report key for each RunSettings attribute, in validation order
REPORT_KEYS: Dict[str, str] = {
    "project_key": "projectKey",
    "server_url": "serverUrl",
    "dashboard_url": "dashboardUrl",
    "ce_task_id": "ceTaskId",
    "ce_task_url": "ceTaskUrl",
}

REQUIRED_REPORT_KEYS = list(REPORT_KEYS.values())


@dataclass(frozen=True)
class RunSettings:
    """
    Read-only view of a SonarQube task report.

    Attributes:
        project_key: Key uniquely identifying the project on the server.
        server_url: Base URL of the SonarQube server.
        dashboard_url: URL of the project dashboard showing this analysis.
        ce_task_id: Identifier of the compute-engine task for this analysis.
        ce_task_url: Web API URL returning the status of that task.

    Raises:
        MissingFieldError: If any field is empty or None. Fields are checked
            in declaration order and the first failure wins.

    Example:
        >>> settings = RunSettings(
        ...     project_key="abc",
        ...     server_url="http://sq",
        ...     dashboard_url="http://sq/dashboard/abc",
        ...     ce_task_id="task123",
        ...     ce_task_url="http://sq/api/ce/task?id=task123",
        ... )
        >>> settings.ce_task_id
        'task123'
    """
    project_key: str
    server_url: str
    dashboard_url: str
    ce_task_id: str
    ce_task_url: str

    def __post_init__(self):
        """Validate that every field is a non-empty value."""
        for field in fields(self):
            if not getattr(self, field.name):
                raise MissingFieldError(REPORT_KEYS[field.name])

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Optional[str]]) -> "RunSettings":
        """
        Build RunSettings from a parsed report mapping keyed by report key.

        Keys other than the five required ones are ignored. Absent keys are
        passed through as None so validation reports them.

        Raises:
            MissingFieldError: If a required key is absent or empty.
        """
        return cls(**{
            attribute: mapping.get(report_key)
            for attribute, report_key in REPORT_KEYS.items()
        })

    def to_dict(self) -> Dict[str, str]:
        """Return the five values keyed by report key, in required-key order."""
        return {
            report_key: getattr(self, attribute)
            for attribute, report_key in REPORT_KEYS.items()
        }
