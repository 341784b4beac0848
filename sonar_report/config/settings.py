"""
Configuration settings for task report loading and analysis status polling.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
when they are built, so a bad value fails at startup rather than halfway
through a pipeline step.

**What is configurable**:
  - Where the task report lives (explicit path, or a project root to search).
  - How to reach the SonarQube web API (token, timeout, polling cadence).

Values in a CI environment usually come from pipeline variables; a local .env
file at the project root is loaded for development.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root (no-op if the file does not exist)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True)
class ReportSettings:
    """
    Where to find report-task.txt.

    Attributes:
        report_path: Explicit path to the report. When None, the standard
                     scanner output locations under project_root are searched
                     (see sonar_report.data.loaders).
        project_root: Directory the standard locations are relative to.
    """
    report_path: Optional[Path] = None
    project_root: Path = Path(".")

    @classmethod
    def from_env(cls) -> "ReportSettings":
        """
        Load report location settings from environment variables.

        **Environment variables**:
          - SONAR_REPORT_TASK_PATH (optional): Explicit report path.
          - SONAR_PROJECT_ROOT (optional): Search root. Defaults to ".".

        Returns:
            ReportSettings with values loaded from environment.
        """
        report_path_str = os.getenv("SONAR_REPORT_TASK_PATH", "")
        project_root_str = os.getenv("SONAR_PROJECT_ROOT", ".")

        return cls(
            report_path=Path(report_path_str) if report_path_str else None,
            project_root=Path(project_root_str or "."),
        )


@dataclass(frozen=True)
class SonarSettings:
    """
    Configuration for talking to the SonarQube web API.

    **Conceptual**: After a scanner submits an analysis, the server processes it
    asynchronously as a compute-engine (CE) task. The report's ceTaskUrl points
    at that task's status endpoint; these settings control how it is polled.

    **Security note**: SONAR_TOKEN is a secret. Keep it in pipeline secret
    variables or a git-ignored .env file.

    Attributes:
        token: User token for authentication. Empty means anonymous access.
        timeout_seconds: HTTP request timeout in seconds (default 30).
        poll_interval_seconds: Delay between status checks (default 2.0).
        max_poll_attempts: Status checks before giving up (default 60).
    """
    token: str = ""
    timeout_seconds: int = 30
    poll_interval_seconds: float = 2.0
    max_poll_attempts: int = 60

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got: {self.timeout_seconds}"
            )
        if self.poll_interval_seconds < 0:
            raise ValueError(
                f"poll_interval_seconds must be non-negative, got: {self.poll_interval_seconds}"
            )
        if self.max_poll_attempts < 1:
            raise ValueError(
                f"max_poll_attempts must be at least 1, got: {self.max_poll_attempts}"
            )

    @classmethod
    def from_env(cls) -> "SonarSettings":
        """
        Load SonarQube API settings from environment variables.

        **Environment variables**:
          - SONAR_TOKEN (optional): User token. Defaults to anonymous.
          - SONAR_TIMEOUT_SECONDS (optional): HTTP timeout. Defaults to 30.
          - SONAR_POLL_INTERVAL_SECONDS (optional): Defaults to 2.0.
          - SONAR_MAX_POLL_ATTEMPTS (optional): Defaults to 60.

        Returns:
            SonarSettings object with values loaded from environment.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range.

        Usage example:
            >>> # In .env file:
            >>> # SONAR_TOKEN=squ_0123456789
            >>> # SONAR_POLL_INTERVAL_SECONDS=5
            >>>
            >>> settings = SonarSettings.from_env()
            >>> print(settings.poll_interval_seconds)  # 5.0
        """
        token = os.getenv("SONAR_TOKEN", "")
        timeout_str = os.getenv("SONAR_TIMEOUT_SECONDS", "30")
        poll_interval_str = os.getenv("SONAR_POLL_INTERVAL_SECONDS", "2.0")
        max_attempts_str = os.getenv("SONAR_MAX_POLL_ATTEMPTS", "60")

        try:
            timeout_seconds = int(timeout_str)
        except ValueError:
            raise ValueError(
                f"SONAR_TIMEOUT_SECONDS must be an integer, got: {timeout_str}"
            )

        try:
            poll_interval_seconds = float(poll_interval_str)
        except ValueError:
            raise ValueError(
                f"SONAR_POLL_INTERVAL_SECONDS must be a number, got: {poll_interval_str}"
            )

        try:
            max_poll_attempts = int(max_attempts_str)
        except ValueError:
            raise ValueError(
                f"SONAR_MAX_POLL_ATTEMPTS must be an integer, got: {max_attempts_str}"
            )

        return cls(
            token=token,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
            max_poll_attempts=max_poll_attempts,
        )


@dataclass(frozen=True)
class Settings:
    """
    Top-level settings aggregating report location and API configuration.

    **Usage pattern**:
      ```python
      from sonar_report.config.settings import get_settings

      settings = get_settings()
      report_path = settings.report.report_path
      ```

    Attributes:
        report: Report location settings.
        sonar: SonarQube web API settings.
    """
    report: ReportSettings = field(default_factory=ReportSettings)
    sonar: SonarSettings = field(default_factory=SonarSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load all settings from environment variables.

        Raises:
            ValueError: If any subsystem setting is invalid.
        """
        return cls(
            report=ReportSettings.from_env(),
            sonar=SonarSettings.from_env(),
        )


# Cached settings; tests construct Settings directly or call reset_settings()
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment on first call, then cached.

    Returns:
        Global Settings singleton.

    Raises:
        ValueError: If the environment holds an invalid value.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          reset_settings()
          monkeypatch.setenv("SONAR_TOKEN", "test_token")
          assert get_settings().sonar.token == "test_token"
      ```
    """
    global _default_settings
    _default_settings = None
