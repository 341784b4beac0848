"""
Convenience loaders that resolve where report-task.txt lives.

**Conceptual**: Each scanner writes its task report to its own build output
directory. Pipeline steps should not hardcode those paths; they call
load_configured_run_settings() and let configuration (or the standard
locations below) decide.

**Standard locations** (relative to the project root, searched in order):
  - build/sonar/report-task.txt   (Gradle plugin)
  - target/sonar/report-task.txt  (Maven plugin)
  - .scannerwork/report-task.txt  (SonarScanner CLI)
"""

import logging
from pathlib import Path
from typing import Optional

from sonar_report.config.settings import Settings, get_settings
from sonar_report.data.io import load_run_settings
from sonar_report.data.schemas import RunSettings

logger = logging.getLogger(__name__)

REPORT_TASK_FILENAME = "report-task.txt"

STANDARD_REPORT_LOCATIONS = [
    Path("build") / "sonar" / REPORT_TASK_FILENAME,
    Path("target") / "sonar" / REPORT_TASK_FILENAME,
    Path(".scannerwork") / REPORT_TASK_FILENAME,
]


def find_report_task(root: Path | str) -> Optional[Path]:
    """
    Return the first standard report location that exists under root.

    Args:
        root: Project root directory.

    Returns:
        Path to the report, or None if no standard location exists.
    """
    root = Path(root)
    for location in STANDARD_REPORT_LOCATIONS:
        candidate = root / location
        if candidate.is_file():
            logger.debug(f"Found task report at {candidate}")
            return candidate
    return None


def resolve_report_path(settings: Optional[Settings] = None) -> Path:
    """
    Decide which report file to load.

    An explicitly configured report_path always wins. Otherwise the first
    existing standard location under project_root is used, and if there is
    none, the first standard location is returned anyway so that loading it
    fails the same way as any other missing report.
    """
    settings = settings or get_settings()

    if settings.report.report_path is not None:
        return settings.report.report_path

    found = find_report_task(settings.report.project_root)
    if found is None:
        fallback = settings.report.project_root / STANDARD_REPORT_LOCATIONS[0]
        logger.debug(
            f"No task report in standard locations under {settings.report.project_root}; "
            f"falling back to {fallback}"
        )
        return fallback
    return found


def load_configured_run_settings(settings: Optional[Settings] = None) -> RunSettings:
    """
    Load RunSettings from the configured or discovered report location.

    Args:
        settings: Settings to use. Defaults to get_settings().

    Returns:
        Validated RunSettings.

    Raises:
        ReportInvalidError: If the resolved report is absent or invalid.
    """
    return load_run_settings(resolve_report_path(settings))
