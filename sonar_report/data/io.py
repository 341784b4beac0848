"""
Task report readers and writers.

**Conceptual**: This module is the only I/O boundary for `report-task.txt`.
Downstream code never opens the report itself; it calls load_run_settings()
and gets back either a validated RunSettings or a ReportInvalidError.

**File format**: One `key=value` assignment per line, LF or CRLF line endings,
no comments, sections or escaping. Example:

    projectKey=abc
    serverUrl=http://sq
    dashboardUrl=http://sq/dashboard/abc
    ceTaskId=task123
    ceTaskUrl=http://sq/api/ce/task?id=task123

**Error policy**: Every failure on the loading path (file absent, unreadable,
empty, or missing a required key) is raised as the same ReportInvalidError,
with no chained cause. The specific reason is logged at DEBUG level on this
module's logger so it can still be diagnosed from pipeline logs.
"""

import logging
from pathlib import Path
from typing import Dict

from sonar_report.data.schemas import (
    RunSettings,
    MissingFieldError,
    ReportInvalidError,
)

logger = logging.getLogger(__name__)

KEY_VALUE_DELIMITER = "="


def parse_report_lines(text: str) -> Dict[str, str]:
    """
    Parse report text into a flat key -> value mapping.

    **Functionally**:
      - CRLF is normalized to LF, then the text is split on LF.
      - Each line is split on every "=". A line with at least one "=" yields
        key = first segment, value = remaining segments rejoined with "=".
        So `ceTaskUrl=http://sq/api/ce/task?id=task123` keeps its query string.
      - Lines without "=" are skipped.
      - A later line overwrites an earlier one with the same key.
      - Whitespace is not trimmed; it is part of the key or value.

    Never raises: malformed lines are dropped, and the caller decides whether
    the resulting mapping is complete.

    Args:
        text: Full report content.

    Returns:
        Dict of every key found, including keys RunSettings does not use.

    Example:
        >>> parse_report_lines("a=1\\r\\nb=x=y\\nnoise\\na=2")
        {'a': '2', 'b': 'x=y'}
    """
    lines = text.replace("\r\n", "\n").split("\n")

    report: Dict[str, str] = {}
    for line in lines:
        segments = line.split(KEY_VALUE_DELIMITER)
        if len(segments) > 1:
            report[segments[0]] = KEY_VALUE_DELIMITER.join(segments[1:])

    return report


def read_report_task_text(path: Path | str) -> str:
    """
    Read the full text of a report file.

    The file is decoded as UTF-8; a leading byte-order mark is dropped so it
    does not become part of the first key. Line endings are returned as
    stored; only parse_report_lines() normalizes CRLF.

    Args:
        path: Location of report-task.txt. Existence is not assumed.

    Returns:
        Non-empty file content.

    Raises:
        ReportInvalidError: If the file is absent, unreadable, or empty.
    """
    path = Path(path)

    # Path.exists() lets some errors through (e.g. ENAMETOOLONG, EACCES)
    try:
        exists = path.exists()
    except OSError as e:
        logger.debug(f"Cannot check task report at {path}: {e}")
        raise ReportInvalidError() from None

    if not exists:
        logger.debug(f"Task report not found at: {path}")
        raise ReportInvalidError()

    try:
        text = path.read_bytes().decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Error reading task report {path}: {e}")
        raise ReportInvalidError() from None

    if not text:
        logger.debug(f"Task report is empty: {path}")
        raise ReportInvalidError()

    return text


def load_run_settings(path: Path | str) -> RunSettings:
    """
    Load and validate RunSettings from a report file on disk.

    **Functionally**:
      1. Read the file (read_report_task_text).
      2. Parse it (parse_report_lines).
      3. Project the five required keys into RunSettings.

    Any MissingFieldError from step 3 is logged and re-raised as
    ReportInvalidError, so callers see one error kind for every bad report.

    Args:
        path: Path to a report-task.txt written by a SonarQube scanner.

    Returns:
        RunSettings with all five fields populated.

    Raises:
        ReportInvalidError: If the report is absent, unreadable, empty, or
            missing a required key.

    Example:
        >>> settings = load_run_settings("build/sonar/report-task.txt")
        >>> settings.dashboard_url
        'http://sq/dashboard/abc'
    """
    report = parse_report_lines(read_report_task_text(path))

    try:
        return RunSettings.from_mapping(report)
    except MissingFieldError as e:
        logger.debug(f"{e} (report: {path})")
        raise ReportInvalidError() from None


def write_report_task_file(settings: RunSettings, path: Path | str) -> None:
    """
    Write RunSettings as a task report that load_run_settings() reads back.

    Lines are LF-terminated and written in required-key order. The parent
    directory is created if necessary.

    Args:
        settings: Validated run settings.
        path: Destination file.

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = "".join(
        f"{key}{KEY_VALUE_DELIMITER}{value}\n"
        for key, value in settings.to_dict().items()
    )

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OSError(
            f"Failed to write task report to {path}. Error: {e}"
        ) from e
