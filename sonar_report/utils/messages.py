"""
Human-readable message catalogue for user-facing error text.

**Conceptual**: Error messages shown to a pipeline user are looked up by a
stable identifier plus substitution arguments, instead of being written inline
at every raise site. Callers that need to react to an error programmatically
should match on the exception type, never on this text.

**Functionally**:
  - MESSAGES maps a message identifier to a format string.
  - Positional placeholders ({0}, {1}, ...) are filled from the arguments
    passed to get_message().
  - Unknown identifiers raise KeyError so a typo surfaces in tests instead of
    leaking a raw identifier to users.
"""

# Message identifiers used across the package
MISSING_FIELD = "create_task_report_missing_field"
TASK_REPORT_INVALID = "task_report_invalid"
TASK_NOT_FINISHED = "task_not_finished"

MESSAGES = {
    MISSING_FIELD: "Failed to create TaskReport object. Missing field: {0}",
    TASK_REPORT_INVALID: (
        "Invalid or missing task report. Check SonarQube finished successfully."
    ),
    TASK_NOT_FINISHED: (
        "Analysis task {0} did not finish after {1} status checks. Last status: {2}"
    ),
}


def get_message(message_id: str, *args: object) -> str:
    """
    Look up a message by identifier and substitute its arguments.

    Args:
        message_id: Key into MESSAGES (use the module-level constants).
        *args: Positional values for the {0}, {1}, ... placeholders.

    Returns:
        The formatted message.

    Raises:
        KeyError: If message_id is not in the catalogue.

    Example:
        >>> get_message(MISSING_FIELD, "projectKey")
        'Failed to create TaskReport object. Missing field: projectKey'
    """
    try:
        template = MESSAGES[message_id]
    except KeyError:
        raise KeyError(
            f"Unknown message id '{message_id}'. "
            f"Known ids: {sorted(MESSAGES)}."
        ) from None

    return template.format(*args)
