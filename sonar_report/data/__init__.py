"""
Task report I/O, schema enforcement, and report location.

Handles reading report-task.txt into a validated RunSettings record and
resolving where scanners write that file.
"""
