#!/usr/bin/env python3
"""
Load a SonarQube task report and print its run settings.

**Purpose**: Pipeline steps that follow a SonarQube analysis (status checks,
dashboard links) need the values the scanner wrote to report-task.txt. This
script loads and validates that report, prints the values, and can optionally
wait for the server to finish processing the analysis.

**Usage**:
    # Load from SONAR_REPORT_TASK_PATH or the standard build locations
    python actions/show_report_task.py

    # Load a specific report and print JSON
    python actions/show_report_task.py build/sonar/report-task.txt --json

    # Also wait for the compute-engine task to finish
    python actions/show_report_task.py --wait

**Exit codes**:
  - 0: Success (and, with --wait, the analysis task succeeded)
  - 1: Invalid or missing report, or invalid configuration
  - 2: SonarQube API error, unsuccessful analysis, or other fatal error
  - 130: Interrupted
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from sonar_report.config.settings import get_settings
from sonar_report.data.io import load_run_settings
from sonar_report.data.loaders import load_configured_run_settings
from sonar_report.data.schemas import ReportInvalidError
from sonar_report.venues.sonar_client import SonarClient, SonarClientError


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        Namespace with attributes: report (str or None), json (bool),
        wait (bool), debug (bool).
    """
    parser = argparse.ArgumentParser(
        description="Load and validate a SonarQube task report (report-task.txt)",
        epilog="""
Examples:
  # Use SONAR_REPORT_TASK_PATH or search build/, target/, .scannerwork/
  python actions/show_report_task.py

  # Explicit report, JSON output
  python actions/show_report_task.py target/sonar/report-task.txt --json

  # Wait for the analysis to be processed, with diagnostics
  python actions/show_report_task.py --wait --debug
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "report",
        nargs="?",
        default=None,
        help="Path to report-task.txt (default: from configuration)",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run settings as a JSON object keyed by report key",
    )

    parser.add_argument(
        "--wait",
        action="store_true",
        help="Poll the compute-engine task until the analysis finishes",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log diagnostic detail (including why a report was rejected)",
    )

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for the script.

    Steps:
      1. Load run settings from the given or configured report.
      2. Print them (plain or JSON).
      3. With --wait, poll the analysis task and report its final status.
    """
    try:
        args = parse_args(argv)

        logging.basicConfig(
            level=logging.DEBUG if args.debug else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        try:
            if args.report:
                run_settings = load_run_settings(args.report)
            else:
                run_settings = load_configured_run_settings()
        except ReportInvalidError as e:
            print(f"Error: {e}", file=sys.stderr)
            print("Re-run with --debug for details.", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            sys.exit(1)

        if args.json:
            print(json.dumps(run_settings.to_dict(), indent=2))
        else:
            for key, value in run_settings.to_dict().items():
                print(f"{key}: {value}")

        if not args.wait:
            sys.exit(0)

        try:
            sonar_settings = get_settings().sonar
        except ValueError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            sys.exit(1)

        try:
            with SonarClient(sonar_settings) as client:
                task = client.wait_for_task(run_settings)
        except SonarClientError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)

        print(f"Analysis task {task.task_id} finished with status {task.status}")
        if task.error_message:
            print(f"  {task.error_message}")

        sys.exit(0 if task.status == "SUCCESS" else 2)

    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting...")
        sys.exit(130)

    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
