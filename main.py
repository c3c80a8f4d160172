"""
Main module for the import tracker command line.

This module wires the tracker to the terminal:
1. Loads configuration and sets up logging
2. Submits source files as one import job
3. Polls the job until it completes, fails or is interrupted
4. Prints progress bars and alerts
"""

import argparse
import asyncio
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

from tabulate import tabulate

from alert_sink import AlertLevel
from api_client import ImportApiClient
from config_manager import get_import_settings, load_config
from exceptions import ApiError, ConfigError, EvaluationFault, FinanceAppError, SubmissionError
from import_tracker import ImportTracker
from progress_model import ImportJob, TRACKED_RESOURCE_TYPES, progress_entries
from progress_poller import PollState
from utils import load_source_files, resolve_log_path
from viz_components import ConsoleProgressVisualizer

# Configure module-level logger
logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: dict) -> None:
    """
    Configure logging based on config settings.

    Invalid levels fall back to INFO, and a format without a timestamp gets
    one prepended.

    Args:
        config: Configuration dictionary with logging settings
    """
    log_config = config.get("logging") or {}
    level_name = str(log_config.get("level") or "INFO").upper()
    log_level = getattr(logging, level_name, None)
    if not isinstance(log_level, int):
        logger.warning(f"Invalid log level '{level_name}', defaulting to INFO")
        log_level = logging.INFO

    log_format = log_config.get("format") or DEFAULT_LOG_FORMAT
    if "%(asctime)s" not in log_format:
        log_format = f"%(asctime)s - {log_format}"

    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = log_config.get("file")
    if log_file:
        try:
            handlers.append(logging.FileHandler(resolve_log_path(log_file)))
        except OSError as exc:
            logger.warning(f"Unable to open log file '{log_file}', logging to stdout only: {exc}")

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True
    )


def print_status(status: Optional[str]) -> None:
    if status:
        print(f"Status: {status}...")


def print_alerts(tracker: ImportTracker) -> None:
    """Print the tracker's alerts in order."""
    prefixes = {
        AlertLevel.INFO: "[INFO]",
        AlertLevel.SUCCESS: "[SUCCESS]",
        AlertLevel.DANGER: "[ERROR]",
    }
    for alert in tracker.alerts:
        print(f"{prefixes[alert.level]} {alert.message}")


def format_progress_table(job: ImportJob) -> str:
    """Render a job's progress snapshot as a table."""
    rows = []
    for entry in progress_entries(job.progress):
        rows.append([
            entry.resource_type,
            entry.imported,
            entry.total,
            f"{entry.fraction * 100:.1f}%",
            "yes" if entry.resource_type in TRACKED_RESOURCE_TYPES else "no",
        ])
    if not rows:
        return "No progress reported yet."
    return tabulate(
        rows,
        headers=["Resource", "Imported", "Total", "Done", "Tracked"],
        tablefmt="grid"
    )


def handle_import_command(args: argparse.Namespace, config: dict) -> int:
    """
    Handle the import command.

    Args:
        args: Parsed command-line arguments
        config: Configuration dictionary

    Returns:
        Process exit code
    """
    settings = get_import_settings(config)
    try:
        slots = load_source_files(args.files, settings.max_files)
    except SubmissionError as e:
        logger.error(f"Cannot import: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    api_client = ImportApiClient.from_settings(settings)
    tracker = ImportTracker(api_client, settings, visualizer=ConsoleProgressVisualizer())
    tracker.add_status_listener(print_status)

    try:
        state = asyncio.run(tracker.run_import(args.entity_name, slots, args.csrf_token))
    except KeyboardInterrupt:
        tracker.cancel()
        print("\nImport tracking cancelled; the server keeps processing the job.")
        return 130
    finally:
        api_client.close()

    print_alerts(tracker)
    if tracker.session is not None:
        print(f"Import job: {tracker.session.job.id} ({state.value})")
    return 0 if state is PollState.COMPLETED else 1


def handle_status_command(args: argparse.Namespace, config: dict) -> int:
    """
    Handle the status command: fetch a job once and print its progress.

    Args:
        args: Parsed command-line arguments
        config: Configuration dictionary

    Returns:
        Process exit code
    """
    settings = get_import_settings(config)
    api_client = ImportApiClient.from_settings(settings)
    try:
        job = ImportJob.from_response(api_client.get_import(args.id))
    except (ApiError, EvaluationFault) as e:
        logger.error(f"Status fetch failed for import {args.id}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        api_client.close()

    print(f"Import {job.id}: {job.status.value}")
    print(format_progress_table(job))
    return 0


def handle_ui_command(config_path: Path) -> int:
    """Launch the Streamlit import page."""
    ui_path = os.path.join(os.path.dirname(__file__), "ui_import.py")
    os.environ["IMPORT_TRACKER_CONFIG"] = str(config_path)
    try:
        logger.info("Launching Streamlit import page")
        subprocess.run([sys.executable, "-m", "streamlit", "run", ui_path])
    except KeyboardInterrupt:
        pass
    except OSError as e:
        logger.error(f"Failed to launch Streamlit UI: {e}")
        print(f"Error launching UI: {e}", file=sys.stderr)
        print("Make sure Streamlit is installed: pip install streamlit", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Submit bulk data imports and track their progress",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import two files into the "Personal" entity
  python main.py import -e Personal -f accounts.gnucash -f budget.csv

  # Check an existing import job
  python main.py status --id 42
        """
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    import_parser = subparsers.add_parser(
        "import",
        aliases=["imp"],
        help="Submit source files and wait for the import to finish"
    )
    import_parser.add_argument(
        "--entity-name",
        "-e",
        required=True,
        help="Name of the entity receiving the imported data"
    )
    import_parser.add_argument(
        "--file",
        "-f",
        dest="files",
        action="append",
        required=True,
        help="Source file to upload (can be specified multiple times)"
    )
    import_parser.add_argument(
        "--csrf-token",
        type=str,
        help="Anti-forgery token (defaults to api.csrf_token from the config)"
    )

    status_parser = subparsers.add_parser("status", help="Show progress of an import job")
    status_parser.add_argument("--id", required=True, help="Import job id")

    subparsers.add_parser("ui", help="Launch the Streamlit import page")
    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    setup_logging(config)

    try:
        if args.command in ["import", "imp"]:
            return handle_import_command(args, config)
        if args.command == "status":
            return handle_status_command(args, config)
        if args.command == "ui":
            return handle_ui_command(Path(args.config))
    except FinanceAppError as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
