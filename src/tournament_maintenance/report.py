"""
Human-readable summary of a finished task.
"""
import logging

from tournament_maintenance.models import DELETE_MATCHING

logger = logging.getLogger(__name__)


def format_report(result):
    """Return the summary as a list of lines."""
    task = result.task
    found_label = 'documents' if task.action == DELETE_MATCHING else 'indexes'
    changed_label = 'would change' if result.dry_run else 'changed'
    changed = result.matched_count if result.dry_run else result.affected_count
    status = 'OK' if result.succeeded else f'FAILED ({result.error_kind})'

    lines = [
        f"Task:       {task.name}",
        f"Collection: {task.target_collection}",
        f"Found:      {result.matched_count} {found_label}",
        f"{changed_label.capitalize() + ':':<12}{changed}",
        f"Status:     {status}",
    ]
    if result.message:
        lines.append(f"Message:    {result.message}")
    return lines


def report(result, log=None):
    """Emit the summary through ``log`` (this module's logger by default)."""
    log = log or logger
    level = logging.INFO if result.succeeded else logging.ERROR
    for line in format_report(result):
        log.log(level, line)
    log.log(level, "Done!" if result.succeeded else "Finished with errors.")
