"""
Command-line entry point for tournament database maintenance.

Usage:
    tournament-maintenance --list
    tournament-maintenance cleanup-null-team-names
    tournament-maintenance drop-stale-team-index --dry-run
    tournament-maintenance purge-withdrawn --task-file tasks.yaml --uri mongodb://localhost/tournaments

Exit codes:
    0: Success (including runs with nothing to change)
    1: Any failure (configuration, connection, operation, lock)
"""
import argparse
import logging
import sys

from tournament_maintenance.config import DEFAULT_ENV_FILE, load_settings
from tournament_maintenance.errors import ConfigError, TaskDefinitionError
from tournament_maintenance.models import DROP_NAMED_INDEX
from tournament_maintenance.report import report
from tournament_maintenance.runner import execute
from tournament_maintenance.tasks import available_tasks, get_task

logger = logging.getLogger('tournament_maintenance')

EXIT_OK = 0
EXIT_FAILURE = 1


def exit_code(result) -> int:
    return EXIT_OK if result.succeeded else EXIT_FAILURE


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format='%(levelname)s: %(message)s', stream=sys.stdout)
    logger.setLevel(level)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='tournament-maintenance',
        description='Run a one-off maintenance task against the tournament database',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  MONGO_URI               Connection string (required unless --uri is given)
                          All variables may also come from a .env file (--env-file)
  MONGO_DB_NAME           Database name (default: from the URI, else 'test')
  MAINTENANCE_TIMEOUT_MS  Server selection timeout in ms (default: 5000)
  MAINTENANCE_LOCK_FILE   Run lock path (default: in the temp directory)

Exit codes:
  0: Success
  1: Any failure
        """
    )
    parser.add_argument('task', nargs='?', help='Name of the task to run (see --list)')
    parser.add_argument('--list', action='store_true', help='List available tasks and exit')
    parser.add_argument('--task-file', help='YAML file with additional task definitions')
    parser.add_argument('--uri', help='MongoDB connection string (default: env MONGO_URI)')
    parser.add_argument('--env-file', default=DEFAULT_ENV_FILE,
                        help='dotenv file read under the process environment (default: .env)')
    parser.add_argument('--db', help='Database name (default: env MONGO_DB_NAME or the URI default)')
    parser.add_argument('--dry-run', action='store_true', help='Only report what would change; do not modify anything')
    parser.add_argument('--lock-file', help='Path of the run lock (default: env MAINTENANCE_LOCK_FILE)')
    parser.add_argument('--no-lock', action='store_true', help='Do not take the run lock')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser


def list_tasks(task_file=None):
    tasks = available_tasks(task_file)
    for name in sorted(tasks):
        task = tasks[name]
        target = task.index_name if task.action == DROP_NAMED_INDEX else task.selector
        print(name)
        print(f"    {task.action} on '{task.target_collection}': {target}")
        if task.description:
            print(f"    {task.description}")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.list:
            list_tasks(args.task_file)
            return EXIT_OK

        if not args.task:
            parser.print_usage(sys.stderr)
            logger.error("No task given. Use --list to see available tasks.")
            return EXIT_FAILURE

        task = get_task(args.task, args.task_file)
        settings = load_settings(uri=args.uri, database=args.db, lock_file=args.lock_file,
                                 use_lock=not args.no_lock, env_file=args.env_file)
    except (TaskDefinitionError, ConfigError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    result = execute(task, settings, dry_run=args.dry_run)
    report(result)
    return exit_code(result)


def run_builtin(task_name, argv=None) -> int:
    """Run one named task; used by the single-purpose scripts in scripts/."""
    argv = list(sys.argv[1:] if argv is None else argv)
    return main([task_name] + argv)


if __name__ == '__main__':
    sys.exit(main())
