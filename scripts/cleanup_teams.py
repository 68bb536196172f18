#!/usr/bin/env python3
"""
Delete team records whose name is null or missing.

Such records were left behind by team registrations that failed halfway and
collide with the unique (tournament, name) index.

Usage:
    python scripts/cleanup_teams.py
    python scripts/cleanup_teams.py --dry-run
    python scripts/cleanup_teams.py --uri mongodb://localhost:27017/tournaments

Requires MONGO_URI in the environment unless --uri is given.

Exit codes:
    0: Success (including when there was nothing to delete)
    1: Connection or operation failure
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_maintenance.cli import run_builtin


def main(argv=None):
    return run_builtin('cleanup-null-team-names', argv)


if __name__ == '__main__':
    sys.exit(main())
