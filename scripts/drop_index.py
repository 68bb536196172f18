#!/usr/bin/env python3
"""
Drop the obsolete tournament_1_teamName_1 index from the teams collection.

The index dates from when the team name field was called teamName; it now
indexes a missing field, so every second team in a tournament fails the
uniqueness check. Running the script again after the index is gone is
harmless: it reports that the index does not exist and exits 0.

Usage:
    python scripts/drop_index.py
    python scripts/drop_index.py --dry-run

Requires MONGO_URI in the environment unless --uri is given.

Exit codes:
    0: Success (including when the index was already gone)
    1: Connection or operation failure
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_maintenance.cli import run_builtin


def main(argv=None):
    return run_builtin('drop-stale-team-index', argv)


if __name__ == '__main__':
    sys.exit(main())
