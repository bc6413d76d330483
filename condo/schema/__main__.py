#!/usr/bin/env python
"""
Schema reconciliation CLI.

    python -m condo.schema plan            # show what would change
    python -m condo.schema apply           # write a migration + update the snapshot
    python -m condo.schema apply --prune   # also drop undeclared fields/indexes
"""
import argparse
import os
import sys
from datetime import datetime, timezone

from condo.core.config import settings
from condo.core.logger import logger, setup_logging
from condo.schema.definitions import SCHEMA
from condo.schema.reconcile import diff, load_snapshot, save_snapshot
from condo.schema.sql import render_plan


def plan(args) -> int:
    current = load_snapshot(args.snapshot)
    changes = diff(SCHEMA, current, prune=args.prune)
    if not changes:
        logger.info(f"✅ Schema v{SCHEMA.version} already applied, nothing to do")
        return 0
    logger.info(f"📋 {len(changes)} change(s) towards schema v{SCHEMA.version}:")
    for change in changes:
        print(f"  {change.describe()}")
    if args.sql:
        print(render_plan(changes, SCHEMA.version))
    return 0


def apply(args) -> int:
    current = load_snapshot(args.snapshot)
    changes = diff(SCHEMA, current, prune=args.prune)
    if not changes:
        logger.info(f"✅ Schema v{SCHEMA.version} already applied, no migration written")
        return 0

    os.makedirs(args.out_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    path = os.path.join(args.out_dir, f"{stamp}_schema_v{SCHEMA.version}.sql")
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_plan(changes, SCHEMA.version))

    save_snapshot(SCHEMA, args.snapshot)
    logger.info(f"📝 Migration written to {path} ({len(changes)} change(s)); snapshot updated")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="python -m condo.schema", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--snapshot", default=settings.SCHEMA_SNAPSHOT_PATH,
                        help="JSON snapshot of the last applied schema")
    parser.add_argument("--prune", action="store_true", help="drop fields/indexes no longer declared")
    sub = parser.add_subparsers(dest="command", required=True)

    plan_parser = sub.add_parser("plan", help="show pending changes")
    plan_parser.add_argument("--sql", action="store_true", help="also print the SQL")
    plan_parser.set_defaults(func=plan)

    apply_parser = sub.add_parser("apply", help="write migration SQL and record the snapshot")
    apply_parser.add_argument("--out-dir", default=settings.MIGRATIONS_DIR)
    apply_parser.set_defaults(func=apply)

    args = parser.parse_args(argv)
    setup_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
