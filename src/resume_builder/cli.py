"""Command line entry point: run the API server or the data migrations."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from resume_builder.data.migrations.embedded_to_tables import (
    EMBEDDED_TO_TABLE,
    migrate_to_embedded,
    migrate_to_tables,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resume-builder", description="Resume Builder")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=None, help="Bind address (default: $RESUME_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: $RESUME_PORT)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    migrate = commands.add_parser("migrate", help="Move data between embedded lists and tables")
    direction = migrate.add_subparsers(dest="direction", required=True)
    direction.add_parser("to-tables", help="Copy embedded entries into their tables")
    back = direction.add_parser("to-embedded", help="Copy table rows back into a resume column")
    back.add_argument("--table", required=True, choices=sorted(EMBEDDED_TO_TABLE.values()))
    back.add_argument("--column", required=True, choices=sorted(EMBEDDED_TO_TABLE))
    return parser


def _run_migration(args: argparse.Namespace) -> int:
    from resume_builder.data.db import get_session, init_db

    init_db()
    with get_session() as session:
        if args.direction == "to-tables":
            counts = migrate_to_tables(session)
            for table_name, count in counts.items():
                print(f"{table_name}: {count} row(s) inserted")
        else:
            updated = migrate_to_embedded(session, args.table, args.column)
            print(f"resumes.{args.column}: {updated} resume(s) updated")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the CLI application.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        from resume_builder.api.main import main as serve

        serve(host=args.host, port=args.port, reload=args.reload)
        return 0

    try:
        return _run_migration(args)
    except ValueError as exc:
        logger.error("Migration failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
