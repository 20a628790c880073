"""Command line entry point.

Usage:
  python run.py serve [--host 0.0.0.0] [--port 8000] [--reload]
  python run.py link-memberships [--dry-run]
"""

import argparse
import os
import sys
from typing import List, Optional

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from neighbors_admin.config import load_envs
from neighbors_admin.logger import configure_logging, log


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "neighbors_admin.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
    return 0


def _link_memberships(args: argparse.Namespace) -> int:
    from neighbors_admin.db import create_service_database_client
    from neighbors_admin.memberships import MembershipLinker

    db = create_service_database_client()
    summary = MembershipLinker(db).run(dry_run=args.dry_run)

    log(
        "[link-memberships] dry run complete" if summary.dry_run else "[link-memberships] complete",
        linked=summary.linked,
        updated=summary.updated,
        skipped=summary.skipped,
        unmatched=summary.unmatched,
        errors=summary.error_count,
    )
    for message in summary.errors:
        print(f"[link-memberships error] {message}", file=sys.stderr)
    return 1 if summary.errors else 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Neighbors admin backend")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=os.getenv("API_HOST", "127.0.0.1"))
    serve.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")))
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    serve.set_defaults(handler=_serve)

    link = subparsers.add_parser(
        "link-memberships",
        help="Link every person to the best membership sharing their email",
    )
    link.add_argument("--dry-run", action="store_true", help="Report planned changes without writing")
    link.set_defaults(handler=_link_memberships)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        return 1

    load_envs(PROJECT_ROOT)
    configure_logging()

    try:
        return int(args.handler(args) or 0)
    except Exception as exc:
        print(f"[{args.command} error] {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
