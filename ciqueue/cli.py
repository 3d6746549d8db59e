"""
Command line entry point.

Commands:
- serve: run the FastAPI app under uvicorn
- cgi: handle one request from the CGI environment
- refresh: reconcile Waiting with the current snapshots
- list: print the job ids of one collection
"""

import argparse
import logging
import sys
from typing import List, Optional

from ciqueue import __version__
from ciqueue.bootstrap import build_service
from ciqueue.coordinator import Collection, LockTimeoutError
from ciqueue.infra import Settings, setup_logging

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_BUSY = 2

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from ciqueue.api._coordinator_state import init_router

    init_router(settings)
    logger.info(f"Serving ciqueue {__version__} on {args.host}:{args.port}")
    uvicorn.run("ciqueue.api.main:app", host=args.host, port=args.port, log_config=None)
    return EXIT_SUCCESS


def cmd_cgi(args: argparse.Namespace, settings: Settings) -> int:
    from ciqueue.api import cgi
    from ciqueue.api._coordinator_state import init_router

    status = cgi.run(init_router(settings))
    return EXIT_SUCCESS if status < 500 else EXIT_FAILURE


def cmd_refresh(args: argparse.Namespace, settings: Settings) -> int:
    service = build_service(settings)
    try:
        with service.lock:
            result = service.reconciler.refresh()
    except LockTimeoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BUSY

    if not result.ok:
        print(f"Error: {result.body}", file=sys.stderr)
        return EXIT_FAILURE

    print(result.body)
    return EXIT_SUCCESS


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    service = build_service(settings)
    collection = Collection(args.collection)
    try:
        with service.lock:
            ids = sorted(service.store.list_ids(collection))
    except LockTimeoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BUSY

    print(" ".join(str(i) for i in ids))
    return EXIT_SUCCESS


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ciqueue",
        description="CI regression queue coordinator",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    subparsers.add_parser("cgi", help="Handle one CGI request")
    subparsers.add_parser("refresh", help="Rebuild the waiting queue from GitHub")

    list_parser = subparsers.add_parser("list", help="List job ids of a collection")
    list_parser.add_argument(
        "collection",
        nargs="?",
        default=Collection.WAITING.value,
        choices=[c.value for c in Collection],
        help="Collection to list (default: waiting)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    setup_logging("DEBUG" if args.verbose else settings.log_level, settings.log_dir)

    if args.command == "serve":
        return cmd_serve(args, settings)
    elif args.command == "cgi":
        return cmd_cgi(args, settings)
    elif args.command == "refresh":
        return cmd_refresh(args, settings)
    elif args.command == "list":
        return cmd_list(args, settings)
    else:
        parser.print_help()
        return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
