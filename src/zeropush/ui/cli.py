from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from zeropush.app import load_registry, process_push, read_last_mutation_id, upgrade_database
from zeropush.common.logging import configure_logging
from zeropush.config import ConfigurationError, get_registry_reference

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Process Zero push requests")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (defaults to ZEROPUSH_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    db = subparsers.add_parser("db", help="Ledger database commands")
    db_sub = db.add_subparsers(dest="db_command", required=True)
    db_upgrade = db_sub.add_parser("upgrade", help="Migrate the ledger schema to head")
    db_upgrade.add_argument(
        "--database-uri",
        type=str,
        help="Database to migrate (defaults to DATABASE_URI or the local data dir)",
    )

    ledger = subparsers.add_parser("ledger", help="Inspect the mutation ledger")
    ledger_sub = ledger.add_subparsers(dest="ledger_command", required=True)
    ledger_show = ledger_sub.add_parser("show", help="Show the last mutation id of a client")
    ledger_show.add_argument("--group", type=str, required=True, help="Client group id")
    ledger_show.add_argument("--client", type=str, required=True, help="Client id")

    push = subparsers.add_parser("push", help="Process a push request stored in a JSON file")
    push.add_argument("file", type=Path, help="Path to the push request body ('-' for stdin)")
    push.add_argument(
        "--registry",
        type=str,
        default=None,
        help="Mutation registry to dispatch to, as module:attribute (defaults to ZEROPUSH_REGISTRY)",
    )
    push.add_argument(
        "--context",
        type=str,
        help="JSON object handed to mutation handlers as their context",
    )

    return parser.parse_args(list(argv))


def _parse_context(value: str | None) -> dict[str, object] | None:
    if value is None:
        return None
    try:
        context = json.loads(value)
    except ValueError as exc:
        raise ValueError(f"Invalid --context JSON: {exc}") from exc
    if not isinstance(context, dict):
        raise ValueError("--context must be a JSON object")  # noqa: TRY004
    return context


def _read_body(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    try:
        configure_logging(level=parsed_args.log_level)
        context = _parse_context(getattr(parsed_args, "context", None))
        registry = (
            load_registry(get_registry_reference(parsed_args.registry))
            if parsed_args.command == "push"
            else None
        )
    except (ValueError, ImportError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "db" and parsed_args.db_command == "upgrade":
            upgrade_database(parsed_args.database_uri)
        elif parsed_args.command == "ledger" and parsed_args.ledger_command == "show":
            last_mutation_id = read_last_mutation_id(parsed_args.group, parsed_args.client)
            print(  # noqa: T201
                json.dumps(
                    {
                        "clientGroupID": parsed_args.group,
                        "clientID": parsed_args.client,
                        "lastMutationID": last_mutation_id,
                    }
                )
            )
        elif parsed_args.command == "push" and registry is not None:
            response = process_push(_read_body(parsed_args.file), registry, context=context)
            print(json.dumps(response, default=str))  # noqa: T201
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
