"""Command line interface for home tables."""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from typing import Any, List, Optional

import yaml

from .ledger import LedgerEntry, compute_settlement


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Home table server and settlement tools")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (e.g. INFO, DEBUG). DEBUG prints every hand event.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the WebSocket table server")
    serve.add_argument("--host", default=None, help="Host to bind (env HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port to bind (env PORT)")
    serve.add_argument("--config", help="Optional YAML/JSON settings file")
    serve.add_argument("--journal", help="Append table events as NDJSON to this file")

    settle = sub.add_parser("settle", help="Print settling transfers for a ledger file")
    settle.add_argument("ledger", help="YAML/JSON file: {name: net} or [{name, net}, ...] in seat order")
    settle.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser.parse_args(argv)


def read_ledger(path: str) -> List[LedgerEntry]:
    # JSON ledgers parse as YAML too.
    data: Any = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return [LedgerEntry(name=str(name), net=int(net)) for name, net in data.items()]
    if isinstance(data, list):
        return [LedgerEntry(name=str(row["name"]), net=int(row["net"])) for row in data]
    raise ValueError(f"{path}: expected a mapping or a list of entries")


def run_settle(args: argparse.Namespace) -> int:
    entries = read_ledger(args.ledger)
    total = sum(entry.net for entry in entries)
    transfers = compute_settlement(entries)
    if args.json:
        print(json.dumps({"sum": total, "transfers": [t.to_dict() for t in transfers]}, indent=2))
    else:
        print("=== Settlement ===")
        for transfer in transfers:
            print(f"{transfer.sender} -> {transfer.recipient}: {transfer.amount}")
        print(f"Ledger sum: {total}")
    if total != 0:
        print("[CLI] Ledger does not sum to zero; some balances stay open", file=sys.stderr)
        return 1
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import asyncio

    from .transport.server import serve, settings_from_args

    asyncio.run(serve(settings_from_args(args)))
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    if args.command == "settle":
        sys.exit(run_settle(args))
    sys.exit(run_serve(args))


if __name__ == "__main__":
    main()
