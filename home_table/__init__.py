"""
Home table package.

Coordinates a ten-seat betting table for a social card game. Key modules:

- schemas: Table, seat, hand and transfer records.
- engine: Betting-round state machine (turn order, call/raise/fold, resolution).
- ledger: Running balances and the settlement transfer list.
- snapshot: Read-only table view broadcast after every change.
- registry: Process-wide table registry and connection bindings.
- transport: WebSocket server that speaks the table message protocol.
- cli: Command line entry points.
"""

from .registry import TableRegistry, TurnOwnershipPolicy
from .results import ActionError, ActionResult, ErrorKind
from .sources import SeededSource, SystemSource

__all__ = [
    "ActionError",
    "ActionResult",
    "ErrorKind",
    "SeededSource",
    "SystemSource",
    "TableRegistry",
    "TurnOwnershipPolicy",
]
