"""
Process-wide table registry.

``TableRegistry`` is the only mutable state shared between connections. It is
constructed once at startup and injected into the transport; a table is torn
down only when its last seat is vacated. Every operation is synchronous and
runs to completion before the next one is accepted, and every operation
returns an ``ActionResult`` instead of raising.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .engine import EngineConfig, ForcedFoldCause, HandEngine
from .ledger import settle
from .logging_utils import NDJSONLogger, NullJournal
from .results import ActionResult, invalid, missing, refused
from .schemas import MAX_SEATS, Hand, Seat, Table
from .snapshot import TableSnapshot, table_snapshot
from .sources import EntropySource, SystemSource

logger = logging.getLogger(__name__)


class TurnOwnershipPolicy(enum.Enum):
    """
    How betting actions (call/raise/fold) establish who is acting.

    TRUST_BINDING: the seat recorded for the connection when it sat down is
    taken as-is. VERIFY_CONNECTION: the seat must also still list the acting
    connection as its owner, the same check ``toggle_ready`` always does.
    """

    TRUST_BINDING = "trust_binding"
    VERIFY_CONNECTION = "verify_connection"


@dataclass(frozen=True, slots=True)
class Binding:
    table_id: str
    seat_index: int
    player_id: str


@dataclass(frozen=True, slots=True)
class Notice:
    """Outbound message. ``connection`` set means unicast, otherwise broadcast to ``table_id``."""

    event: str
    payload: Dict[str, object]
    table_id: Optional[str] = None
    connection: Optional[str] = None


@dataclass(slots=True)
class Outcome:
    table_id: Optional[str]
    notices: List[Notice] = field(default_factory=list)
    snapshot: Optional[TableSnapshot] = None
    finished_hand: Optional[Hand] = None


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


class TableRegistry:
    def __init__(
        self,
        source: Optional[EntropySource] = None,
        *,
        engine_config: Optional[EngineConfig] = None,
        journal: NDJSONLogger | NullJournal | None = None,
        turn_policy: TurnOwnershipPolicy = TurnOwnershipPolicy.TRUST_BINDING,
        max_seats: int = MAX_SEATS,
    ) -> None:
        self.source = source or SystemSource()
        self.journal = journal or NullJournal()
        self.engine = HandEngine(self.source, engine_config, self.journal)
        self.turn_policy = turn_policy
        self.max_seats = max_seats
        self._tables: Dict[str, Table] = {}
        self._bindings: Dict[str, Binding] = {}

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    def get_table(self, table_id: str) -> Optional[Table]:
        return self._tables.get(table_id)

    def binding(self, connection: str) -> Optional[Binding]:
        return self._bindings.get(connection)

    def connections_at(self, table_id: str) -> List[str]:
        return [conn for conn, b in self._bindings.items() if b.table_id == table_id]

    def create_table(self, connection: str, table_id: object, host_name: object) -> ActionResult[Outcome]:
        table_id, host_name = _clean(table_id), _clean(host_name)
        if not table_id or not host_name:
            return invalid("Table ID and name required.")
        if connection in self._bindings:
            return refused("Already seated at a table. Leave first.")
        if table_id in self._tables:
            return refused("Table already exists.")

        table = Table(
            table_id=table_id,
            created_at=self.source.now_ms(),
            host_connection=connection,
            max_seats=self.max_seats,
        )
        self.journal.log("table_created", {"table_id": table_id, "host": host_name})
        outcome = self._seat(table, connection, host_name, 0)
        # only registered once the host is seated and bound
        self._tables[table_id] = table
        logger.info("table %s created by %s", table_id, host_name)
        return ActionResult.success(outcome)

    def join_table(self, connection: str, table_id: object, name: object) -> ActionResult[Outcome]:
        table_id, name = _clean(table_id), _clean(name)
        if not table_id or not name:
            return invalid("Table ID and name required.")
        if connection in self._bindings:
            return refused("Already seated at a table. Leave first.")
        table = self._tables.get(table_id)
        if table is None:
            return missing("Table not found.")
        seat_index = table.first_empty_seat()
        if seat_index is None:
            return refused(f"Table is full ({table.max_seats}).")
        return ActionResult.success(self._seat(table, connection, name, seat_index))

    def toggle_ready(self, connection: str) -> ActionResult[Outcome]:
        found = self._bound_table(connection)
        if not found.ok:
            return found
        table, binding = found.value
        seat = table.seats[binding.seat_index]
        if seat is None:
            return refused("Seat missing.")
        if seat.connection != connection:
            return refused("Seat ownership mismatch.")
        if table.hand is not None:
            return refused("Hand is active. (Finish hand first)")
        seat.ready = not seat.ready
        return ActionResult.success(self._finish(table))

    def leave(self, connection: str) -> ActionResult[Outcome]:
        return ActionResult.success(self._depart(connection, "leave"))

    def disconnect(self, connection: str) -> ActionResult[Outcome]:
        return ActionResult.success(self._depart(connection, "disconnect"))

    def start_hand(self, connection: str, base_bet: object = None) -> ActionResult[Outcome]:
        found = self._bound_table(connection)
        if not found.ok:
            return found
        table, _ = found.value
        started = self.engine.start_hand(table, connection, base_bet)
        if not started.ok:
            return ActionResult(error=started.error)
        return ActionResult.success(self._finish(table))

    def call(self, connection: str) -> ActionResult[Outcome]:
        return self._bet(connection, lambda table, seat: self.engine.call(table, seat))

    def raise_bet(self, connection: str, new_bet: object) -> ActionResult[Outcome]:
        return self._bet(connection, lambda table, seat: self.engine.raise_to(table, seat, new_bet))

    def fold(self, connection: str) -> ActionResult[Outcome]:
        return self._bet(connection, lambda table, seat: self.engine.fold(table, seat))

    def declare_winner(self, connection: str, winner_seat: object) -> ActionResult[Outcome]:
        found = self._bound_table(connection)
        if not found.ok:
            return found
        table, _ = found.value
        declared = self.engine.declare_winner(table, connection, winner_seat)
        if not declared.ok:
            return ActionResult(error=declared.error)
        return ActionResult.success(self._finish(table, declared.value))

    def settlement(self, connection: str) -> ActionResult[Outcome]:
        found = self._bound_table(connection)
        if not found.ok:
            return found
        table, _ = found.value
        result = settle(table)
        logger.info("table %s: settlement sum=%s transfers=%s", table.table_id, result.total, len(result.transfers))
        outcome = Outcome(table_id=table.table_id)
        outcome.notices.append(Notice("settlementResult", result.to_dict(), table_id=table.table_id))
        return ActionResult.success(outcome)

    def _seat(self, table: Table, connection: str, name: str, seat_index: int) -> Outcome:
        """Occupy ``seat_index``; the connection is bound only once the outcome is built."""
        player_id = self.source.player_id()
        table.seats[seat_index] = Seat(player_id=player_id, name=name, connection=connection)
        table.ledger.setdefault(player_id, 0)
        me = {
            "tableId": table.table_id,
            "seatIndex": seat_index,
            "playerId": player_id,
            "isHost": table.is_host(connection),
        }
        outcome = Outcome(table_id=table.table_id)
        outcome.notices.append(Notice("me", me, connection=connection))
        try:
            outcome = self._finish(table, outcome=outcome)
        except Exception:
            table.seats[seat_index] = None
            table.ledger.pop(player_id, None)
            raise

        self._bindings[connection] = Binding(table.table_id, seat_index, player_id)
        self.journal.log(
            "seated",
            {"table_id": table.table_id, "seat": seat_index, "name": name, "player_id": player_id},
        )
        logger.info("table %s: %s took seat %s", table.table_id, name, seat_index)
        return outcome

    def _bound_table(self, connection: str) -> ActionResult:
        binding = self._bindings.get(connection)
        if binding is None:
            return missing("Not in a table.")
        table = self._tables.get(binding.table_id)
        if table is None:
            return missing("Table not found.")
        return ActionResult.success((table, binding))

    def _bet(self, connection: str, action) -> ActionResult[Outcome]:
        found = self._bound_table(connection)
        if not found.ok:
            return found
        table, binding = found.value
        if self.turn_policy is TurnOwnershipPolicy.VERIFY_CONNECTION:
            seat = table.seats[binding.seat_index]
            if seat is None or seat.connection != connection:
                return refused("Seat ownership mismatch.")
        acted = action(table, binding.seat_index)
        if not acted.ok:
            return ActionResult(error=acted.error)
        return ActionResult.success(self._finish(table, acted.value))

    def _depart(self, connection: str, cause: ForcedFoldCause) -> Outcome:
        binding = self._bindings.pop(connection, None)
        if binding is None:
            return Outcome(table_id=None)
        table = self._tables.get(binding.table_id)
        if table is None:
            return Outcome(table_id=binding.table_id)

        finished: Optional[Hand] = None
        seat = table.seats[binding.seat_index]
        if seat is not None and seat.connection == connection:
            finished = self.engine.force_fold(table, binding.seat_index, cause)
            table.seats[binding.seat_index] = None
            self.journal.log(
                "vacated",
                {"table_id": table.table_id, "seat": binding.seat_index, "cause": cause},
            )
            logger.info("table %s: seat %s vacated (%s)", table.table_id, binding.seat_index, cause)

        if table.host_connection == connection:
            first = next((s for s in table.seats if s is not None), None)
            table.host_connection = first.connection if first is not None else None

        if table.is_empty():
            del self._tables[table.table_id]
            self.journal.log("table_closed", {"table_id": table.table_id})
            logger.info("table %s closed", table.table_id)
            return Outcome(table_id=table.table_id, finished_hand=finished)
        return self._finish(table, finished)

    def _finish(
        self,
        table: Table,
        finished: Optional[Hand] = None,
        outcome: Optional[Outcome] = None,
    ) -> Outcome:
        if outcome is None:
            outcome = Outcome(table_id=table.table_id)
        if finished is not None:
            outcome.finished_hand = finished
            outcome.notices.append(
                Notice("handFinished", {"lastHand": finished.to_dict()}, table_id=table.table_id)
            )
        outcome.snapshot = table_snapshot(table)
        outcome.notices.append(Notice("state", outcome.snapshot.to_dict(), table_id=table.table_id))
        return outcome
