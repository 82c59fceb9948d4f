"""
Betting-round state machine for a single table.

A table is either between hands (``table.hand is None``) or has exactly one
hand in progress. Resolution hands the pot to one seat, writes the ledger and
drops the table back to "no hand"; there is no separate finished state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from .logging_utils import NDJSONLogger, NullJournal
from .results import ActionResult, invalid, refused
from .schemas import DEFAULT_BASE_BET, SYSTEM_ACTOR, Hand, HandEvent, Table
from .sources import EntropySource

logger = logging.getLogger(__name__)

AUTO_WIN_NOTE = "auto (only player left)"
DECLARED_WIN_NOTE = "declared by HOST"

ForcedFoldCause = Literal["leave", "disconnect"]


@dataclass(slots=True)
class EngineConfig:
    default_base_bet: int = DEFAULT_BASE_BET
    # None keeps every event of a hand; the snapshot only ever sends the tail.
    history_limit: Optional[int] = None


def next_seat(seat_count: int, start: int, predicate: Callable[[int], bool]) -> Optional[int]:
    """First seat strictly after ``start`` (wrapping) that satisfies ``predicate``."""
    for step in range(1, seat_count + 1):
        seat = (start + step) % seat_count
        if predicate(seat):
            return seat
    return None


def coerce_amount(value: object) -> Optional[int]:
    """Whole-number chip amount from a wire value, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return coerce_amount(parsed)
    return None


class HandEngine:
    """
    Applies hand actions to a ``Table``.

    Every public method validates all of its preconditions before touching the
    table, so a failed result always leaves the table exactly as it was.
    Betting methods return the finished ``Hand`` as the result value when the
    action resolved the hand, otherwise ``None``.
    """

    def __init__(
        self,
        source: EntropySource,
        config: Optional[EngineConfig] = None,
        journal: NDJSONLogger | NullJournal | None = None,
    ) -> None:
        self.source = source
        self.config = config or EngineConfig()
        self.journal = journal or NullJournal()

    def start_hand(self, table: Table, requester: str, base_bet: object = None) -> ActionResult[Hand]:
        if not table.is_host(requester):
            return refused("Only host can start.")
        if table.hand is not None:
            return refused("Hand already active.")
        occupied = table.occupied_seats()
        if len(occupied) < 2:
            return refused("At least 2 players required.")
        if not all(table.seats[i].ready for i in occupied):
            return refused("All players must be Ready.")

        base = self.resolve_base_bet(base_bet)
        is_occupied = lambda i: table.seats[i] is not None  # noqa: E731
        if table.last_dealer_seat is None:
            dealer = self.source.choose_seat(occupied)
        else:
            dealer = next_seat(table.max_seats, table.last_dealer_seat, is_occupied)
        turn = next_seat(table.max_seats, dealer, is_occupied)

        table.hands_played += 1
        hand = Hand(
            id=f"{table.table_id}-{table.hands_played}",
            dealer_seat=dealer,
            turn_seat=turn,
            base_bet=base,
            current_bet=base,
            participants=[seat.player_id if seat is not None else None for seat in table.seats],
            in_hand=[seat is not None for seat in table.seats],
            contributed=[0] * table.max_seats,
        )
        table.hand = hand
        table.last_dealer_seat = dealer
        self._record(table, HandEvent(ts=self.source.now_ms(), type="start", note=f"Hand started. Base={base}"))
        logger.info("table %s: hand %s started, dealer=%s turn=%s base=%s", table.table_id, hand.id, dealer, turn, base)
        return ActionResult.success(hand)

    def resolve_base_bet(self, value: object) -> int:
        amount = coerce_amount(value)
        if amount is None or amount <= 0:
            return self.config.default_base_bet
        return amount

    def call(self, table: Table, seat_index: int) -> ActionResult[Optional[Hand]]:
        denied = self._check_turn(table, seat_index, folded_message="You are folded.")
        if denied is not None:
            return denied
        hand = table.hand
        pay = max(0, hand.current_bet - hand.contributed[seat_index])
        hand.contributed[seat_index] += pay
        hand.pot += pay
        self._record(
            table,
            HandEvent(
                ts=self.source.now_ms(),
                type="call",
                by=table.seats[seat_index].name,
                amount=pay,
                current_bet=hand.current_bet,
            ),
        )
        return ActionResult.success(self.advance_turn(table))

    def raise_to(self, table: Table, seat_index: int, new_bet: object) -> ActionResult[Optional[Hand]]:
        denied = self._check_turn(table, seat_index, folded_message="You are folded.")
        if denied is not None:
            return denied
        hand = table.hand
        target = coerce_amount(new_bet)
        if target is None:
            return invalid("Raise amount must be a whole number.")
        if target <= hand.current_bet:
            return refused("Raise must be greater than current bet.")
        need = target - hand.contributed[seat_index]
        if need < 0:
            return refused("Invalid raise state.")

        hand.current_bet = target
        hand.contributed[seat_index] += need
        hand.pot += need
        self._record(
            table,
            HandEvent(
                ts=self.source.now_ms(),
                type="raise",
                by=table.seats[seat_index].name,
                amount=need,
                new_bet=target,
            ),
        )
        return ActionResult.success(self.advance_turn(table))

    def fold(self, table: Table, seat_index: int) -> ActionResult[Optional[Hand]]:
        denied = self._check_turn(table, seat_index, folded_message="Already folded.")
        if denied is not None:
            return denied
        table.hand.in_hand[seat_index] = False
        self._record(table, HandEvent(ts=self.source.now_ms(), type="fold", by=table.seats[seat_index].name))
        return ActionResult.success(self.advance_turn(table))

    def force_fold(self, table: Table, seat_index: int, cause: ForcedFoldCause) -> Optional[Hand]:
        """
        Fold a departing seat on its owner's behalf.

        The turn only moves when the departing seat held it. Either way, if a
        single seat is left in the hand it wins immediately. Returns the
        finished hand when that happens.
        """
        hand = table.hand
        if hand is None or not hand.in_hand[seat_index]:
            return None
        hand.in_hand[seat_index] = False
        note = f"Seat {seat_index + 1} left" if cause == "leave" else f"Seat {seat_index + 1} dc"
        self._record(
            table,
            HandEvent(ts=self.source.now_ms(), type=f"{cause}-fold", by=SYSTEM_ACTOR, note=note),
        )
        if hand.turn_seat == seat_index:
            return self.advance_turn(table)
        alive = hand.alive_seats(table.seats)
        if len(alive) == 1:
            return self.finish_hand(table, alive[0], AUTO_WIN_NOTE)
        return None

    def advance_turn(self, table: Table) -> Optional[Hand]:
        hand = table.hand
        if hand is None:
            return None
        alive = hand.alive_seats(table.seats)
        if len(alive) == 1:
            return self.finish_hand(table, alive[0], AUTO_WIN_NOTE)
        turn = next_seat(
            table.max_seats,
            hand.turn_seat,
            lambda i: table.seats[i] is not None and hand.in_hand[i],
        )
        if turn is not None:
            hand.turn_seat = turn
        return None

    def declare_winner(self, table: Table, requester: str, winner_seat: object) -> ActionResult[Hand]:
        hand = table.hand
        if hand is None:
            return refused("No active hand.")
        if not table.is_host(requester):
            return refused("Only HOST can declare winner.")
        if isinstance(winner_seat, bool) or not isinstance(winner_seat, int):
            return invalid("Invalid winner seat.")
        if winner_seat < 0 or winner_seat >= table.max_seats:
            return invalid("Invalid winner seat.")
        if table.seats[winner_seat] is None:
            return refused("Winner seat is empty.")
        if not hand.in_hand[winner_seat]:
            return refused("Winner is folded.")
        return ActionResult.success(self.finish_hand(table, winner_seat, DECLARED_WIN_NOTE))

    def finish_hand(self, table: Table, winner_seat: int, note: str = "") -> Hand:
        hand = table.hand
        winner = table.seats[winner_seat]

        for seat_index, player_id in enumerate(hand.participants):
            paid = hand.contributed[seat_index]
            if player_id is None or paid == 0:
                continue
            table.ledger[player_id] = table.ledger.get(player_id, 0) - paid
        table.ledger[winner.player_id] = table.ledger.get(winner.player_id, 0) + hand.pot

        self._record(
            table,
            HandEvent(ts=self.source.now_ms(), type="win", by=winner.name, pot=hand.pot, note=note),
        )
        for seat in table.seats:
            if seat is not None:
                seat.ready = False
        table.hand = None

        self.journal.log(
            "hand_end",
            {
                "table_id": table.table_id,
                "hand_id": hand.id,
                "winner_seat": winner_seat,
                "pot": hand.pot,
                "contributed": list(hand.contributed),
                "note": note,
            },
        )
        logger.info(
            "table %s: hand %s won by seat %s (%s), pot=%s",
            table.table_id,
            hand.id,
            winner_seat,
            note,
            hand.pot,
        )
        return hand

    def _check_turn(self, table: Table, seat_index: Optional[int], folded_message: str) -> Optional[ActionResult]:
        hand = table.hand
        if hand is None:
            return refused("No active hand.")
        if seat_index is None or hand.turn_seat != seat_index:
            return refused("Not your turn.")
        if table.seats[seat_index] is None:
            return refused("Seat missing.")
        if not hand.in_hand[seat_index]:
            return refused(folded_message)
        return None

    def _record(self, table: Table, event: HandEvent) -> None:
        hand = table.hand
        hand.history.append(event)
        limit = self.config.history_limit
        if limit is not None and len(hand.history) > limit:
            del hand.history[: len(hand.history) - limit]
        payload = {"table_id": table.table_id, "hand_id": hand.id}
        payload.update(event.to_dict())
        self.journal.log("hand_event", payload)
        logger.debug("table %s: %s", table.table_id, payload)
