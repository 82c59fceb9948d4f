"""
Table, seat and hand records shared by the registry, the hand engine and the
ledger.

These are plain mutable dataclasses owned by the registry; nothing outside
``home_table`` should hold on to them; external consumers get a
``home_table.snapshot.TableSnapshot`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

MAX_SEATS = 10
DEFAULT_BASE_BET = 200
HISTORY_WINDOW = 200

EventType = Literal[
    "start",
    "call",
    "raise",
    "fold",
    "win",
    "leave-fold",
    "disconnect-fold",
]

SYSTEM_ACTOR = "system"


@dataclass(slots=True)
class HandEvent:
    ts: int
    type: EventType
    by: Optional[str] = None
    amount: Optional[int] = None
    current_bet: Optional[int] = None
    new_bet: Optional[int] = None
    pot: Optional[int] = None
    note: str = ""

    def to_dict(self) -> Dict[str, object]:
        record: Dict[str, object] = {"ts": self.ts, "type": self.type}
        if self.by is not None:
            record["by"] = self.by
        if self.amount is not None:
            record["amount"] = self.amount
        if self.current_bet is not None:
            record["currentBet"] = self.current_bet
        if self.new_bet is not None:
            record["newBet"] = self.new_bet
        if self.pot is not None:
            record["pot"] = self.pot
        if self.note:
            record["note"] = self.note
        return record


@dataclass(slots=True)
class Seat:
    player_id: str
    name: str
    connection: str
    ready: bool = False


@dataclass(slots=True)
class Hand:
    id: str
    dealer_seat: int
    turn_seat: int
    base_bet: int
    current_bet: int
    participants: List[Optional[str]]
    in_hand: List[bool]
    contributed: List[int]
    pot: int = 0
    history: List[HandEvent] = field(default_factory=list)

    def alive_seats(self, seats: List[Optional[Seat]]) -> List[int]:
        return [i for i, seat in enumerate(seats) if seat is not None and self.in_hand[i]]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "dealerSeat": self.dealer_seat,
            "turnSeat": self.turn_seat,
            "baseBet": self.base_bet,
            "currentBet": self.current_bet,
            "pot": self.pot,
            "inHand": list(self.in_hand),
            "contributed": list(self.contributed),
            "history": [event.to_dict() for event in self.history],
        }


@dataclass(slots=True)
class Table:
    table_id: str
    created_at: int
    host_connection: Optional[str]
    max_seats: int = MAX_SEATS
    seats: List[Optional[Seat]] = field(default_factory=list)
    hand: Optional[Hand] = None
    ledger: Dict[str, int] = field(default_factory=dict)
    last_dealer_seat: Optional[int] = None
    hands_played: int = 0

    def __post_init__(self) -> None:
        if not self.seats:
            self.seats = [None] * self.max_seats

    def occupied_seats(self) -> List[int]:
        return [i for i, seat in enumerate(self.seats) if seat is not None]

    def first_empty_seat(self) -> Optional[int]:
        for i, seat in enumerate(self.seats):
            if seat is None:
                return i
        return None

    def host_seat_index(self) -> int:
        for i, seat in enumerate(self.seats):
            if seat is not None and seat.connection == self.host_connection:
                return i
        return -1

    def is_host(self, connection: str) -> bool:
        return self.host_connection is not None and self.host_connection == connection

    def is_empty(self) -> bool:
        return all(seat is None for seat in self.seats)


@dataclass(frozen=True, slots=True)
class Transfer:
    sender: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, object]:
        return {"from": self.sender, "to": self.recipient, "amount": self.amount}


@dataclass(frozen=True, slots=True)
class Settlement:
    total: int
    transfers: Tuple[Transfer, ...]

    def to_dict(self) -> Dict[str, object]:
        return {"sum": self.total, "transfers": [t.to_dict() for t in self.transfers]}
