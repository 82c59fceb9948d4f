"""
Read-only projection of a table for broadcast.

Seat entries never carry connection references or player ids; player ids only
appear in the ledger view so a client can recognise its own row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .ledger import ranked_entries
from .schemas import HISTORY_WINDOW, Table


@dataclass(frozen=True, slots=True)
class SeatView:
    seat: int
    occupied: bool = False
    name: Optional[str] = None
    ready: bool = False

    def to_dict(self) -> Dict[str, object]:
        if not self.occupied:
            return {"seat": self.seat, "occupied": False}
        return {"seat": self.seat, "occupied": True, "name": self.name, "ready": self.ready}


@dataclass(frozen=True, slots=True)
class HandView:
    id: str
    dealer_seat: int
    turn_seat: int
    base_bet: int
    current_bet: int
    pot: int
    in_hand: Tuple[bool, ...]
    contributed: Tuple[int, ...]
    history: Tuple[Dict[str, object], ...]

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
            "history": [dict(event) for event in self.history],
        }


@dataclass(frozen=True, slots=True)
class LedgerView:
    name: str
    net: int
    player_id: str

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "net": self.net, "playerId": self.player_id}


@dataclass(frozen=True, slots=True)
class TableSnapshot:
    table_id: str
    max_seats: int
    host_seat_index: int
    seats: Tuple[SeatView, ...]
    hand: Optional[HandView]
    ledger: Tuple[LedgerView, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "tableId": self.table_id,
            "maxSeats": self.max_seats,
            "hostSeatIndex": self.host_seat_index,
            "seats": [seat.to_dict() for seat in self.seats],
            "hand": self.hand.to_dict() if self.hand is not None else None,
            "ledger": [entry.to_dict() for entry in self.ledger],
        }


def table_snapshot(table: Table, window: int = HISTORY_WINDOW) -> TableSnapshot:
    seats = tuple(
        SeatView(seat=i, occupied=False)
        if seat is None
        else SeatView(seat=i, occupied=True, name=seat.name, ready=seat.ready)
        for i, seat in enumerate(table.seats)
    )

    hand_view: Optional[HandView] = None
    hand = table.hand
    if hand is not None:
        hand_view = HandView(
            id=hand.id,
            dealer_seat=hand.dealer_seat,
            turn_seat=hand.turn_seat,
            base_bet=hand.base_bet,
            current_bet=hand.current_bet,
            pot=hand.pot,
            in_hand=tuple(hand.in_hand),
            contributed=tuple(hand.contributed),
            history=tuple(event.to_dict() for event in hand.history[-window:]),
        )

    ledger = tuple(LedgerView(name=e.name, net=e.net, player_id=e.player_id) for e in ranked_entries(table))

    return TableSnapshot(
        table_id=table.table_id,
        max_seats=table.max_seats,
        host_seat_index=table.host_seat_index(),
        seats=seats,
        hand=hand_view,
        ledger=ledger,
    )
