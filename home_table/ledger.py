"""
Running balances and end-of-session settlement.

Each player's ledger entry is the sum, over every resolved hand, of the pot
they won minus what they put in. Entries live as long as the table does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .schemas import Settlement, Table, Transfer


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    name: str
    net: int
    player_id: str = ""


def seated_entries(table: Table) -> List[LedgerEntry]:
    """Ledger entries of the current seat holders, in seat order."""
    entries: List[LedgerEntry] = []
    for seat in table.seats:
        if seat is None:
            continue
        entries.append(LedgerEntry(name=seat.name, net=table.ledger.get(seat.player_id, 0), player_id=seat.player_id))
    return entries


def ranked_entries(table: Table) -> List[LedgerEntry]:
    """Seat holders ordered by descending net; ties keep seat order."""
    return sorted(seated_entries(table), key=lambda entry: entry.net, reverse=True)


def compute_settlement(entries: Sequence[LedgerEntry]) -> Tuple[Transfer, ...]:
    """
    Greedy two-cursor matching of debtors to creditors.

    Both lists keep the order of ``entries``. The head debtor pays the head
    creditor the smaller of the two outstanding amounts; whichever side is
    exhausted moves on (both when both are). Pairings follow seat order rather
    than trying to minimise the number of transfers, so the same ledger always
    produces the same list.
    """
    creditors = [[entry.name, entry.net] for entry in entries if entry.net > 0]
    debtors = [[entry.name, -entry.net] for entry in entries if entry.net < 0]

    transfers: List[Transfer] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(debtor[1], creditor[1])
        transfers.append(Transfer(sender=debtor[0], recipient=creditor[0], amount=amount))
        debtor[1] -= amount
        creditor[1] -= amount
        if debtor[1] == 0:
            i += 1
        if creditor[1] == 0:
            j += 1
    return tuple(transfers)


def settle(table: Table) -> Settlement:
    entries = seated_entries(table)
    return Settlement(total=sum(entry.net for entry in entries), transfers=compute_settlement(entries))


def apply_transfers(balances: Mapping[str, int], transfers: Iterable[Transfer]) -> Dict[str, int]:
    """Balances after every transfer has been paid; the input is not modified."""
    result = dict(balances)
    for transfer in transfers:
        result[transfer.sender] = result.get(transfer.sender, 0) + transfer.amount
        result[transfer.recipient] = result.get(transfer.recipient, 0) - transfer.amount
    return result
