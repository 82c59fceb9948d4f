import random

import pytest

from home_table.ledger import LedgerEntry, apply_transfers, compute_settlement, ranked_entries, settle
from home_table.schemas import Transfer


def entries(*pairs):
    return [LedgerEntry(name=name, net=net) for name, net in pairs]


def test_one_creditor_two_debtors():
    transfers = compute_settlement(entries(("A", 300), ("B", -100), ("C", -200)))
    assert transfers == (
        Transfer(sender="B", recipient="A", amount=100),
        Transfer(sender="C", recipient="A", amount=200),
    )
    assert sum(t.amount for t in transfers if t.recipient == "A") == 300


def test_pairing_follows_seat_order():
    transfers = compute_settlement(entries(("D1", -50), ("C1", 80), ("D2", -100), ("C2", 70)))
    assert [t.to_dict() for t in transfers] == [
        {"from": "D1", "to": "C1", "amount": 50},
        {"from": "D2", "to": "C1", "amount": 30},
        {"from": "D2", "to": "C2", "amount": 70},
    ]


def test_simultaneous_zero_advances_both_cursors():
    transfers = compute_settlement(entries(("A", 100), ("B", -100), ("C", 40), ("D", -40)))
    assert [(t.sender, t.recipient, t.amount) for t in transfers] == [("B", "A", 100), ("D", "C", 40)]


def test_all_square_needs_no_transfers():
    assert compute_settlement(entries(("A", 0), ("B", 0))) == ()
    assert compute_settlement([]) == ()


def test_unbalanced_ledger_stops_when_one_side_runs_out():
    transfers = compute_settlement(entries(("A", 500), ("B", -100)))
    assert transfers == (Transfer("B", "A", 100),)


@pytest.mark.parametrize("seed", range(25))
def test_transfers_zero_every_balance(seed):
    rng = random.Random(seed)
    count = rng.randint(2, 10)
    nets = [rng.randint(-1000, 1000) for _ in range(count - 1)]
    nets.append(-sum(nets))
    ledger = entries(*((f"P{i}", net) for i, net in enumerate(nets)))

    transfers = compute_settlement(ledger)
    assert all(t.amount > 0 for t in transfers)
    balances = apply_transfers({e.name: e.net for e in ledger}, transfers)
    assert set(balances.values()) <= {0}


def test_apply_transfers_does_not_modify_input():
    balances = {"A": 100, "B": -100}
    assert apply_transfers(balances, [Transfer("B", "A", 100)]) == {"A": 0, "B": 0}
    assert balances == {"A": 100, "B": -100}


def test_settle_uses_seated_players(make_table):
    table = make_table(["A", "B", "C"], seats=[0, 4, 7])
    table.ledger.update({"pid-A": 300, "pid-B": -100, "pid-C": -200, "pid-gone": 25})
    result = settle(table)
    assert result.total == 0
    assert result.to_dict() == {
        "sum": 0,
        "transfers": [
            {"from": "B", "to": "A", "amount": 100},
            {"from": "C", "to": "A", "amount": 200},
        ],
    }


def test_ranked_entries_sort_descending_and_keep_seat_order_on_ties(make_table):
    table = make_table(["A", "B", "C", "D"])
    table.ledger.update({"pid-A": -10, "pid-B": 40, "pid-C": 40, "pid-D": 0})
    assert [(e.name, e.net) for e in ranked_entries(table)] == [("B", 40), ("C", 40), ("D", 0), ("A", -10)]
