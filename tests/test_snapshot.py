import json

from home_table.schemas import HandEvent, Seat, Table
from home_table.snapshot import SeatView, table_snapshot


def test_idle_table_snapshot(make_table):
    table = make_table(["Alice", "Bob"], seats=[0, 3])
    table.seats[3].ready = False
    snap = table_snapshot(table).to_dict()
    assert snap["tableId"] == "T"
    assert snap["maxSeats"] == 10
    assert snap["hostSeatIndex"] == 0
    assert snap["hand"] is None
    assert snap["seats"][0] == {"seat": 0, "occupied": True, "name": "Alice", "ready": True}
    assert snap["seats"][1] == {"seat": 1, "occupied": False}
    assert snap["seats"][3] == {"seat": 3, "occupied": True, "name": "Bob", "ready": False}
    assert len(snap["seats"]) == 10


def test_snapshot_of_table_with_empty_seats():
    table = Table(table_id="Solo", created_at=0, host_connection="c0")
    table.seats[4] = Seat(player_id="pid-Dana", name="Dana", connection="c0")
    snap = table_snapshot(table)
    assert [view.occupied for view in snap.seats].count(True) == 1
    assert snap.seats[0] == SeatView(seat=0)
    assert snap.host_seat_index == 4
    assert snap.to_dict()["seats"][9] == {"seat": 9, "occupied": False}


def test_snapshot_of_empty_table():
    table = Table(table_id="Empty", created_at=0, host_connection=None)
    seats = table_snapshot(table).to_dict()["seats"]
    assert seats == [{"seat": i, "occupied": False} for i in range(10)]


def test_snapshot_hides_connections(make_table):
    table = make_table(["Alice", "Bob"])
    table.seats[0].connection = "secret-socket-a"
    table.seats[1].connection = "secret-socket-b"
    table.host_connection = "secret-socket-a"
    encoded = json.dumps(table_snapshot(table).to_dict())
    assert "secret-socket" not in encoded
    for seat in table_snapshot(table).to_dict()["seats"]:
        assert "playerId" not in seat


def test_host_seat_missing_when_host_connection_gone(make_table):
    table = make_table(["Alice", "Bob"])
    table.host_connection = "somebody-else"
    assert table_snapshot(table).host_seat_index == -1


def test_hand_view_and_history_window(engine, make_table):
    table = make_table(["Alice", "Bob"])
    engine.start_hand(table, "c0", 200)
    engine.call(table, 1)
    hand = table.hand
    for i in range(250):
        hand.history.append(HandEvent(ts=i, type="call", by="Bob", amount=0, current_bet=200))

    snap = table_snapshot(table)
    view = snap.to_dict()["hand"]
    assert view["dealerSeat"] == 0
    assert view["turnSeat"] == 0
    assert view["baseBet"] == view["currentBet"] == 200
    assert view["pot"] == 200
    assert view["contributed"][:2] == [0, 200]
    assert view["inHand"][:2] == [True, True]
    assert len(view["history"]) == 200
    assert view["history"][-1]["ts"] == 249
    # the table keeps its full log
    assert len(hand.history) == 252


def test_snapshot_is_detached_from_table(engine, make_table):
    table = make_table(["Alice", "Bob"])
    engine.start_hand(table, "c0", 200)
    snap = table_snapshot(table)
    engine.call(table, 1)
    assert snap.hand.pot == 0
    assert snap.hand.contributed[1] == 0


def test_ledger_view_sorted(make_table):
    table = make_table(["Alice", "Bob", "Cara"])
    table.ledger.update({"pid-Alice": -300, "pid-Bob": 500, "pid-Cara": -200})
    ledger = table_snapshot(table).to_dict()["ledger"]
    assert ledger == [
        {"name": "Bob", "net": 500, "playerId": "pid-Bob"},
        {"name": "Cara", "net": -200, "playerId": "pid-Cara"},
        {"name": "Alice", "net": -300, "playerId": "pid-Alice"},
    ]
