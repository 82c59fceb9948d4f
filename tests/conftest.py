"""Pytest configuration and fixtures for table tests."""

from typing import Callable, List, Sequence

import pytest

from home_table.engine import HandEngine
from home_table.registry import TableRegistry
from home_table.schemas import Seat, Table
from home_table.sources import SeededSource


@pytest.fixture
def source():
    """Deterministic source; seat 0 deals the first hand whenever it is occupied."""
    return SeededSource(seed=7, dealer=0)


@pytest.fixture
def engine(source):
    return HandEngine(source)


@pytest.fixture
def registry(source):
    return TableRegistry(source)


@pytest.fixture
def make_table() -> Callable[..., Table]:
    """Build a table directly, players seated at ``seats`` and already ready."""

    def _make(names: Sequence[str], seats: Sequence[int] = ()) -> Table:
        table = Table(table_id="T", created_at=0, host_connection="c0")
        positions = list(seats) or list(range(len(names)))
        for name, index in zip(names, positions):
            player_id = f"pid-{name}"
            table.seats[index] = Seat(player_id=player_id, name=name, connection=f"c{index}", ready=True)
            table.ledger[player_id] = 0
        return table

    return _make


@pytest.fixture
def seated(registry) -> Callable[..., List[str]]:
    """Seat ``names`` at a registry table; the first one creates it. Returns connections."""

    def _seat(names: Sequence[str], table_id: str = "T1", ready: bool = False) -> List[str]:
        connections = []
        for i, name in enumerate(names):
            conn = f"conn-{name.lower()}"
            if i == 0:
                result = registry.create_table(conn, table_id, name)
            else:
                result = registry.join_table(conn, table_id, name)
            assert result.ok, result.error
            connections.append(conn)
        if ready:
            for conn in connections:
                assert registry.toggle_ready(conn).ok
        return connections

    return _seat
