"""
Randomness, identity and clock used by the table engine.

Everything non-deterministic the engine needs goes through an
``EntropySource`` so tests can pin dealer choice and player ids.
"""

from __future__ import annotations

import random
import time
import uuid
from typing import Protocol, Sequence


class EntropySource(Protocol):
    def choose_seat(self, seats: Sequence[int]) -> int:
        ...

    def player_id(self) -> str:
        ...

    def now_ms(self) -> int:
        ...


class SystemSource:
    """Process randomness, uuid4 player ids and the wall clock."""

    def __init__(self) -> None:
        self._rng = random.SystemRandom()

    def choose_seat(self, seats: Sequence[int]) -> int:
        return self._rng.choice(list(seats))

    def player_id(self) -> str:
        return uuid.uuid4().hex

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class SeededSource:
    """
    Deterministic source for tests and replays.

    Player ids are ``p1``, ``p2``, ... in issue order. The clock starts at
    ``start_ms`` and moves forward by ``tick_ms`` on every read. When
    ``dealer`` is set and occupied it is always chosen as the first dealer.
    """

    def __init__(
        self,
        seed: int = 0,
        *,
        dealer: int | None = None,
        start_ms: int = 1_700_000_000_000,
        tick_ms: int = 1,
    ) -> None:
        self._rng = random.Random(seed)
        self._dealer = dealer
        self._issued = 0
        self._clock = start_ms
        self._tick = tick_ms

    def choose_seat(self, seats: Sequence[int]) -> int:
        if self._dealer is not None and self._dealer in seats:
            return self._dealer
        return self._rng.choice(list(seats))

    def player_id(self) -> str:
        self._issued += 1
        return f"p{self._issued}"

    def now_ms(self) -> int:
        self._clock += self._tick
        return self._clock
