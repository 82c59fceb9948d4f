"""
Routes decoded messages to the registry and fans the results out.

The hub owns the send callables of live connections. It never mutates table
state itself: every inbound frame becomes exactly one registry call, and the
notices in the returned ``Outcome`` decide who hears about it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Tuple, Type

from pydantic import BaseModel, ValidationError

from ..registry import Notice, Outcome, TableRegistry
from ..results import ActionResult, ErrorKind
from .models import CreateTable, DeclareWinner, Empty, Envelope, JoinTable, Raise, StartHand

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], Awaitable[None]]

FALLBACK_ERRORS = {
    "createTable": "Create failed",
    "joinTable": "Join failed",
    "toggleReady": "Ready failed",
    "startHand": "Start failed",
    "call": "Call failed",
    "raise": "Raise failed",
    "fold": "Fold failed",
    "declareWinner": "Winner failed",
    "settlement": "Settlement failed",
    "leave": "Leave failed",
}


def frame(event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": event, "payload": payload}


class TableHub:
    def __init__(self, registry: TableRegistry) -> None:
        self.registry = registry
        self._peers: Dict[str, Sender] = {}
        self._routes: Dict[str, Tuple[Type[BaseModel], Callable[[str, Any], ActionResult[Outcome]]]] = {
            "createTable": (CreateTable, lambda c, m: registry.create_table(c, m.table_id, m.host_name)),
            "joinTable": (JoinTable, lambda c, m: registry.join_table(c, m.table_id, m.name)),
            "toggleReady": (Empty, lambda c, m: registry.toggle_ready(c)),
            "startHand": (StartHand, lambda c, m: registry.start_hand(c, m.base_bet)),
            "call": (Empty, lambda c, m: registry.call(c)),
            "raise": (Raise, lambda c, m: registry.raise_bet(c, m.new_bet)),
            "fold": (Empty, lambda c, m: registry.fold(c)),
            "declareWinner": (DeclareWinner, lambda c, m: registry.declare_winner(c, m.winner_seat)),
            "settlement": (Empty, lambda c, m: registry.settlement(c)),
            "leave": (Empty, lambda c, m: registry.leave(c)),
        }

    @property
    def peer_count(self) -> int:
        return len(self._peers)

    def attach(self, connection: str, send: Sender) -> None:
        self._peers[connection] = send
        logger.debug("connection %s attached", connection)

    async def detach(self, connection: str) -> None:
        self._peers.pop(connection, None)
        result = self.registry.disconnect(connection)
        await self.deliver(connection, result)
        logger.debug("connection %s detached", connection)

    async def receive(self, connection: str, text: str) -> None:
        try:
            envelope = Envelope.model_validate_json(text)
        except ValidationError:
            await self._send(connection, frame("errorMsg", {"message": "Malformed message."}))
            return
        await self.handle(connection, envelope.type, envelope.payload)

    async def handle(self, connection: str, event: str, payload: Dict[str, Any]) -> None:
        route = self._routes.get(event)
        if route is None:
            await self._send(connection, frame("errorMsg", {"message": f"Unknown message type {event!r}."}))
            return
        model_cls, handler = route
        try:
            message = model_cls.model_validate(payload)
        except ValidationError as exc:
            logger.info("rejected %s from %s: %s", event, connection, exc.errors(include_url=False))
            await self._send(connection, frame("errorMsg", {"message": _first_error(exc, event)}))
            return
        try:
            result = handler(connection, message)
        except Exception:
            logger.exception("unhandled error in %s from %s", event, connection)
            await self._send(connection, frame("errorMsg", {"message": FALLBACK_ERRORS[event]}))
            return
        await self.deliver(connection, result)

    async def deliver(self, origin: str, result: ActionResult[Outcome]) -> None:
        if not result.ok:
            logger.info("action from %s failed (%s): %s", origin, result.error.kind.value, result.error.message)
            await self._send(origin, frame("errorMsg", {"message": result.error.message}))
            return
        outcome = result.value
        if outcome is None:
            return
        for notice in outcome.notices:
            await self._publish(notice)

    async def _publish(self, notice: Notice) -> None:
        message = frame(notice.event, notice.payload)
        if notice.connection is not None:
            await self._send(notice.connection, message)
            return
        for connection in self.registry.connections_at(notice.table_id):
            await self._send(connection, message)

    async def _send(self, connection: str, message: Dict[str, Any]) -> None:
        send = self._peers.get(connection)
        if send is None:
            return
        try:
            await send(message)
        except Exception as exc:
            logger.warning("send %s to %s failed: %s", message.get("type"), connection, exc)


def _first_error(exc: ValidationError, event: str) -> str:
    errors = exc.errors(include_url=False)
    if not errors:
        return FALLBACK_ERRORS.get(event, "Invalid message.")
    first = errors[0]
    where = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid {where}: {first.get('msg')}" if where else str(first.get("msg"))


def dumps(message: Dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"))
