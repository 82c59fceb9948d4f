# -*- coding: utf-8 -*-
"""
Pydantic models for inbound table messages.

Field names follow the wire (camelCase); validation here only covers shape.
Blank names, bet sizes and turn order are checked by the registry.
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Envelope(BaseModel):
    """One WebSocket text frame: ``{"type": ..., "payload": {...}}``."""
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class ActionModel(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class CreateTable(ActionModel):
    table_id: Optional[str] = Field(default=None, validation_alias="tableId")
    # The reference UI sends "name"; "hostName" is accepted too.
    host_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("hostName", "name"))


class JoinTable(ActionModel):
    table_id: Optional[str] = Field(default=None, validation_alias="tableId")
    name: Optional[str] = None


class StartHand(ActionModel):
    base_bet: Any = Field(default=None, validation_alias="baseBet")


class Raise(ActionModel):
    new_bet: Any = Field(default=None, validation_alias="newBet")


class DeclareWinner(ActionModel):
    winner_seat: int = Field(validation_alias="winnerSeat")  # 0-based


class Empty(ActionModel):
    pass
