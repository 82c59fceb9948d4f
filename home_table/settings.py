"""
Server settings from the environment, an optional config file and CLI flags.

Precedence, lowest first: defaults, environment (``.env`` is loaded through
python-dotenv without overriding variables already set), config file, CLI.
"""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .config_loader import load_config
from .engine import EngineConfig
from .registry import TurnOwnershipPolicy
from .schemas import DEFAULT_BASE_BET


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origin: str = "*"
    default_base_bet: int = DEFAULT_BASE_BET
    turn_policy: TurnOwnershipPolicy = TurnOwnershipPolicy.TRUST_BINDING
    history_limit: Optional[int] = None
    journal_path: Optional[pathlib.Path] = None

    @property
    def allowed_origins(self) -> List[str]:
        if self.allowed_origin == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origin.split(",") if origin.strip()]

    @property
    def engine_config(self) -> EngineConfig:
        return EngineConfig(default_base_bet=self.default_base_bet, history_limit=self.history_limit)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> "ServerSettings":
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ
        values: Dict[str, Any] = {}
        if environ.get("HOST"):
            values["host"] = environ["HOST"]
        if environ.get("PORT"):
            values["port"] = environ["PORT"]
        if environ.get("ALLOWED_ORIGIN"):
            values["allowed_origin"] = environ["ALLOWED_ORIGIN"]
        if environ.get("DEFAULT_BASE_BET"):
            values["default_base_bet"] = environ["DEFAULT_BASE_BET"]
        if environ.get("TURN_POLICY"):
            values["turn_policy"] = environ["TURN_POLICY"]
        if environ.get("HISTORY_LIMIT"):
            values["history_limit"] = environ["HISTORY_LIMIT"]
        if environ.get("JOURNAL_PATH"):
            values["journal_path"] = environ["JOURNAL_PATH"]
        return cls().with_overrides(values)

    def with_file(self, path: str | pathlib.Path) -> "ServerSettings":
        return self.with_overrides(load_config(path))

    def with_overrides(self, values: Mapping[str, Any]) -> "ServerSettings":
        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
        updates = {key: value for key, value in values.items() if value is not None}
        settings = replace(self, **updates)
        settings.normalize()
        settings.validate()
        return settings

    def normalize(self) -> None:
        self.port = int(self.port)
        self.default_base_bet = int(self.default_base_bet)
        if self.history_limit is not None:
            self.history_limit = int(self.history_limit)
        if not isinstance(self.turn_policy, TurnOwnershipPolicy):
            self.turn_policy = TurnOwnershipPolicy(str(self.turn_policy).lower())
        if self.journal_path is not None:
            self.journal_path = pathlib.Path(self.journal_path)

    def validate(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.default_base_bet <= 0:
            raise ValueError("default_base_bet must be positive")
        if self.history_limit is not None and self.history_limit <= 0:
            raise ValueError("history_limit must be positive when set")
        if not self.allowed_origins:
            raise ValueError("allowed_origin must name at least one origin")
