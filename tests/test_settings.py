import json

import pytest

from home_table import cli
from home_table.registry import TurnOwnershipPolicy
from home_table.settings import ServerSettings
from home_table.transport.server import build_registry


def test_defaults():
    settings = ServerSettings.from_env({})
    assert settings.port == 3000
    assert settings.allowed_origins == ["*"]
    assert settings.turn_policy is TurnOwnershipPolicy.TRUST_BINDING
    assert settings.history_limit is None
    assert settings.engine_config.default_base_bet == 200


def test_environment_overrides():
    settings = ServerSettings.from_env(
        {
            "PORT": "8080",
            "ALLOWED_ORIGIN": "https://a.example, https://b.example",
            "TURN_POLICY": "VERIFY_CONNECTION",
            "HISTORY_LIMIT": "500",
            "DEFAULT_BASE_BET": "50",
        }
    )
    assert settings.port == 8080
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.turn_policy is TurnOwnershipPolicy.VERIFY_CONNECTION
    assert settings.history_limit == 500
    assert settings.engine_config.default_base_bet == 50


@pytest.mark.parametrize(
    "environ",
    [{"PORT": "0"}, {"PORT": "70000"}, {"DEFAULT_BASE_BET": "-5"}, {"HISTORY_LIMIT": "0"}, {"TURN_POLICY": "honour"}],
)
def test_invalid_environment(environ):
    with pytest.raises(ValueError):
        ServerSettings.from_env(environ)


def test_config_file_overlay(tmp_path):
    path = tmp_path / "table.yaml"
    path.write_text("port: 4100\nturn_policy: verify_connection\njournal_path: logs/events.ndjson\n", encoding="utf-8")
    settings = ServerSettings.from_env({"PORT": "9000"}).with_file(path)
    assert settings.port == 4100
    assert settings.turn_policy is TurnOwnershipPolicy.VERIFY_CONNECTION
    assert str(settings.journal_path) == "logs/events.ndjson"


def test_config_file_rejects_unknown_keys(tmp_path):
    path = tmp_path / "table.json"
    path.write_text(json.dumps({"seats": 12}), encoding="utf-8")
    with pytest.raises(ValueError, match="seats"):
        ServerSettings().with_file(path)


def test_build_registry_uses_settings(tmp_path):
    settings = ServerSettings(
        turn_policy=TurnOwnershipPolicy.VERIFY_CONNECTION,
        history_limit=10,
        journal_path=tmp_path / "journal" / "events.ndjson",
    )
    registry = build_registry(settings)
    try:
        assert registry.turn_policy is TurnOwnershipPolicy.VERIFY_CONNECTION
        assert registry.engine.config.history_limit == 10
        registry.create_table("a", "T", "Alice")
    finally:
        registry.journal.close()
    assert "table_created" in (tmp_path / "journal" / "events.ndjson").read_text(encoding="utf-8")


def test_cli_settle(tmp_path, capsys):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps({"A": 300, "B": -100, "C": -200}), encoding="utf-8")
    with pytest.raises(SystemExit) as exit_info:
        cli.main(["settle", str(path)])
    assert exit_info.value.code == 0
    out = capsys.readouterr().out
    assert "B -> A: 100" in out
    assert "C -> A: 200" in out
    assert "Ledger sum: 0" in out


def test_cli_settle_json_flags_open_balance(tmp_path, capsys):
    path = tmp_path / "ledger.yaml"
    path.write_text("- {name: A, net: 50}\n- {name: B, net: -20}\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exit_info:
        cli.main(["settle", "--json", str(path)])
    assert exit_info.value.code == 1
    result = json.loads(capsys.readouterr().out)
    assert result == {"sum": 30, "transfers": [{"from": "B", "to": "A", "amount": 20}]}
