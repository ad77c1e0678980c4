"""测试命令行入口"""

import logging

import pytest

from chat_hub.cli import build_parser, main
from chat_hub.hub import TokenVerifier

from conftest import SECRET


@pytest.fixture(autouse=True)
def cli_env(monkeypatch):
    monkeypatch.delenv("CHAT_HUB_JWT_SECRET", raising=False)
    monkeypatch.setenv("CHAT_HUB_ENABLE_RICH_LOGGING", "false")
    yield
    root = logging.getLogger("chat_hub")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_token_command_prints_verifiable_token(monkeypatch, capsys):
    monkeypatch.setenv("CHAT_HUB_JWT_SECRET", SECRET)

    assert main(["token", "Alice", "--expires-in", "60"]) == 0

    token = capsys.readouterr().out.strip()
    assert TokenVerifier(SECRET).verify_access_token(token).name == "Alice"


def test_token_command_requires_secret(capsys):
    assert main(["token", "Alice"]) == 2
    assert "CHAT_HUB_JWT_SECRET" in capsys.readouterr().err


def test_serve_requires_secret():
    assert main(["serve", "--port", "0"]) == 2


def test_serve_options():
    args = build_parser().parse_args(["serve", "--host", "0.0.0.0", "--port", "4000"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 4000


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
