"""测试配置和日志"""

import logging

import pytest

from chat_hub.exceptions import ConfigError
from chat_hub.utils import (
    HubConfig,
    configure_logging,
    get_config,
    get_logger,
    reset_config,
    set_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CHAT_HUB_HOST",
        "CHAT_HUB_PORT",
        "CHAT_HUB_JWT_SECRET",
        "CHAT_HUB_JWT_ALGORITHMS",
        "CHAT_HUB_SEND_TIMEOUT",
        "CHAT_HUB_WS_PING_INTERVAL",
        "CHAT_HUB_ENABLE_RICH_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def test_defaults():
    config = HubConfig()
    assert config.port == 3001
    assert config.jwt_algorithms == ["HS256"]
    assert config.jwt_secret is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("CHAT_HUB_HOST", "0.0.0.0")
    monkeypatch.setenv("CHAT_HUB_PORT", "4000")
    monkeypatch.setenv("CHAT_HUB_JWT_SECRET", "s3cret")
    monkeypatch.setenv("CHAT_HUB_JWT_ALGORITHMS", "HS256, HS512")
    monkeypatch.setenv("CHAT_HUB_SEND_TIMEOUT", "2.5")
    monkeypatch.setenv("CHAT_HUB_WS_PING_INTERVAL", "none")
    monkeypatch.setenv("CHAT_HUB_ENABLE_RICH_LOGGING", "false")

    config = HubConfig.from_env()
    assert config.host == "0.0.0.0"
    assert config.port == 4000
    assert config.require_secret() == "s3cret"
    assert config.jwt_algorithms == ["HS256", "HS512"]
    assert config.send_timeout == 2.5
    assert config.ws_ping_interval is None
    assert config.enable_rich_logging is False


def test_invalid_port(monkeypatch):
    monkeypatch.setenv("CHAT_HUB_PORT", "abc")
    with pytest.raises(ConfigError) as exc_info:
        HubConfig.from_env()
    assert exc_info.value.error_code == "CFG001"


def test_require_secret():
    with pytest.raises(ConfigError):
        HubConfig().require_secret()


def test_to_dict_masks_secret():
    data = HubConfig(jwt_secret="s3cret").to_dict()
    assert data["jwt_secret"] == "***"
    assert HubConfig().to_dict()["jwt_secret"] is None


def test_update_and_get():
    config = HubConfig()
    config.update(port=5000, motd="welcome")
    assert config.port == 5000
    assert config.get("motd") == "welcome"
    assert config.get("missing", "x") == "x"
    assert config.to_dict()["motd"] == "welcome"


def test_global_config(monkeypatch):
    monkeypatch.setenv("CHAT_HUB_PORT", "4100")
    assert get_config().port == 4100

    custom = HubConfig(port=4200)
    set_config(custom)
    assert get_config() is custom

    reset_config()
    assert get_config().port == 4100


def test_logging_setup(tmp_path):
    log_file = tmp_path / "hub.log"
    configure_logging(level="DEBUG", log_file=str(log_file), enable_rich=False)

    logger = get_logger("hub.test")
    assert logger.name == "chat_hub.hub.test"
    assert get_logger("chat_hub.rooms").name == "chat_hub.rooms"

    logger.debug("写入日志文件")
    for handler in logging.getLogger("chat_hub").handlers:
        handler.flush()
    assert "写入日志文件" in log_file.read_text(encoding="utf-8")

    root = logging.getLogger("chat_hub")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
