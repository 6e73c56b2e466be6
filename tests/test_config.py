"""Tests for BotConfig.from_env."""

from __future__ import annotations

from pathlib import Path

import pytest

from wolbot.config import BotConfig


class TestBotConfig:
    def test_defaults(self):
        config = BotConfig.from_env({})
        assert config.data_file == Path("./data") / "data.json"
        assert config.broadcast == "255.255.255.255"
        assert config.wol_port == 9
        assert config.ping_timeout == 5.0
        assert config.tls_enabled is False

    def test_overrides(self):
        config = BotConfig.from_env({
            "LINE_CHANNEL_ACCESS_TOKEN": "tok",
            "LINE_CHANNEL_SECRET": "sec",
            "WOLBOT_DATA_DIR": "/var/lib/wolbot",
            "WOLBOT_BROADCAST": "192.168.1.255",
            "WOLBOT_WOL_PORT": "7",
            "WOLBOT_PING_TIMEOUT": "2.5",
            "WOLBOT_PORT": "8443",
            "WOLBOT_SSL_CERTFILE": "cert.pem",
            "WOLBOT_SSL_KEYFILE": "key.pem",
            "WOLBOT_LOG_LEVEL": "debug",
        })
        assert config.channel_access_token == "tok"
        assert config.channel_secret == "sec"
        assert config.data_file == Path("/var/lib/wolbot/data.json")
        assert config.wol_port == 7
        assert config.ping_timeout == 2.5
        assert config.port == 8443
        assert config.tls_enabled is True
        assert config.log_level == "DEBUG"

    def test_bad_number_raises(self):
        with pytest.raises(ValueError):
            BotConfig.from_env({"WOLBOT_WOL_PORT": "nine"})
