"""Runtime configuration for the wolbot server, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

DATA_FILE_NAME = "data.json"


@dataclass
class BotConfig:
    """Server settings — see :meth:`from_env` for the variable names."""

    channel_access_token: str = ""
    channel_secret: str = ""
    data_dir: Path = Path("./data")

    # Wake-on-LAN
    broadcast: str = "255.255.255.255"
    wol_port: int = 9

    # Timeouts (seconds)
    ping_timeout: float = 5.0
    command_timeout: float = 15.0

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 5200
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None
    ssl_ca_certs: str | None = None

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BotConfig:
        env = os.environ if environ is None else environ
        config = cls(
            channel_access_token=env.get("LINE_CHANNEL_ACCESS_TOKEN", ""),
            channel_secret=env.get("LINE_CHANNEL_SECRET", ""),
            data_dir=Path(env.get("WOLBOT_DATA_DIR", "./data")),
            broadcast=env.get("WOLBOT_BROADCAST", "255.255.255.255"),
            wol_port=int(env.get("WOLBOT_WOL_PORT", "9")),
            ping_timeout=float(env.get("WOLBOT_PING_TIMEOUT", "5")),
            command_timeout=float(env.get("WOLBOT_COMMAND_TIMEOUT", "15")),
            host=env.get("WOLBOT_HOST", "0.0.0.0"),
            port=int(env.get("WOLBOT_PORT", "5200")),
            ssl_certfile=env.get("WOLBOT_SSL_CERTFILE") or None,
            ssl_keyfile=env.get("WOLBOT_SSL_KEYFILE") or None,
            ssl_ca_certs=env.get("WOLBOT_SSL_CA_CERTS") or None,
            log_level=env.get("WOLBOT_LOG_LEVEL", "INFO").upper(),
        )
        if not config.channel_secret:
            logger.warning("LINE_CHANNEL_SECRET is not set — every webhook call will be rejected")
        return config

    @property
    def data_file(self) -> Path:
        return self.data_dir / DATA_FILE_NAME

    @property
    def tls_enabled(self) -> bool:
        return bool(self.ssl_certfile and self.ssl_keyfile)
