"""wolbot — LINE webhook server.

Exposes:
  POST /webhook   — LINE Messaging API webhook (signature-checked)
  GET  /health    — liveness check

Start with::

    python -m wolbot.server
    # or
    uvicorn wolbot.server:app --host 0.0.0.0 --port 5200
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from wolbot import __version__
from wolbot.config import BotConfig
from wolbot.control import DeviceController
from wolbot.line.client import LineClient, LineClientError
from wolbot.line.messages import ERROR_TEXT, render_outcome, text_message
from wolbot.line.signature import verify_signature
from wolbot.registry import DeviceRegistry
from wolbot.router import CommandRouter

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────
# FastAPI app
# ──────────────────────────────────────────────────────────────────

_config: BotConfig | None = None
_router: CommandRouter | None = None
_line_client: LineClient | None = None


@asynccontextmanager
async def _lifespan(_: FastAPI):
    global _line_client
    yield
    if _line_client is not None:
        await _line_client.aclose()
        _line_client = None


app = FastAPI(title="wolbot", version=__version__, lifespan=_lifespan)


def _get_config() -> BotConfig:
    global _config
    if _config is None:
        _config = BotConfig.from_env()
    return _config


def _get_router() -> CommandRouter:
    global _router
    if _router is None:
        config = _get_config()
        controller = DeviceController(
            broadcast=config.broadcast,
            port=config.wol_port,
            ping_timeout=config.ping_timeout,
        )
        _router = CommandRouter(DeviceRegistry(config.data_file), controller)
    return _router


def _get_line_client() -> LineClient:
    global _line_client
    if _line_client is None:
        _line_client = LineClient(_get_config().channel_access_token)
    return _line_client


# ──────────────────────────────────────────────────────────────────
# Webhook payload models
# ──────────────────────────────────────────────────────────────────

class EventSource(BaseModel):
    type: str = "user"
    userId: str | None = None


class EventMessage(BaseModel):
    type: str
    text: str | None = None


class WebhookEvent(BaseModel):
    type: str
    replyToken: str | None = None
    source: EventSource = Field(default_factory=EventSource)
    message: EventMessage | None = None


class WebhookBody(BaseModel):
    destination: str | None = None
    events: list[WebhookEvent] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/webhook")
async def webhook(raw: Request):
    body = await raw.body()
    signature = raw.headers.get("x-line-signature")
    if not verify_signature(_get_config().channel_secret, body, signature):
        logger.warning("Rejected webhook call with missing or bad signature")
        raise HTTPException(status_code=401, detail="Signature validation failed")

    try:
        payload = WebhookBody.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Malformed webhook body") from exc

    results = await asyncio.gather(*(handle_event(event) for event in payload.events))
    return {"status": "ok", "replied": sum(1 for r in results if r)}


# ──────────────────────────────────────────────────────────────────
# Event handling
# ──────────────────────────────────────────────────────────────────

async def handle_event(event: WebhookEvent) -> bool:
    """Route one webhook event and send its reply.

    Returns ``True`` if a reply was sent.  Non-text events are skipped.
    """
    if event.type != "message" or event.message is None or event.message.type != "text":
        return False
    user_id = event.source.userId
    text = event.message.text or ""
    if not user_id:
        logger.debug("Text event without a userId, skipping")
        return False

    messages: list[dict[str, Any]] | None
    try:
        outcome = await _get_router().handle(
            user_id, text, deadline=_get_config().command_timeout
        )
        messages = render_outcome(outcome)
    except Exception:
        logger.exception("Event handling failed for user %s...", user_id[:10])
        messages = [text_message(ERROR_TEXT)]

    if messages is None or not event.replyToken:
        return False
    try:
        await _get_line_client().reply(event.replyToken, messages)
    except LineClientError as exc:
        logger.error("Reply to user %s... failed: %s", user_id[:10], exc)
        return False
    return True


# ──────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────

def main():
    import uvicorn
    config = _get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    tls_kwargs: dict[str, Any] = {}
    if config.tls_enabled:
        tls_kwargs = {
            "ssl_certfile": config.ssl_certfile,
            "ssl_keyfile": config.ssl_keyfile,
            "ssl_ca_certs": config.ssl_ca_certs,
        }
    logger.info(
        "Starting wolbot on %s://%s:%d (data: %s)",
        "https" if tls_kwargs else "http", config.host, config.port, config.data_file,
    )
    uvicorn.run("wolbot.server:app", host=config.host, port=config.port, reload=False, **tls_kwargs)


if __name__ == "__main__":
    main()
