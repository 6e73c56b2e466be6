"""Command router — the per-user registration state machine.

A user's state is derived from their :class:`~wolbot.registry.DeviceRecord`:

  * Unregistered — no record
  * MacOnly      — record without an IP
  * Provisioned  — record with MAC and IP

``#<mac>`` works in every state, ``@<ip>`` needs a record, ``poweron``
needs a record and ``status`` needs an IP.  Registry and network calls run
in worker threads so the event loop stays free while the registry write
lock is held.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from wolbot import commands as cmd
from wolbot import outcomes as out
from wolbot.control import DeviceController
from wolbot.registry import DeviceRegistry, StorageIOError
from wolbot.validation import normalize_mac, validate_ipv4, validate_mac

logger = logging.getLogger(__name__)

Handler = Callable[[str, Any], Awaitable[out.Outcome]]

# Registry writes cannot be cancelled mid-flight, so these run to completion
# even past the deadline and report what was actually stored.
_UNBOUNDED = (cmd.RegisterMac, cmd.RegisterIp)


def _short(user_id: str) -> str:
    return f"{user_id[:10]}..."


class CommandRouter:
    """Classifies inbound text and dispatches it against the registry.

    Args:
        registry:     Persistent device store.
        controller:   Wake / probe adapter.
        probe_timeout: Per-probe timeout in seconds (default: the
                       controller's own ``ping_timeout``).
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        controller: DeviceController,
        probe_timeout: float | None = None,
    ) -> None:
        self.registry = registry
        self.controller = controller
        self.probe_timeout = probe_timeout
        self._handlers: dict[type[cmd.Command], Handler] = {
            cmd.RegisterMac: self._register_mac,
            cmd.RegisterIp: self._register_ip,
            cmd.PowerOn: self._power_on,
            cmd.Status: self._status,
            cmd.Help: self._help,
            cmd.Ignored: self._ignored,
        }

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    async def handle(
        self,
        user_id: str,
        text: str,
        deadline: float | None = None,
    ) -> out.Outcome:
        """Classify *text* from *user_id* and return its outcome.

        Args:
            deadline: Optional overall limit in seconds.  On expiry power-on
                      and status report failure.  Registrations are not
                      bounded by it.
        """
        command = cmd.classify(text)
        if not isinstance(command, cmd.Ignored):
            logger.info("Received %s from user %s", type(command).__name__, _short(user_id))
        if deadline is None or isinstance(command, _UNBOUNDED):
            return await self.dispatch(user_id, command)
        try:
            return await asyncio.wait_for(self.dispatch(user_id, command), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(
                "%s for user %s exceeded %.1fs deadline",
                type(command).__name__, _short(user_id), deadline,
            )
            return await self._expired(user_id, command)

    async def dispatch(self, user_id: str, command: cmd.Command) -> out.Outcome:
        """Run the handler for *command*.

        Storage failures are logged and turned into
        :class:`~wolbot.outcomes.CommandFailed`.
        """
        handler = self._handlers[type(command)]
        try:
            return await handler(user_id, command)
        except StorageIOError:
            logger.exception("Registry failure while handling %s", type(command).__name__)
            return out.CommandFailed("storage")

    # ------------------------------------------------------------------ #
    # Handlers                                                             #
    # ------------------------------------------------------------------ #

    async def _register_mac(self, user_id: str, command: cmd.RegisterMac) -> out.Outcome:
        if not validate_mac(command.token):
            return out.InvalidMac(command.token)
        mac = normalize_mac(command.token)
        await asyncio.to_thread(self.registry.upsert_mac, user_id, mac)
        logger.info("User %s registered MAC: %s", _short(user_id), mac)
        return out.MacRegistered(mac)

    async def _register_ip(self, user_id: str, command: cmd.RegisterIp) -> out.Outcome:
        if not validate_ipv4(command.token):
            return out.InvalidIp(command.token)
        updated = await asyncio.to_thread(self.registry.set_ip, user_id, command.token)
        if not updated:
            return out.NotRegistered("ip")
        logger.info("User %s registered IP: %s", _short(user_id), command.token)
        return out.IpRegistered(command.token)

    async def _power_on(self, user_id: str, command: cmd.PowerOn) -> out.Outcome:
        record = await asyncio.to_thread(self.registry.find, user_id)
        if record is None or record.mac is None:
            return out.NotRegistered("poweron")
        success = await asyncio.to_thread(self.controller.wake, record.mac)
        return out.PowerOnResult(success)

    async def _status(self, user_id: str, command: cmd.Status) -> out.Outcome:
        record = await asyncio.to_thread(self.registry.find, user_id)
        if record is None:
            return out.NotRegistered("status")
        if not record.ip:
            return out.IpNotRegistered()
        logger.info("Pinging IP: %s", record.ip)
        result = await self.controller.probe(record.ip, self.probe_timeout)
        return out.StatusResult(
            alive=result.alive,
            latency_ms=result.latency_ms if result.alive else None,
            mac=record.mac,
            ip=record.ip,
        )

    async def _help(self, user_id: str, command: cmd.Help) -> out.Outcome:
        return out.HelpRequested()

    async def _ignored(self, user_id: str, command: cmd.Ignored) -> out.Outcome:
        return out.Ignored()

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    async def _expired(self, user_id: str, command: cmd.Command) -> out.Outcome:
        if isinstance(command, cmd.PowerOn):
            return out.PowerOnResult(success=False)
        if isinstance(command, cmd.Status):
            try:
                record = await asyncio.to_thread(self.registry.find, user_id)
            except StorageIOError:
                logger.exception("Registry failure after status deadline")
                return out.CommandFailed("storage")
            if record is not None and record.ip:
                return out.StatusResult(alive=False, latency_ms=None, mac=record.mac, ip=record.ip)
        return out.CommandFailed("timeout")
