"""Command outcomes handed to the presentation layer.

Every call to :meth:`wolbot.router.CommandRouter.handle` ends in exactly
one of these.  :class:`Ignored` means "send no reply".
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Outcome:
    """Base class for router outcomes."""


@dataclass(frozen=True)
class InvalidMac(Outcome):
    token: str


@dataclass(frozen=True)
class InvalidIp(Outcome):
    token: str


@dataclass(frozen=True)
class NotRegistered(Outcome):
    """No device record.  *command* names what was refused (``"ip"``, ``"poweron"``, ``"status"``)."""
    command: str = ""


@dataclass(frozen=True)
class IpNotRegistered(Outcome):
    pass


@dataclass(frozen=True)
class MacRegistered(Outcome):
    mac: str


@dataclass(frozen=True)
class IpRegistered(Outcome):
    ip: str


@dataclass(frozen=True)
class PowerOnResult(Outcome):
    """``success`` means the magic packet was sent, not that the machine is on."""
    success: bool


@dataclass(frozen=True)
class StatusResult(Outcome):
    alive: bool
    latency_ms: float | None
    mac: str | None
    ip: str


@dataclass(frozen=True)
class HelpRequested(Outcome):
    pass


@dataclass(frozen=True)
class Ignored(Outcome):
    pass


@dataclass(frozen=True)
class CommandFailed(Outcome):
    """Generic failure (storage error, deadline expiry)."""
    reason: str = "error"
