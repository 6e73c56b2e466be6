"""Inbound text classification.

:func:`classify` turns free text into one of a closed set of command
variants.  Whole-word commands are matched case-insensitively on the
trimmed text first, then the ``#`` (MAC) and ``@`` (IP) prefixes.
Anything else is :class:`Ignored`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Command:
    """Base class for classified commands."""


@dataclass(frozen=True)
class RegisterMac(Command):
    token: str


@dataclass(frozen=True)
class RegisterIp(Command):
    token: str


@dataclass(frozen=True)
class PowerOn(Command):
    pass


@dataclass(frozen=True)
class Status(Command):
    pass


@dataclass(frozen=True)
class Help(Command):
    pass


@dataclass(frozen=True)
class Ignored(Command):
    pass


COMMAND_TYPES: tuple[type[Command], ...] = (
    RegisterMac,
    RegisterIp,
    PowerOn,
    Status,
    Help,
    Ignored,
)

_EXACT: dict[str, Command] = {
    "poweron": PowerOn(),
    "status": Status(),
    "help": Help(),
    "?": Help(),
}

MAC_PREFIX = "#"
IP_PREFIX = "@"


def classify(text: str) -> Command:
    """Return the command variant for *text*."""
    stripped = text.strip()
    exact = _EXACT.get(stripped.lower())
    if exact is not None:
        return exact
    if stripped.startswith(MAC_PREFIX):
        return RegisterMac(stripped[len(MAC_PREFIX):].strip())
    if stripped.startswith(IP_PREFIX):
        return RegisterIp(stripped[len(IP_PREFIX):].strip())
    return Ignored()
