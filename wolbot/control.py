"""Device control — Wake-on-LAN magic packets and ping liveness probes.

Neither operation raises: transmission failures, unreachable hosts and
timeouts all degrade to a negative result and a log line.  A successful
:meth:`DeviceController.wake` only means the packet left this host; the
target's power state is only observable later through :meth:`probe`.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import re
import time
from dataclasses import dataclass

from wakeonlan import send_magic_packet

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST = "255.255.255.255"
DEFAULT_WOL_PORT = 9
DEFAULT_PING_TIMEOUT = 5.0

# "time=0.045 ms" (Linux/macOS) or "time<1ms" / "time=12ms" (Windows)
_LATENCY_RE = re.compile(r"time[=<]\s*(?P<ms>\d+(?:\.\d+)?)\s*ms", re.IGNORECASE)


@dataclass(frozen=True)
class ProbeResult:
    alive: bool
    latency_ms: float | None = None


class DeviceController:
    """Sends wake packets and liveness probes.

    Args:
        broadcast: Destination address for magic packets.
        port:      UDP port for magic packets.
        ping_timeout: Default probe timeout in seconds.
    """

    def __init__(
        self,
        broadcast: str = DEFAULT_BROADCAST,
        port: int = DEFAULT_WOL_PORT,
        ping_timeout: float = DEFAULT_PING_TIMEOUT,
    ) -> None:
        self.broadcast = broadcast
        self.port = port
        self.ping_timeout = ping_timeout

    # ------------------------------------------------------------------ #
    # Wake                                                                 #
    # ------------------------------------------------------------------ #

    def wake(self, mac: str) -> bool:
        """Broadcast a magic packet for *mac*.

        Returns ``True`` once the packet has been handed to the network
        stack, ``False`` if sending failed.
        """
        logger.info("Sending WOL magic packet to %s via %s:%d", mac, self.broadcast, self.port)
        try:
            send_magic_packet(mac, ip_address=self.broadcast, port=self.port)
        except (OSError, ValueError) as exc:
            logger.warning("WOL to %s failed: %s", mac, exc)
            return False
        return True

    # ------------------------------------------------------------------ #
    # Probe                                                                #
    # ------------------------------------------------------------------ #

    async def probe(self, host: str, timeout: float | None = None) -> ProbeResult:
        """Send one ICMP echo to *host* using the system ``ping`` binary.

        Args:
            host:    IPv4 address or hostname.
            timeout: Seconds to wait for a reply (default: ``ping_timeout``).
        """
        if timeout is None:
            timeout = self.ping_timeout
        cmd = _ping_command(host, timeout)
        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.error("Cannot run ping for %s: %s", host, exc)
            return ProbeResult(alive=False)

        try:
            # ping enforces its own timeout; the extra second covers process start-up
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout + 1)
        except asyncio.TimeoutError:
            logger.info("Ping to %s timed out after %.1fs", host, timeout)
            _kill(process)
            await process.wait()
            return ProbeResult(alive=False)
        except asyncio.CancelledError:
            _kill(process)
            raise

        if process.returncode != 0:
            logger.debug("Ping to %s failed (exit %s)", host, process.returncode)
            return ProbeResult(alive=False)

        latency = _parse_latency(stdout.decode(errors="replace"))
        if latency is None:
            latency = round((time.monotonic() - started) * 1000, 3)
        logger.debug("Ping to %s OK: %.3f ms", host, latency)
        return ProbeResult(alive=True, latency_ms=latency)


def _ping_command(host: str, timeout: float) -> list[str]:
    system = platform.system().lower()
    if system == "windows":
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), host]
    if system == "darwin":
        # macOS -W is milliseconds
        return ["ping", "-c", "1", "-W", str(int(timeout * 1000)), host]
    return ["ping", "-c", "1", "-W", str(max(1, int(round(timeout)))), host]


def _parse_latency(output: str) -> float | None:
    match = _LATENCY_RE.search(output)
    if match is None:
        return None
    return float(match.group("ms"))


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass
