"""Device registry — one persisted MAC/IP record per chat user.

The whole collection lives in a single JSON file (an array of objects with
``userId``, ``mac``, ``ip``, ``createdAt`` and ``updatedAt``).  It is loaded
once on first access; every mutation copies the collection, applies the
change, writes the full array atomically and only then publishes the new
copy.  A single lock serialises mutations; reads take no lock.

Usage::

    registry = DeviceRegistry("./data/data.json")
    registry.upsert_mac("U1234", "aa:bb:cc:dd:ee:ff")
    registry.set_ip("U1234", "192.168.1.20")
    record = registry.find("U1234")
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StorageIOError(Exception):
    """Raised when the registry file cannot be read, parsed or written."""


@dataclass(frozen=True)
class DeviceRecord:
    user_id: str
    mac: str | None
    ip: str | None
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "mac": self.mac,
            "ip": self.ip,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceRecord:
        # older data.json files store the addresses under "MAC" / "IP"
        return cls(
            user_id=data["userId"],
            mac=data["mac"] if "mac" in data else data.get("MAC"),
            ip=data["ip"] if "ip" in data else data.get("IP"),
            created_at=_parse_ts(data["createdAt"]),
            updated_at=_parse_ts(data["updatedAt"]),
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: str) -> datetime:
    # JavaScript-style ISO strings end in "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class DeviceRegistry:
    """File-backed store of :class:`DeviceRecord` objects keyed by user id.

    Args:
        path: Location of the JSON collection.  Parent directories are
              created on first write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._records: list[DeviceRecord] | None = None
        self._write_lock = threading.Lock()
        self._load_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def find(self, user_id: str) -> DeviceRecord | None:
        """Return the record for *user_id*, or ``None`` if unknown."""
        for record in self._snapshot():
            if record.user_id == user_id:
                return record
        return None

    def upsert_mac(self, user_id: str, mac: str) -> DeviceRecord:
        """Create or update the record for *user_id* with *mac*.

        An existing ``ip`` is preserved.  *mac* must already be normalised.
        """
        with self._write_lock:
            records = list(self._snapshot())
            now = _now()
            index = _index_of(records, user_id)
            if index is None:
                record = DeviceRecord(
                    user_id=user_id, mac=mac, ip=None, created_at=now, updated_at=now
                )
                records.append(record)
            else:
                current = records[index]
                record = replace(current, mac=mac, updated_at=max(now, current.updated_at))
                records[index] = record
            self._commit(records)
        logger.debug("upsert_mac user=%s mac=%s", user_id[:10], mac)
        return record

    def set_ip(self, user_id: str, ip: str) -> bool:
        """Set the IP for an existing record.

        Returns ``False`` (and changes nothing) when *user_id* has no record.
        """
        with self._write_lock:
            records = list(self._snapshot())
            index = _index_of(records, user_id)
            if index is None:
                return False
            current = records[index]
            records[index] = replace(
                current, ip=ip, updated_at=max(_now(), current.updated_at)
            )
            self._commit(records)
        logger.debug("set_ip user=%s ip=%s", user_id[:10], ip)
        return True

    def list_records(self) -> list[DeviceRecord]:
        """Return every record, in insertion order."""
        return list(self._snapshot())

    def __len__(self) -> int:
        return len(self._snapshot())

    # ------------------------------------------------------------------ #
    # Persistence                                                          #
    # ------------------------------------------------------------------ #

    def _snapshot(self) -> list[DeviceRecord]:
        records = self._records
        if records is None:
            with self._load_lock:
                if self._records is None:
                    self._records = self._read()
                records = self._records
        return records

    def _commit(self, records: list[DeviceRecord]) -> None:
        self._write(records)
        self._records = records

    def _read(self) -> list[DeviceRecord]:
        if not self.path.exists():
            logger.info("No registry at %s, initialising empty collection", self.path)
            self._write([])
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise StorageIOError(f"Cannot read {self.path}: {exc}") from exc
        except ValueError as exc:
            raise StorageIOError(f"Corrupt registry file {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise StorageIOError(f"Registry file {self.path} does not hold a list")
        try:
            return [DeviceRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageIOError(f"Malformed record in {self.path}: {exc}") from exc

    def _write(self, records: list[DeviceRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records], indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            logger.error("Failed to write registry %s: %s", self.path, exc)
            raise StorageIOError(f"Cannot write {self.path}: {exc}") from exc


def _index_of(records: list[DeviceRecord], user_id: str) -> int | None:
    for i, record in enumerate(records):
        if record.user_id == user_id:
            return i
    return None
