from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Set

from ..config import ServerConfig
from ..utils.time_utils import INT64_MAX, INT64_MIN

logger = logging.getLogger(__name__)


class DeviceNotFound(LookupError):
    def __init__(self, device_id: str):
        super().__init__(f"Device not found: {device_id}")
        self.device_id = device_id


class StoreUnavailable(RuntimeError):
    """Backing store I/O failed."""


@dataclass
class Device:
    device_id: str
    pings: Set[int] = field(default_factory=set)


def _check_timestamp(timestamp: int) -> int:
    ts = int(timestamp)
    if ts < INT64_MIN or ts > INT64_MAX:
        raise ValueError(f"Timestamp out of int64 range: {timestamp}")
    return ts


class PingStore(ABC):
    """Per-device sets of unix-second pings."""

    @abstractmethod
    def insert(self, device_id: str, timestamp: int) -> None:
        """Add `timestamp` to the device's set, creating the device if absent.

        Re-inserting a known timestamp is a no-op.
        """
        raise NotImplementedError

    @abstractmethod
    def all(self) -> List[Device]:
        """Snapshot of every device record at call time."""
        raise NotImplementedError

    @abstractmethod
    def by_id(self, device_id: str) -> Device:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class InMemoryPingStore(PingStore):
    """In-process store; the lock makes each set-add atomic per key."""

    def __init__(self):
        self._lock = threading.Lock()
        self._devices: Dict[str, Set[int]] = {}

    def insert(self, device_id: str, timestamp: int) -> None:
        ts = _check_timestamp(timestamp)
        with self._lock:
            self._devices.setdefault(device_id, set()).add(ts)

    def all(self) -> List[Device]:
        with self._lock:
            return [Device(device_id=k, pings=set(v)) for k, v in self._devices.items()]

    def by_id(self, device_id: str) -> Device:
        with self._lock:
            pings = self._devices.get(device_id)
            if pings is None:
                raise DeviceNotFound(device_id)
            return Device(device_id=device_id, pings=set(pings))

    def clear(self) -> None:
        with self._lock:
            self._devices.clear()


class SqlitePingStore(PingStore):
    """SQLite-backed store.

    Device ids are the primary key of `devices`; `UNIQUE(device_id, ts)` with
    INSERT OR IGNORE gives set semantics for pings.
    """

    _BUSY_TIMEOUT_MS = 5000

    def __init__(self, filename: Path | str | None = None):
        self._filename = str(filename) if filename is not None else ":memory:"
        if self._filename != ":memory:":
            Path(self._filename).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        logger.info("Opening SQLite ping store at %s", self._filename)
        try:
            self._connection = sqlite3.connect(self._filename, check_same_thread=False)
            self._connection.execute(f"PRAGMA busy_timeout={self._BUSY_TIMEOUT_MS}")
            self._initialize_schema()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open ping store {self._filename}: {e}") from e

    def _initialize_schema(self) -> None:
        with self._connection:
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS devices (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    device_id TEXT NOT NULL UNIQUE
                )
                """
            )
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS pings (
                    device_id TEXT NOT NULL,
                    ts INTEGER NOT NULL,
                    UNIQUE(device_id, ts)
                )
                """
            )

    def close(self) -> None:
        with self._lock:
            logger.info("Closing SQLite ping store at %s", self._filename)
            self._connection.close()

    def insert(self, device_id: str, timestamp: int) -> None:
        ts = _check_timestamp(timestamp)
        with self._lock:
            try:
                with self._connection:
                    self._connection.execute(
                        "INSERT OR IGNORE INTO devices (device_id) VALUES (?)", (device_id,)
                    )
                    self._connection.execute(
                        "INSERT OR IGNORE INTO pings (device_id, ts) VALUES (?, ?)",
                        (device_id, ts),
                    )
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Insert failed for device {device_id!r}: {e}") from e

    def all(self) -> List[Device]:
        with self._lock:
            try:
                ids = [row[0] for row in self._connection.execute(
                    "SELECT device_id FROM devices ORDER BY seq"
                )]
                devices = {device_id: Device(device_id=device_id) for device_id in ids}
                for device_id, ts in self._connection.execute("SELECT device_id, ts FROM pings"):
                    if device_id in devices:
                        devices[device_id].pings.add(ts)
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Scan failed: {e}") from e
        return list(devices.values())

    def by_id(self, device_id: str) -> Device:
        with self._lock:
            try:
                row = self._connection.execute(
                    "SELECT 1 FROM devices WHERE device_id = ?", (device_id,)
                ).fetchone()
                if row is None:
                    raise DeviceNotFound(device_id)
                pings = {
                    r[0]
                    for r in self._connection.execute(
                        "SELECT ts FROM pings WHERE device_id = ?", (device_id,)
                    )
                }
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Lookup failed for device {device_id!r}: {e}") from e
        return Device(device_id=device_id, pings=pings)

    def clear(self) -> None:
        with self._lock:
            try:
                with self._connection:
                    self._connection.execute("DELETE FROM pings")
                    self._connection.execute("DELETE FROM devices")
            except sqlite3.Error as e:
                raise StoreUnavailable(f"Clear failed: {e}") from e


def build_store(cfg: ServerConfig) -> PingStore:
    if cfg.store_backend == "memory":
        logger.info("Using in-memory ping store")
        return InMemoryPingStore()
    if cfg.store_backend == "sqlite":
        return SqlitePingStore(cfg.store_path or None)
    raise ValueError(f"Unknown store backend: {cfg.store_backend}")
