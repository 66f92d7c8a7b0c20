"""File-backed and in-memory implementations of the durable state ports.

File writes go to a sibling temp file first and are swapped in with
``os.replace``, so a crash mid-write leaves the previous snapshot intact.
Blocking I/O runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import copy
import os
from pathlib import Path
from typing import Any

import orjson

from lingorelay.domain.exceptions import CorruptStateError, PersistenceError
from lingorelay.ports.outbound import BroadcastStateRepository, QuotaSnapshotRepository


def _atomic_write(path: Path, payload: bytes) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "wb") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except OSError as exc:
        raise PersistenceError(f"cannot write {path}: {exc}") from exc


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise PersistenceError(f"cannot read {path}: {exc}") from exc


# ═══════════════════════════════════════════════════════════════
#  Quota snapshot
# ═══════════════════════════════════════════════════════════════
class JsonQuotaSnapshotRepository(QuotaSnapshotRepository):
    """Quota snapshot stored as a pretty-printed JSON object."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> dict[str, Any] | None:
        raw = await asyncio.to_thread(_read_bytes, self._path)
        if raw is None:
            return None
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CorruptStateError(f"cannot decode {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CorruptStateError(f"{self._path} does not hold an object")
        return data

    async def save(self, snapshot: dict[str, Any]) -> None:
        payload = orjson.dumps(snapshot, option=orjson.OPT_INDENT_2)
        await asyncio.to_thread(_atomic_write, self._path, payload)


class InMemoryQuotaSnapshotRepository(QuotaSnapshotRepository):
    """Non-durable snapshot holder, used when persistence is switched off."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data = copy.deepcopy(initial)
        self.saves = 0

    async def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._data)

    async def save(self, snapshot: dict[str, Any]) -> None:
        self._data = copy.deepcopy(snapshot)
        self.saves += 1


# ═══════════════════════════════════════════════════════════════
#  Last broadcast
# ═══════════════════════════════════════════════════════════════
class TextBroadcastStateRepository(BroadcastStateRepository):
    """Last broadcast text stored as a UTF-8 text file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> str | None:
        raw = await asyncio.to_thread(_read_bytes, self._path)
        if raw is None:
            return None
        return raw.decode("utf-8", errors="replace")

    async def save(self, text: str) -> None:
        await asyncio.to_thread(_atomic_write, self._path, text.encode("utf-8"))


class InMemoryBroadcastStateRepository(BroadcastStateRepository):
    def __init__(self, initial: str | None = None) -> None:
        self._text = initial

    async def load(self) -> str | None:
        return self._text

    async def save(self, text: str) -> None:
        self._text = text
