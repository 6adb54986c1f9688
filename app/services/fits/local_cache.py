from __future__ import annotations

import asyncio
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError
from redis.asyncio import Redis

from app.core.cache import get_redis
from app.schemas.fits import OutfitRecord
from app.services.fits.types import LOCAL_ID_PREFIX

logger = logging.getLogger("uvicorn.error")


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class FitCacheBackend(Protocol):
    async def read(self) -> List[Dict[str, Any]]:
        ...

    async def write(self, rows: List[Dict[str, Any]]) -> None:
        ...


class InMemoryBackend:
    def __init__(self) -> None:
        self._rows: List[Dict[str, Any]] = []

    async def read(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._rows]

    async def write(self, rows: List[Dict[str, Any]]) -> None:
        self._rows = [dict(r) for r in rows]


class JsonFileBackend:
    """Whole-list JSON file; writes go through a temp file and an atomic rename.

    A file that does not hold a JSON list is renamed to ``<name>.corrupt-<ms>``
    before it is treated as empty, so the next write never replaces rows that
    could not be read.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _quarantine(self, reason: Any) -> None:
        target = self.path.with_name(f"{self.path.name}.corrupt-{int(time.time() * 1000)}")
        try:
            os.replace(self.path, target)
        except FileNotFoundError:
            # another reader already moved it
            return
        logger.error("fits:local-cache unreadable path=%s moved_to=%s reason=%s", self.path, target, reason)

    def _read(self) -> List[Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._quarantine(e)
            return []
        if not isinstance(data, list):
            self._quarantine(f"expected list, got {type(data).__name__}")
            return []
        return data

    def _write(self, rows: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(json.dumps(rows), encoding="utf-8")
        os.replace(tmp, self.path)

    async def read(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    async def write(self, rows: List[Dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write, rows)


class RedisBackend:
    """Whole list stored as one JSON string under ``key``; unreadable values are renamed aside."""

    def __init__(self, key: str, client: Optional[Redis] = None) -> None:
        self.key = key
        self._client = client

    @property
    def client(self) -> Redis:
        return self._client if self._client is not None else get_redis()

    async def read(self) -> List[Dict[str, Any]]:
        val = await self.client.get(self.key)
        if not val:
            return []
        try:
            data = json.loads(val)
        except json.JSONDecodeError as e:
            await self._quarantine(e)
            return []
        if not isinstance(data, list):
            await self._quarantine(f"expected list, got {type(data).__name__}")
            return []
        return data

    async def _quarantine(self, reason: Any) -> None:
        target = f"{self.key}:corrupt-{int(time.time() * 1000)}"
        await self.client.rename(self.key, target)
        logger.error("fits:local-cache unreadable key=%s moved_to=%s reason=%s", self.key, target, reason)

    async def write(self, rows: List[Dict[str, Any]]) -> None:
        await self.client.set(self.key, json.dumps(rows))


class LocalFitCache:
    """Saved fits that never reached the backend.

    Mutations hold a lock across read-modify-write so concurrent saves and
    deletes in this process never overwrite each other. Each mutation runs
    shielded: a caller that is cancelled stops waiting, but the write still
    finishes before the lock is released.
    """

    def __init__(self, backend: FitCacheBackend) -> None:
        self.backend = backend
        self._lock = asyncio.Lock()

    async def _append(self, row: Dict[str, Any]) -> None:
        async with self._lock:
            rows = await self.backend.read()
            rows.append(row)
            await self.backend.write(rows)

    async def append(self, record: OutfitRecord) -> OutfitRecord:
        await asyncio.shield(self._append(record.model_dump(mode="json")))
        return record

    async def scan(self, session_id: str) -> List[OutfitRecord]:
        out: List[OutfitRecord] = []
        for row in await self.backend.read():
            if not isinstance(row, dict) or row.get("session_id") != session_id:
                continue
            try:
                out.append(OutfitRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("fits:local-cache skip row id=%s reason=%s", row.get("id"), e)
        return out

    async def _remove(self, fit_id: str) -> bool:
        async with self._lock:
            rows = await self.backend.read()
            kept = [r for r in rows if not (isinstance(r, dict) and r.get("id") == fit_id)]
            if len(kept) == len(rows):
                return False
            await self.backend.write(kept)
        return True

    async def remove(self, fit_id: str) -> bool:
        return await asyncio.shield(self._remove(fit_id))


def build_backend(kind: str, path: str, key: str) -> FitCacheBackend:
    kind = (kind or "file").lower()
    if kind == "redis":
        return RedisBackend(key)
    if kind == "memory":
        return InMemoryBackend()
    return JsonFileBackend(path)
