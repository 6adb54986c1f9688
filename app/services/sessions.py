"""Anonymous demo sessions: the id groups saved outfits, preferences seed season and formality."""
from __future__ import annotations

import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Optional, Protocol

from app.core.presets import DEFAULT_FORMALITY, current_season, resolve_formality, resolve_season
from app.schemas.sessions import DemoSessionOut, SessionPreferences, SessionPreferencesIn

logger = logging.getLogger("uvicorn.error")

_ALPHABET = string.ascii_lowercase + string.digits


class SessionStore(Protocol):
    async def get_session_preferences(self, session_id: str) -> Optional[dict]:
        ...

    async def upsert_session(self, session_id: str, started_at: Optional[datetime], preferences: dict) -> None:
        ...


def new_session_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    suffix = "".join(rng.choice(_ALPHABET) for _ in range(9))
    return f"demo_{int(time.time() * 1000)}_{suffix}"


def default_preferences() -> SessionPreferences:
    return SessionPreferences(season=current_season(), formality=DEFAULT_FORMALITY)


async def start_session(store: SessionStore) -> DemoSessionOut:
    started_at = datetime.now(timezone.utc)
    out = DemoSessionOut(id=new_session_id(), started_at=started_at.isoformat(), preferences=default_preferences())
    try:
        await store.upsert_session(out.id, started_at, out.preferences.model_dump())
        out.synced = True
    except Exception as e:
        logger.warning("sessions:sync failed id=%s reason=%s", out.id, e)
    return out


async def update_preferences(store: SessionStore, session_id: str, changes: SessionPreferencesIn) -> SessionPreferences:
    current = default_preferences().model_dump()
    try:
        current.update(await store.get_session_preferences(session_id) or {})
    except Exception as e:
        logger.warning("sessions:read failed id=%s reason=%s", session_id, e)
    if changes.season:
        current["season"] = resolve_season(changes.season)
    if changes.formality:
        current["formality"] = resolve_formality(changes.formality)
    prefs = SessionPreferences.model_validate(current)
    try:
        await store.upsert_session(session_id, None, prefs.model_dump())
    except Exception as e:
        logger.warning("sessions:sync failed id=%s reason=%s", session_id, e)
    return prefs
