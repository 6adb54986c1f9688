from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.db import get_sessionmaker
from app.models.models import DemoSession, Outfit as OutfitModel
from app.schemas.fits import OutfitRecord
from app.services.fits.errors import TierUnavailable


def _to_record(row: OutfitModel) -> OutfitRecord:
    return OutfitRecord(
        id=str(row.id),
        session_id=row.session_id,
        top_url=row.top_url,
        top_layer_url=row.top_layer_url,
        bottom_url=row.bottom_url,
        shoes_url=row.shoes_url,
        accessories_url=row.accessories_url,
        ai_description=row.ai_description,
        ai_image_url=row.ai_image_url,
        season=row.season,
        formality=row.formality,
        aesthetic=row.aesthetic or [],
        colors=row.colors or {},
        accessories_description=row.accessories_description,
        accessories_tags=row.accessories_tags or [],
        saved=bool(row.saved),
        created_at=row.created_at,
        confidence=row.confidence,
    )


class OutfitStore:
    """Direct table access for saved outfits and demo sessions."""

    def __init__(self, sessions: Optional[Callable[[], async_sessionmaker[AsyncSession]]] = get_sessionmaker, enabled: bool = True):
        self._sessions = sessions
        self.enabled = enabled and sessions is not None

    def _session(self) -> AsyncSession:
        if not self.enabled:
            raise TierUnavailable("store not configured")
        return self._sessions()()

    async def insert(self, record: OutfitRecord) -> OutfitRecord:
        async with self._session() as session:
            row = OutfitModel(
                session_id=record.session_id,
                top_url=record.top_url,
                top_layer_url=record.top_layer_url,
                bottom_url=record.bottom_url,
                shoes_url=record.shoes_url,
                accessories_url=record.accessories_url,
                ai_description=record.ai_description,
                ai_image_url=record.ai_image_url,
                season=record.season,
                formality=record.formality,
                aesthetic=list(record.aesthetic),
                colors=dict(record.colors),
                accessories_description=record.accessories_description,
                accessories_tags=list(record.accessories_tags),
                saved=True,
                confidence=record.confidence,
            )
            if record.created_at:
                row.created_at = record.created_at
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def list_for_session(self, session_id: str) -> List[OutfitRecord]:
        async with self._session() as session:
            res = await session.execute(
                select(OutfitModel)
                .where(OutfitModel.session_id == session_id, OutfitModel.saved.is_(True))
                .order_by(OutfitModel.created_at.desc())
            )
            return [_to_record(r) for r in res.scalars().all()]

    async def delete(self, fit_id: str) -> bool:
        try:
            key = uuid.UUID(fit_id)
        except ValueError as e:
            raise TierUnavailable(f"not a stored outfit id: {fit_id}") from e
        async with self._session() as session:
            res = await session.execute(delete(OutfitModel).where(OutfitModel.id == key))
            await session.commit()
        return (res.rowcount or 0) > 0

    async def get_session_preferences(self, session_id: str) -> Optional[Dict[str, Any]]:
        async with self._session() as session:
            row = await session.get(DemoSession, session_id)
            return dict(row.preferences or {}) if row else None

    async def upsert_session(self, session_id: str, started_at: Optional[datetime], preferences: Dict[str, Any]) -> None:
        async with self._session() as session:
            row = await session.get(DemoSession, session_id)
            if row is None:
                row = DemoSession(id=session_id, preferences=preferences)
                if started_at:
                    row.started_at = started_at
                session.add(row)
            else:
                row.preferences = preferences
            await session.commit()


_store: OutfitStore | None = None


def get_outfit_store() -> OutfitStore:
    global _store
    if _store is None:
        _store = OutfitStore(enabled=bool(settings.DATABASE_URL))
    return _store
