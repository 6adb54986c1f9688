from fastapi import APIRouter, Depends

from app.gateway.store import OutfitStore, get_outfit_store
from app.schemas.sessions import DemoSessionOut, SessionPreferences, SessionPreferencesIn
from app.services import sessions as session_service

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=DemoSessionOut)
async def create_session(store: OutfitStore = Depends(get_outfit_store)):
    return await session_service.start_session(store)


@router.patch("/{session_id}/preferences", response_model=SessionPreferences)
async def patch_preferences(
    session_id: str,
    body: SessionPreferencesIn,
    store: OutfitStore = Depends(get_outfit_store),
):
    return await session_service.update_preferences(store, session_id, body)
