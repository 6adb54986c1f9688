from pydantic import BaseModel
from typing import Optional


class SessionPreferences(BaseModel):
    season: str
    formality: str


class SessionPreferencesIn(BaseModel):
    season: Optional[str] = None
    formality: Optional[str] = None


class DemoSessionOut(BaseModel):
    id: str
    started_at: str
    preferences: SessionPreferences
    synced: bool = False
