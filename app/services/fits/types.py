from dataclasses import dataclass
from typing import Optional

from app.core.presets import DEFAULT_FORMALITY, DEFAULT_SEASON

LOCAL_ID_PREFIX = "local_"


@dataclass(frozen=True)
class SessionContext:
    session_id: str
    season: str = DEFAULT_SEASON
    formality: str = DEFAULT_FORMALITY


@dataclass(frozen=True)
class ImageFile:
    filename: str
    content_type: Optional[str]
    data: bytes


def is_local_id(fit_id: str) -> bool:
    return fit_id.startswith(LOCAL_ID_PREFIX)
