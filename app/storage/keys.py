import re
import time
from typing import Optional

_UNSAFE = re.compile(r"[^a-zA-Z0-9.-]")


def safe_filename(name: str) -> str:
    return _UNSAFE.sub("_", name or "") or "image"


def fit_image_key(session_id: str, category: str, filename: str, ts_ms: Optional[int] = None) -> str:
    ts = ts_ms if ts_ms is not None else int(time.time() * 1000)
    return f"{session_id}/originals/{category}_{ts}_{safe_filename(filename)}"
