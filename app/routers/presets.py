from dataclasses import asdict

from fastapi import APIRouter

from app.core.presets import FORMALITY_LEVELS, SEASON_PRESETS, combined_preset, current_season

router = APIRouter(prefix="/presets", tags=["presets"])


@router.get("/seasons")
async def list_seasons():
    return [asdict(p) for p in SEASON_PRESETS.values()]


@router.get("/formality")
async def list_formality_levels():
    return [asdict(level) for level in FORMALITY_LEVELS.values()]


@router.get("/current-season")
async def read_current_season():
    return {"season": current_season()}


@router.get("/{season}")
async def read_preset(season: str, formality: str = "casual"):
    return combined_preset(season, formality)
