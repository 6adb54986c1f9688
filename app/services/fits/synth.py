"""Synthetic outfit analysis used when no analysis backend is reachable.

The output has the same shape as the remote analyze function's response, built
from the season presets and a random pick among plausible garment descriptions.
Nothing here touches the network and nothing here raises.
"""
from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from app.core.presets import get_season_preset, resolve_formality
from app.schemas.fits import FitAnalysis, FitImages
from app.services.fits.types import SessionContext

GARMENT_CANDIDATES: Dict[str, Dict[str, tuple[str, ...]]] = {
    "top": {
        "Spring": ("floral blouse", "light cardigan", "pastel sweater", "cotton tee"),
        "Summer": ("white tank top", "crop top", "linen shirt", "bright tee"),
        "Fall": ("rust sweater", "olive button-up", "denim jacket", "cozy hoodie"),
        "Winter": ("chunky knit sweater", "thermal top", "turtleneck", "fleece pullover"),
    },
    "topLayer": {
        "Spring": ("light denim jacket", "bomber jacket", "cardigan"),
        "Summer": ("kimono", "sheer cover-up", "vest"),
        "Fall": ("leather jacket", "oversized blazer", "wool coat"),
        "Winter": ("puffer jacket", "parka", "peacoat", "trench coat"),
    },
    "bottom": {
        "Spring": ("light wash jeans", "floral skirt", "khaki pants", "midi skirt"),
        "Summer": ("denim shorts", "white pants", "flowy skirt", "linen trousers"),
        "Fall": ("dark jeans", "corduroy pants", "plaid skirt", "cargo pants"),
        "Winter": ("black jeans", "wool trousers", "fleece-lined leggings", "thermal pants"),
    },
    "shoes": {
        "Spring": ("white sneakers", "canvas shoes", "loafers", "sandals"),
        "Summer": ("slides", "espadrilles", "sandals", "white sneakers"),
        "Fall": ("ankle boots", "combat boots", "sneakers", "oxfords"),
        "Winter": ("winter boots", "Chelsea boots", "insulated sneakers", "hiking boots"),
    },
}

FORMALITY_AESTHETICS: Dict[str, tuple[str, ...]] = {
    "casual": ("streetwear", "Y2K", "casual", "everyday", "relaxed"),
    "semi-formal": ("smart casual", "chic", "polished", "refined"),
    "business-casual": ("professional", "corporate", "minimalist", "classic"),
    "sports": ("athletic", "sporty", "performance", "active"),
}

# palette index per garment slot
SLOT_PALETTE_INDEX = {"top": 0, "topLayer": 1, "bottom": 2, "shoes": 3}
FALLBACK_COLOR = "neutral"
ACCESSORIES_COLOR = "mixed metals"
SYNTHETIC_CONFIDENCE = 0.85

PREVIEW_IMAGE_URL = (
    "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='400' height='600' "
    "viewBox='0 0 400 600'%3E%3Crect fill='%23334155' width='400' height='600'/%3E"
    "%3Ctext x='50%25' y='45%25' font-family='Arial, sans-serif' font-size='24' fill='%238B5CF6' "
    "text-anchor='middle' dominant-baseline='middle'%3EAI Generated%3C/text%3E"
    "%3Ctext x='50%25' y='55%25' font-family='Arial, sans-serif' font-size='18' fill='%2394A3B8' "
    "text-anchor='middle' dominant-baseline='middle'%3EOutfit Preview%3C/text%3E%3C/svg%3E"
)

_default_rng = random.Random()


def describe_fit(garments: Dict[str, Optional[str]], accessories: Sequence[str]) -> str:
    parts: List[str] = []
    if garments.get("top"):
        parts.append(garments["top"])
    if garments.get("topLayer"):
        parts.append(f"with {garments['topLayer']}")
    if garments.get("bottom"):
        parts.append(garments["bottom"])
    if garments.get("shoes"):
        parts.append(garments["shoes"])
    if accessories:
        parts.append(f"accessorized with {', '.join(accessories)}")
    return ", ".join(parts)


def synthesize_analysis(
    ctx: SessionContext,
    images: FitImages,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> FitAnalysis:
    rng = rng or _default_rng
    preset = get_season_preset(ctx.season)
    formality = resolve_formality(ctx.formality)

    garments: Dict[str, Optional[str]] = {}
    for slot in ("top", "topLayer", "bottom", "shoes"):
        garments[slot] = rng.choice(GARMENT_CANDIDATES[slot][preset.season]) if images.url_for(slot) else None

    accessories = list(preset.recommended_accessories[:2]) if images.url_for("accessories") else []

    aesthetic = list(preset.aesthetic[:2])
    aesthetic.append(rng.choice(FORMALITY_AESTHETICS[formality]))

    palette = preset.recommended_colors
    colors: Dict[str, str] = {}
    for slot, idx in SLOT_PALETTE_INDEX.items():
        if garments[slot]:
            colors[slot] = palette[idx] if idx < len(palette) else FALLBACK_COLOR
    if accessories:
        colors["accessories"] = ACCESSORIES_COLOR

    return FitAnalysis(
        session_id=ctx.session_id,
        top_url=images.top_url,
        top_layer_url=images.top_layer_url,
        bottom_url=images.bottom_url,
        shoes_url=images.shoes_url,
        accessories_url=images.accessories_url,
        top=garments["top"],
        top_layer=garments["topLayer"],
        bottom=garments["bottom"],
        shoes=garments["shoes"],
        accessories=accessories,
        aesthetic=aesthetic,
        colors=colors,
        ai_description=describe_fit(garments, accessories),
        accessories_description=f"Accessorized with {' and '.join(accessories)}" if accessories else None,
        accessories_tags=list(accessories),
        ai_image_url=PREVIEW_IMAGE_URL,
        season=preset.season,
        formality=formality,
        confidence=SYNTHETIC_CONFIDENCE,
        timestamp=now or datetime.now(timezone.utc),
    )
