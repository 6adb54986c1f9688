from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Optional, Tuple

DEFAULT_SEASON = "Spring"
DEFAULT_FORMALITY = "casual"


@dataclass(frozen=True)
class SeasonPreset:
    season: str
    recommended_colors: Tuple[str, ...]
    suggested_formality: str
    recommended_accessories: Tuple[str, ...]
    aesthetic: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class FormalityLevel:
    key: str
    label: str
    description: str
    examples: Tuple[str, ...]


SEASON_PRESETS: Dict[str, SeasonPreset] = {
    "Spring": SeasonPreset(
        season="Spring",
        recommended_colors=("pastel pink", "mint green", "lavender", "cream"),
        suggested_formality="casual",
        recommended_accessories=("sunglasses", "light scarf", "bracelet", "floral headband"),
        aesthetic=("floral", "airy", "layered", "fresh"),
        description="Light, pastel tones with breathable fabrics",
    ),
    "Summer": SeasonPreset(
        season="Summer",
        recommended_colors=("white", "bright yellow", "coral", "turquoise"),
        suggested_formality="casual",
        recommended_accessories=("sunglasses", "beach hat", "sandals", "minimalist jewelry"),
        aesthetic=("beachy", "bright", "minimalist", "breezy"),
        description="Bright, breathable fabrics and lightweight accessories",
    ),
    "Fall": SeasonPreset(
        season="Fall",
        recommended_colors=("rust", "olive", "burgundy", "mustard", "brown"),
        suggested_formality="casual",
        recommended_accessories=("scarf", "beanie", "crossbody bag", "ankle boots"),
        aesthetic=("earthy", "layered", "cozy", "vintage"),
        description="Earthy tones with layered pieces and warm accessories",
    ),
    "Winter": SeasonPreset(
        season="Winter",
        recommended_colors=("gray", "navy", "black", "burgundy", "forest green"),
        suggested_formality="casual",
        recommended_accessories=("scarf", "gloves", "beanie", "winter boots"),
        aesthetic=("cozy", "layered", "thermal", "minimalist"),
        description="Warm, muted colors with thermal layers and protective accessories",
    ),
}

FORMALITY_LEVELS: Dict[str, FormalityLevel] = {
    "casual": FormalityLevel(
        key="casual",
        label="Casual",
        description="Jeans, sneakers, t-shirts, hoodies",
        examples=("streetwear", "athleisure", "everyday"),
    ),
    "semi-formal": FormalityLevel(
        key="semi-formal",
        label="Semi-Formal",
        description="Skirts, blouses, dress pants, loafers",
        examples=("smart casual", "date night", "brunch"),
    ),
    "business-casual": FormalityLevel(
        key="business-casual",
        label="Business Casual",
        description="Slacks, button-ups, blazers, dress shoes",
        examples=("office wear", "professional", "meetings"),
    ),
    "sports": FormalityLevel(
        key="sports",
        label="Sports/Active",
        description="Activewear, athletic shoes, performance fabrics",
        examples=("gym", "running", "yoga", "outdoor activities"),
    ),
}


def resolve_season(name: Optional[str]) -> str:
    """Canonical season name for ``name``; unknown or empty names map to the default season."""
    if name:
        for key in SEASON_PRESETS:
            if key.lower() == name.strip().lower():
                return key
    return DEFAULT_SEASON


def resolve_formality(key: Optional[str]) -> str:
    k = (key or "").strip().lower()
    return k if k in FORMALITY_LEVELS else DEFAULT_FORMALITY


def get_season_preset(name: Optional[str]) -> SeasonPreset:
    return SEASON_PRESETS[resolve_season(name)]


def current_season(today: Optional[date] = None) -> str:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "Spring"
    if 6 <= month <= 8:
        return "Summer"
    if 9 <= month <= 11:
        return "Fall"
    return "Winter"


def combined_preset(season: Optional[str], formality: Optional[str] = DEFAULT_FORMALITY) -> Dict[str, Any]:
    """Season preset merged with the formality level's label, description and examples."""
    data = asdict(get_season_preset(season))
    level = FORMALITY_LEVELS[resolve_formality(formality)]
    data.update(
        {
            "formality": level.label,
            "formality_description": level.description,
            "formality_examples": list(level.examples),
        }
    )
    return data
