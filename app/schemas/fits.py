from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Literal, Optional

Slot = Literal["top", "topLayer", "bottom", "shoes", "accessories"]

# slot order matters: descriptions and colors are composed in this order
SLOTS: tuple[str, ...] = ("top", "topLayer", "bottom", "shoes", "accessories")
SLOT_URL_FIELDS: Dict[str, str] = {
    "top": "top_url",
    "topLayer": "top_layer_url",
    "bottom": "bottom_url",
    "shoes": "shoes_url",
    "accessories": "accessories_url",
}


def _drop_empty_colors(v: Any) -> Dict[str, str]:
    if not v:
        return {}
    return {str(k): str(c) for k, c in dict(v).items() if c}


class FitImages(BaseModel):
    top_url: Optional[str] = None
    top_layer_url: Optional[str] = None
    bottom_url: Optional[str] = None
    shoes_url: Optional[str] = None
    accessories_url: Optional[str] = None

    def url_for(self, slot: str) -> Optional[str]:
        return getattr(self, SLOT_URL_FIELDS[slot]) or None

    def populated_slots(self) -> List[str]:
        return [s for s in SLOTS if self.url_for(s)]


class AnalyzeFitIn(FitImages):
    session_id: str
    season: Optional[str] = None
    formality: Optional[str] = None


class OutfitRecord(FitImages):
    id: Optional[str] = None
    session_id: str
    ai_description: Optional[str] = None
    ai_image_url: Optional[str] = None
    season: Optional[str] = None
    formality: Optional[str] = None
    aesthetic: List[str] = Field(default_factory=list)
    colors: Dict[str, str] = Field(default_factory=dict)
    accessories_description: Optional[str] = None
    accessories_tags: List[str] = Field(default_factory=list)
    saved: bool = False
    created_at: Optional[datetime] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)

    @field_validator("colors", mode="before")
    @classmethod
    def drop_empty_colors(cls, v: Any) -> Dict[str, str]:
        return _drop_empty_colors(v)

    @field_validator("aesthetic", "accessories_tags", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v or []


class FitAnalysis(FitImages):
    """Flat analysis payload returned by the analyze function, also the transient (unsaved) fit."""

    model_config = ConfigDict(populate_by_name=True)
    session_id: Optional[str] = None
    top: Optional[str] = None
    top_layer: Optional[str] = Field(None, alias="topLayer")
    bottom: Optional[str] = None
    shoes: Optional[str] = None
    accessories: List[str] = Field(default_factory=list)
    aesthetic: List[str] = Field(default_factory=list)
    colors: Dict[str, str] = Field(default_factory=dict)
    ai_description: Optional[str] = None
    accessories_description: Optional[str] = None
    accessories_tags: List[str] = Field(default_factory=list)
    ai_image_url: Optional[str] = None
    season: Optional[str] = None
    formality: Optional[str] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    timestamp: Optional[datetime] = None
    saved: bool = False

    @field_validator("colors", mode="before")
    @classmethod
    def drop_empty_colors(cls, v: Any) -> Dict[str, str]:
        return _drop_empty_colors(v)

    @field_validator("accessories", "aesthetic", "accessories_tags", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v or []

    def has_description(self) -> bool:
        return any([self.top, self.top_layer, self.bottom, self.shoes, self.ai_description])

    def to_record(self) -> OutfitRecord:
        return OutfitRecord(
            session_id=self.session_id or "",
            top_url=self.top_url,
            top_layer_url=self.top_layer_url,
            bottom_url=self.bottom_url,
            shoes_url=self.shoes_url,
            accessories_url=self.accessories_url,
            ai_description=self.ai_description,
            ai_image_url=self.ai_image_url,
            season=self.season,
            formality=self.formality,
            aesthetic=list(self.aesthetic),
            colors=dict(self.colors),
            accessories_description=self.accessories_description,
            accessories_tags=list(self.accessories_tags),
            saved=False,
            created_at=self.timestamp,
            confidence=self.confidence,
        )


class UploadOut(BaseModel):
    url: str


class DeleteFitOut(BaseModel):
    id: str
    deleted: bool
