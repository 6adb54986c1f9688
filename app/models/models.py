from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Float, Boolean, DateTime, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
from datetime import datetime
from app.core.db import Base


class Outfit(Base):
    __tablename__ = "outfits"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id: Mapped[str] = mapped_column(Text, index=True)
    top_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    top_layer_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    bottom_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shoes_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    accessories_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    season: Mapped[str | None] = mapped_column(String(16), nullable=True)
    formality: Mapped[str | None] = mapped_column(String(32), nullable=True)
    aesthetic: Mapped[list | None] = mapped_column(JSON, nullable=True)
    colors: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    accessories_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    accessories_tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    saved: Mapped[bool] = mapped_column(Boolean, default=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class DemoSession(Base):
    __tablename__ = "demo_sessions"
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    preferences: Mapped[dict | None] = mapped_column(JSON, nullable=True)
