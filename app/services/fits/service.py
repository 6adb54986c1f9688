from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from app.core.config import settings
from app.schemas.fits import SLOTS, FitAnalysis, FitImages, OutfitRecord
from app.services.fits.errors import InvalidUpload, SaveFailed, TiersExhausted, UploadFailed
from app.services.fits.executor import TieredExecutor
from app.services.fits.local_cache import LocalFitCache, build_backend
from app.services.fits.synth import synthesize_analysis
from app.services.fits.tiers import (
    AnalyzeRequest,
    DirectStore,
    ImageUploader,
    LocalListTier,
    LocalSaveTier,
    RemoteAnalyzeTier,
    RemoteDeleteTier,
    RemoteFunctions,
    RemoteListTier,
    RemoteSaveTier,
    StorageUploadTier,
    StoreDeleteTier,
    StoreListTier,
    StoreSaveTier,
    SyntheticAnalyzeTier,
    UploadRequest,
)
from app.services.fits.types import ImageFile, SessionContext, is_local_id

logger = logging.getLogger("uvicorn.error")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FunctionNames:
    analyze: str = "analyze-fit"
    save: str = "save-fit"
    list_saved: str = "getSavedFits"
    delete: str = "delete-fit"


def _newest_first(record: OutfitRecord) -> datetime:
    ts = record.created_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _colors_for_images(colors: Dict[str, str], images: FitImages) -> Dict[str, str]:
    return {slot: c for slot, c in colors.items() if slot in SLOTS and images.url_for(slot)}


class FitService:
    """Upload, analyze, save, list and delete outfits over ordered fallback tiers.

    upload:   storage
    analyze:  remote function -> synthetic analysis (never fails)
    save:     remote function -> direct store -> local cache
    fetch_all: remote function -> direct store -> local cache (empty list when all fail)
    delete:   local cache for ``local_`` ids, otherwise remote function -> direct store
    """

    def __init__(
        self,
        functions: RemoteFunctions,
        store: DirectStore,
        local_cache: LocalFitCache,
        uploader: ImageUploader,
        *,
        names: FunctionNames = FunctionNames(),
        rng: Optional[random.Random] = None,
        timeout_s: Optional[float] = None,
        upload_max_bytes: int = 5 * 1024 * 1024,
    ):
        self.local_cache = local_cache
        self.rng = rng
        self.upload_max_bytes = upload_max_bytes
        self.executor = TieredExecutor(timeout_s)
        self.upload_tiers = [StorageUploadTier(uploader)]
        self.analyze_tiers = [RemoteAnalyzeTier(functions, names.analyze), SyntheticAnalyzeTier(rng)]
        self.save_tiers = [RemoteSaveTier(functions, names.save), StoreSaveTier(store), LocalSaveTier(local_cache)]
        self.list_tiers = [RemoteListTier(functions, names.list_saved), StoreListTier(store), LocalListTier(local_cache)]
        self.delete_tiers = [RemoteDeleteTier(functions, names.delete), StoreDeleteTier(store)]

    def validate_upload(self, image: ImageFile, category: str) -> None:
        if category not in SLOTS:
            raise InvalidUpload(f"unknown category: {category}")
        if not image.data:
            raise InvalidUpload(f"{category} file is empty")
        if not (image.content_type or "").startswith("image/"):
            raise InvalidUpload(f"{category} must be an image file")
        if len(image.data) > self.upload_max_bytes:
            raise InvalidUpload(f"{category} image must be less than {self.upload_max_bytes // (1024 * 1024)}MB")

    async def upload(self, image: ImageFile, category: str, session_id: str) -> str:
        self.validate_upload(image, category)
        try:
            outcome = await self.executor.run("upload", self.upload_tiers, UploadRequest(image, category, session_id))
        except TiersExhausted as e:
            logger.error("fits:upload failed category=%s session=%s reason=%s", category, session_id, e)
            raise UploadFailed(f"could not store {category} image") from e
        return outcome.value

    async def upload_many(self, images: Dict[str, ImageFile], session_id: str) -> Dict[str, str]:
        """Upload every slot concurrently; slots that fail are skipped unless all of them fail."""
        if not images:
            raise InvalidUpload("no images provided")
        for category, image in images.items():
            self.validate_upload(image, category)
        slots = list(images)
        results = await asyncio.gather(
            *(self.upload(images[s], s, session_id) for s in slots), return_exceptions=True
        )
        urls: Dict[str, str] = {}
        for slot, res in zip(slots, results):
            if isinstance(res, BaseException):
                logger.warning("fits:upload skipped category=%s reason=%s", slot, res)
                continue
            urls[slot] = res
        if not urls:
            raise UploadFailed("no images could be stored")
        return urls

    def _bind(self, analysis: FitAnalysis, ctx: SessionContext, images: FitImages) -> FitAnalysis:
        return analysis.model_copy(
            update={
                "session_id": ctx.session_id,
                **images.model_dump(),
                "colors": _colors_for_images(analysis.colors, images),
                "timestamp": analysis.timestamp or datetime.now(timezone.utc),
                "saved": False,
            }
        )

    async def analyze(self, ctx: SessionContext, images: FitImages) -> FitAnalysis:
        try:
            outcome = await self.executor.run("analyze", self.analyze_tiers, AnalyzeRequest(ctx, images))
            analysis = outcome.value
        except TiersExhausted as e:
            logger.warning("fits:analyze exhausted reason=%s", e)
            analysis = synthesize_analysis(ctx, images, rng=self.rng)
        return self._bind(analysis, ctx, images)

    async def save(self, record: OutfitRecord) -> OutfitRecord:
        pending = record.model_copy(
            update={
                "id": None,
                "saved": True,
                "created_at": datetime.now(timezone.utc),
                "colors": _colors_for_images(record.colors, record),
            }
        )
        try:
            outcome = await self.executor.run("save", self.save_tiers, pending)
        except TiersExhausted as e:
            logger.error("fits:save lost session=%s reason=%s", record.session_id, e)
            raise SaveFailed("outfit could not be saved anywhere") from e
        return outcome.value

    async def fetch_all(self, session_id: str) -> List[OutfitRecord]:
        try:
            outcome = await self.executor.run("fetch_all", self.list_tiers, session_id)
        except TiersExhausted as e:
            logger.warning("fits:fetch_all exhausted session=%s reason=%s", session_id, e)
            return []
        fits = [f for f in outcome.value if f.session_id == session_id]
        return sorted(fits, key=_newest_first, reverse=True)

    async def delete(self, fit_id: str) -> bool:
        if is_local_id(fit_id):
            try:
                return await self.local_cache.remove(fit_id)
            except Exception as e:
                logger.warning("fits:delete local failed id=%s reason=%s", fit_id, e)
                return False
        try:
            outcome = await self.executor.run("delete", self.delete_tiers, fit_id)
        except TiersExhausted as e:
            logger.warning("fits:delete exhausted id=%s reason=%s", fit_id, e)
            return False
        return bool(outcome.value)


_service: FitService | None = None


def get_fit_service() -> FitService:
    global _service
    if _service:
        return _service
    from app.gateway.functions import FunctionsClient
    from app.gateway.store import get_outfit_store
    from app.storage.r2 import R2Uploader

    _service = FitService(
        functions=FunctionsClient(settings.FUNCTIONS_URL, settings.FUNCTIONS_API_KEY, timeout_s=settings.tier_timeout_s),
        store=get_outfit_store(),
        local_cache=LocalFitCache(
            build_backend(settings.LOCAL_CACHE_BACKEND, settings.LOCAL_CACHE_PATH, settings.LOCAL_CACHE_KEY)
        ),
        uploader=R2Uploader(),
        names=FunctionNames(
            analyze=settings.FUNCTION_ANALYZE,
            save=settings.FUNCTION_SAVE,
            list_saved=settings.FUNCTION_LIST,
            delete=settings.FUNCTION_DELETE,
        ),
        timeout_s=settings.tier_timeout_s,
        upload_max_bytes=settings.UPLOAD_MAX_BYTES,
    )
    return _service
