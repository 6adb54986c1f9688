from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from app.schemas.fits import FitAnalysis, FitImages, OutfitRecord
from app.services.fits.errors import MalformedRemoteResponse
from app.services.fits.local_cache import LocalFitCache, new_local_id
from app.services.fits.synth import synthesize_analysis
from app.services.fits.types import ImageFile, SessionContext, is_local_id
from app.storage.keys import fit_image_key

_records = TypeAdapter(List[OutfitRecord])


class RemoteFunctions(Protocol):
    async def invoke(self, name: str, payload: dict) -> Any:
        ...


class DirectStore(Protocol):
    async def insert(self, record: OutfitRecord) -> OutfitRecord:
        ...

    async def list_for_session(self, session_id: str) -> List[OutfitRecord]:
        ...

    async def delete(self, fit_id: str) -> bool:
        ...


class ImageUploader(Protocol):
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        ...


@dataclass(frozen=True)
class AnalyzeRequest:
    ctx: SessionContext
    images: FitImages

    def wire(self) -> dict:
        return {
            "session_id": self.ctx.session_id,
            **self.images.model_dump(),
            "season": self.ctx.season,
            "formality": self.ctx.formality,
        }


@dataclass(frozen=True)
class UploadRequest:
    image: ImageFile
    category: str
    session_id: str


class StorageUploadTier:
    name = "storage"
    bounded = True

    def __init__(self, uploader: ImageUploader):
        self.uploader = uploader

    async def attempt(self, req: UploadRequest) -> str:
        key = fit_image_key(req.session_id, req.category, req.image.filename)
        return await self.uploader.upload(key, req.image.data, req.image.content_type or "application/octet-stream")


class RemoteAnalyzeTier:
    name = "remote-function"
    bounded = True

    def __init__(self, functions: RemoteFunctions, function_name: str):
        self.functions = functions
        self.function_name = function_name

    async def attempt(self, req: AnalyzeRequest) -> FitAnalysis:
        data = await self.functions.invoke(self.function_name, req.wire())
        if not isinstance(data, dict):
            raise MalformedRemoteResponse(f"{self.function_name} returned {type(data).__name__}")
        try:
            analysis = FitAnalysis.model_validate(data)
        except ValidationError as e:
            raise MalformedRemoteResponse(f"{self.function_name} payload invalid: {e.error_count()} errors") from e
        if not analysis.has_description():
            raise MalformedRemoteResponse(f"{self.function_name} returned an empty analysis")
        return analysis


class SyntheticAnalyzeTier:
    name = "synthetic"
    bounded = False

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng

    async def attempt(self, req: AnalyzeRequest) -> FitAnalysis:
        return synthesize_analysis(req.ctx, req.images, rng=self.rng)


def _require_backend_id(record: OutfitRecord, source: str) -> OutfitRecord:
    if not record.id or is_local_id(record.id):
        raise MalformedRemoteResponse(f"{source} returned a record without a backend id")
    return record


def _backend_record(data: Any, source: str) -> OutfitRecord:
    if not isinstance(data, dict):
        raise MalformedRemoteResponse(f"{source} returned {type(data).__name__}")
    try:
        record = OutfitRecord.model_validate(data)
    except ValidationError as e:
        raise MalformedRemoteResponse(f"{source} record invalid: {e.error_count()} errors") from e
    return _require_backend_id(record, source)


class RemoteSaveTier:
    name = "remote-function"
    bounded = True

    def __init__(self, functions: RemoteFunctions, function_name: str):
        self.functions = functions
        self.function_name = function_name

    async def attempt(self, record: OutfitRecord) -> OutfitRecord:
        payload = record.model_dump(mode="json", exclude={"id"})
        data = await self.functions.invoke(self.function_name, payload)
        return _backend_record(data, self.function_name)


class StoreSaveTier:
    name = "direct-store"
    bounded = True

    def __init__(self, store: DirectStore):
        self.store = store

    async def attempt(self, record: OutfitRecord) -> OutfitRecord:
        return _require_backend_id(await self.store.insert(record), "store")


class LocalSaveTier:
    name = "local-cache"
    bounded = False

    def __init__(self, cache: LocalFitCache):
        self.cache = cache

    async def attempt(self, record: OutfitRecord) -> OutfitRecord:
        return await self.cache.append(record.model_copy(update={"id": new_local_id()}))


class RemoteListTier:
    name = "remote-function"
    bounded = True

    def __init__(self, functions: RemoteFunctions, function_name: str):
        self.functions = functions
        self.function_name = function_name

    async def attempt(self, session_id: str) -> List[OutfitRecord]:
        data = await self.functions.invoke(self.function_name, {"session_id": session_id})
        if not isinstance(data, list):
            raise MalformedRemoteResponse(f"{self.function_name} returned {type(data).__name__}")
        try:
            return _records.validate_python(data)
        except ValidationError as e:
            raise MalformedRemoteResponse(f"{self.function_name} rows invalid: {e.error_count()} errors") from e


class StoreListTier:
    name = "direct-store"
    bounded = True

    def __init__(self, store: DirectStore):
        self.store = store

    async def attempt(self, session_id: str) -> List[OutfitRecord]:
        return await self.store.list_for_session(session_id)


class LocalListTier:
    name = "local-cache"
    bounded = False

    def __init__(self, cache: LocalFitCache):
        self.cache = cache

    async def attempt(self, session_id: str) -> List[OutfitRecord]:
        return await self.cache.scan(session_id)


class RemoteDeleteTier:
    name = "remote-function"
    bounded = True

    def __init__(self, functions: RemoteFunctions, function_name: str):
        self.functions = functions
        self.function_name = function_name

    async def attempt(self, fit_id: str) -> bool:
        await self.functions.invoke(self.function_name, {"id": fit_id})
        return True


class StoreDeleteTier:
    name = "direct-store"
    bounded = True

    def __init__(self, store: DirectStore):
        self.store = store

    async def attempt(self, fit_id: str) -> bool:
        return await self.store.delete(fit_id)
