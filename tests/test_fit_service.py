import asyncio

import pytest

from app.schemas.fits import FitImages
from app.services.fits.errors import InvalidUpload, SaveFailed, UploadFailed
from app.services.fits.synth import SYNTHETIC_CONFIDENCE
from app.services.fits.types import ImageFile, SessionContext
from tests.fixtures.fakes import DummyFunctions, DummyStore, DummyUploader, make_record, ts

CTX = SessionContext(session_id="demo_1", season="Fall", formality="casual")
JPEG = ImageFile(filename="my top (1).jpg", content_type="image/jpeg", data=b"\xff\xd8\xff")


# analyze

@pytest.mark.asyncio
async def test_analyze_uses_remote_function_when_it_answers(make_service):
    remote = {
        "top": "white cropped t-shirt",
        "topLayer": "denim jacket",
        "aesthetic": ["minimal"],
        "colors": {"top": "white", "topLayer": "blue", "shoes": "black"},
        "ai_description": "A white tee under a denim jacket",
        "confidence": 0.92,
    }
    functions = DummyFunctions({"analyze-fit": remote})
    service = make_service(functions=functions)
    images = FitImages(top_url="https://cdn.test/t.jpg", top_layer_url="https://cdn.test/l.jpg")
    out = await service.analyze(CTX, images)
    assert out.top_layer == "denim jacket"
    assert out.confidence == 0.92
    assert out.session_id == "demo_1"
    assert out.top_url == "https://cdn.test/t.jpg"
    # no shoes image was sent, so the shoes color is dropped
    assert out.colors == {"top": "white", "topLayer": "blue"}
    name, payload = functions.calls[0]
    assert name == "analyze-fit"
    assert payload["session_id"] == "demo_1"
    assert payload["season"] == "Fall"
    assert payload["top_url"] == "https://cdn.test/t.jpg"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [{}, {"aesthetic": ["x"]}, [], "oops", None])
async def test_analyze_treats_empty_remote_payload_as_failure(make_service, response):
    service = make_service(functions=DummyFunctions({"analyze-fit": response}))
    out = await service.analyze(CTX, FitImages(bottom_url="https://cdn.test/b.jpg"))
    assert out.confidence == SYNTHETIC_CONFIDENCE
    assert out.bottom == "dark jeans"


@pytest.mark.asyncio
async def test_analyze_never_fails_when_remote_is_down(make_service):
    service = make_service()
    out = await service.analyze(CTX, FitImages(bottom_url="https://cdn.test/b.jpg"))
    assert out.saved is False
    assert out.colors == {"bottom": "burgundy"}
    assert len(out.aesthetic) == 3


@pytest.mark.asyncio
async def test_reroll_returns_a_new_transient_analysis(make_service):
    service = make_service()
    images = FitImages(top_url="https://cdn.test/t.jpg")
    first = await service.analyze(CTX, images)
    second = await service.analyze(CTX, images)
    assert first is not second
    assert first.saved is False and second.saved is False


# save

@pytest.mark.asyncio
async def test_save_prefers_remote_function(make_service):
    def _saved(payload):
        return {**payload, "id": "9f0c1d2e-0000-4000-8000-000000000001"}

    functions = DummyFunctions({"save-fit": _saved})
    store = DummyStore()
    service = make_service(functions=functions, store=store)
    saved = await service.save(make_record())
    assert saved.id == "9f0c1d2e-0000-4000-8000-000000000001"
    assert saved.saved is True
    assert store.calls == []
    _, payload = functions.calls[0]
    assert "id" not in payload
    assert payload["saved"] is True


@pytest.mark.asyncio
async def test_save_falls_back_to_direct_store(make_service):
    store = DummyStore()
    service = make_service(store=store)
    saved = await service.save(make_record())
    assert not saved.id.startswith("local_")
    assert saved.id in store.rows


@pytest.mark.asyncio
async def test_save_remote_without_id_is_not_trusted(make_service):
    store = DummyStore()
    service = make_service(functions=DummyFunctions({"save-fit": {"session_id": "demo_1"}}), store=store)
    saved = await service.save(make_record())
    assert saved.id in store.rows


@pytest.mark.asyncio
async def test_save_with_gateway_down_lands_in_local_cache(make_service):
    service = make_service()
    saved = await service.save(make_record())
    assert saved.id.startswith("local_")
    assert saved.saved is True
    fits = await service.fetch_all("demo_1")
    assert [f.id for f in fits] == [saved.id]
    assert fits[0].ai_description == "dark jeans"


@pytest.mark.asyncio
async def test_save_ignores_caller_supplied_id(make_service):
    service = make_service()
    saved = await service.save(make_record(id="local_forged"))
    assert saved.id != "local_forged"


@pytest.mark.asyncio
async def test_save_drops_colors_without_images(make_service):
    service = make_service()
    saved = await service.save(make_record(colors={"bottom": "rust", "top": "olive"}))
    assert saved.colors == {"bottom": "rust"}


@pytest.mark.asyncio
async def test_save_raises_only_when_local_cache_breaks(make_service, local_cache, monkeypatch):
    async def broken(rows):
        raise OSError("disk full")

    monkeypatch.setattr(local_cache.backend, "write", broken)
    service = make_service()
    with pytest.raises(SaveFailed):
        await service.save(make_record())


@pytest.mark.asyncio
async def test_save_to_slow_local_cache_is_not_cut_off_by_tier_timeout(make_service, local_cache, monkeypatch):
    write = local_cache.backend.write

    async def slow_write(rows):
        await asyncio.sleep(0.2)
        await write(rows)

    monkeypatch.setattr(local_cache.backend, "write", slow_write)
    service = make_service(timeout_s=0.05)
    saved = await service.save(make_record())
    assert saved.id.startswith("local_")
    assert [f.id for f in await service.fetch_all("demo_1")] == [saved.id]


# fetch_all

@pytest.mark.asyncio
async def test_fetch_all_filters_by_session_and_sorts_newest_first(make_service):
    rows = [
        make_record(id="a", created_at=ts(1)).model_dump(mode="json"),
        make_record(id="b", created_at=ts(3)).model_dump(mode="json"),
        make_record(id="c", session_id="other", created_at=ts(2)).model_dump(mode="json"),
        make_record(id="d", created_at=ts(2)).model_dump(mode="json"),
    ]
    service = make_service(functions=DummyFunctions({"getSavedFits": rows}))
    fits = await service.fetch_all("demo_1")
    assert [f.id for f in fits] == ["b", "d", "a"]


@pytest.mark.asyncio
async def test_fetch_all_uses_store_when_remote_fails(make_service):
    store = DummyStore()
    service = make_service(store=store)
    saved = await service.save(make_record())
    fits = await service.fetch_all("demo_1")
    assert [f.id for f in fits] == [saved.id]


@pytest.mark.asyncio
async def test_fetch_all_returns_empty_when_everything_fails(make_service, local_cache, monkeypatch):
    async def broken():
        raise OSError("unreadable")

    monkeypatch.setattr(local_cache.backend, "read", broken)
    service = make_service()
    assert await service.fetch_all("demo_1") == []


@pytest.mark.asyncio
async def test_saved_record_appears_exactly_once(make_service):
    service = make_service()
    await service.save(make_record(session_id="other"))
    saved = await service.save(make_record())
    fits = await service.fetch_all("demo_1")
    assert [f.id for f in fits].count(saved.id) == 1
    assert len(fits) == 1


# delete

@pytest.mark.asyncio
async def test_delete_local_id_only_touches_local_cache(make_service):
    functions = DummyFunctions()
    store = DummyStore()
    service = make_service(functions=functions, store=store)
    store.fail = True
    saved = await service.save(make_record())
    store.fail = False
    functions.calls.clear()
    store.calls.clear()

    assert await service.delete(saved.id) is True
    assert functions.calls == []
    assert store.calls == []
    store.fail = True
    functions.fail = True
    assert await service.fetch_all("demo_1") == []


@pytest.mark.asyncio
async def test_delete_unknown_local_id_reports_false(make_service):
    service = make_service()
    assert await service.delete("local_123_deadbeef") is False


@pytest.mark.asyncio
async def test_delete_backend_id_never_touches_local_cache(make_service, local_cache):
    service = make_service()
    await local_cache.append(make_record(id="1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed"))
    assert await service.delete("1b9d6bcd-bbfd-4b2d-9b5d-ab8dfbbd4bed") is False
    assert len(await local_cache.scan("demo_1")) == 1


@pytest.mark.asyncio
async def test_delete_backend_id_falls_back_to_store(make_service):
    store = DummyStore()
    service = make_service(store=store)
    saved = await service.save(make_record())
    assert await service.delete(saved.id) is True
    assert saved.id not in store.rows
    assert await service.delete(saved.id) is False


# upload

@pytest.mark.asyncio
async def test_upload_returns_public_url_with_sanitized_key(make_service):
    uploader = DummyUploader()
    service = make_service(uploader=uploader)
    url = await service.upload(JPEG, "top", "demo_1")
    key = uploader.keys[0]
    assert url == f"https://cdn.test/{key}"
    assert key.startswith("demo_1/originals/top_")
    assert key.endswith("_my_top__1_.jpg")


@pytest.mark.asyncio
async def test_upload_failure_is_surfaced(make_service):
    service = make_service(uploader=DummyUploader(fail_categories={"shoes"}))
    with pytest.raises(UploadFailed):
        await service.upload(JPEG, "shoes", "demo_1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "image,category",
    [
        (JPEG, "hat"),
        (ImageFile(filename="a.jpg", content_type="image/jpeg", data=b""), "top"),
        (ImageFile(filename="a.txt", content_type="text/plain", data=b"hi"), "top"),
        (ImageFile(filename="a.jpg", content_type="image/jpeg", data=b"x" * (5 * 1024 * 1024 + 1)), "top"),
    ],
)
async def test_upload_rejects_invalid_files(make_service, image, category):
    uploader = DummyUploader()
    service = make_service(uploader=uploader)
    with pytest.raises(InvalidUpload):
        await service.upload(image, category, "demo_1")
    assert uploader.keys == []


@pytest.mark.asyncio
async def test_upload_many_skips_failed_slots(make_service):
    service = make_service(uploader=DummyUploader(fail_categories={"shoes"}))
    urls = await service.upload_many({"top": JPEG, "shoes": JPEG, "bottom": JPEG}, "demo_1")
    assert set(urls) == {"top", "bottom"}


@pytest.mark.asyncio
async def test_upload_many_fails_when_nothing_is_stored(make_service):
    service = make_service(uploader=DummyUploader(fail_categories={"top", "bottom"}))
    with pytest.raises(UploadFailed, match="no images could be stored"):
        await service.upload_many({"top": JPEG, "bottom": JPEG}, "demo_1")
