import pytest

from app.services.fits.local_cache import JsonFileBackend, LocalFitCache
from app.services.fits.service import FitService
from tests.fixtures.fakes import DummyFunctions, DummyStore, DummyUploader, FirstChoice


@pytest.fixture
def local_cache(tmp_path):
    return LocalFitCache(JsonFileBackend(tmp_path / "saved_outfits.json"))


@pytest.fixture
def make_service(local_cache):
    def _make(functions=None, store=None, uploader=None, rng=None, timeout_s=None):
        return FitService(
            functions=functions or DummyFunctions(fail=True),
            store=store or DummyStore(fail=True),
            local_cache=local_cache,
            uploader=uploader or DummyUploader(),
            rng=rng or FirstChoice(),
            timeout_s=timeout_s,
        )

    return _make
