import httpx
import pytest

from interface import build_stores
from server import app
from settings import BASE_DIR, settings


@pytest.fixture(autouse=True)
def no_latency(monkeypatch):
    monkeypatch.setattr(settings, "LATENCY_SCALE", 0.0)


@pytest.fixture
def stores(tmp_path):
    return build_stores(seed_dir=BASE_DIR / "mock_data", session_file=tmp_path / "current_user.json")


@pytest.fixture
async def client(stores):
    app.state.stores = stores
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.state.stores = None
