from typing import Any, Dict, List, Tuple
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.services.coc_client import CocClient, CocClientConfig, get_coc_client

BASE_URL = "https://coc.test/v1"


class FakeCocApi:
    """Canned upstream: maps decoded paths to (status, body) and records requests."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, body: Any = None, status: int = 200) -> None:
        self.routes["/v1" + path] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.raw_path.decode("ascii").split("?", 1)[0])
        if path not in self.routes:
            return httpx.Response(404, json={"reason": "notFound", "message": "Not found"})
        status, body = self.routes[path]
        return httpx.Response(status, json=body)

    def client(self, token: str = "test-token") -> CocClient:
        return CocClient(
            CocClientConfig(base_url=BASE_URL, token=token),
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def coc_api() -> FakeCocApi:
    return FakeCocApi()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENV="dev",
        COC_TOKEN="test-token",
        COC_API_BASE=BASE_URL,
        DEFAULT_CLAN_TAG=None,
    )


@pytest.fixture
def client(settings, coc_api):
    app = create_app(settings)

    def _coc_client():
        c = coc_api.client()
        try:
            yield c
        finally:
            c.close()

    app.dependency_overrides[get_coc_client] = _coc_client
    with TestClient(app) as tc:
        yield tc
