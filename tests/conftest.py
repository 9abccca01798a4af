import pytest
from fastapi.testclient import TestClient

from review_service.app.config import Settings
from review_service.app.main import create_app

from fakes import FakeGeminiClient


def _settings(tmp_path, environment: str) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        environment=environment,
        static_dir=str(tmp_path / "no-public-dir"),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return _settings(tmp_path, "production")


@pytest.fixture
def dev_settings(tmp_path) -> Settings:
    return _settings(tmp_path, "development")


@pytest.fixture
def make_client(settings):
    def _make(fake: FakeGeminiClient, app_settings: Settings | None = None, **kwargs) -> TestClient:
        app = create_app(app_settings or settings, gemini_client=fake)
        return TestClient(app, **kwargs)

    return _make
