"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient

from app.analytics.service import PageViewService
from app.config import AnalyticsSettings, AppConfig, FilesSettings, IpoSettings, set_config
from app.files.service import ProspectusStorage
from app.ipo.service import IpoStockService
from app.main import app


@pytest.fixture
def upload_dir(tmp_path):
    """Storage root for prospectus files (not created until needed)."""
    return tmp_path / "prospectus-uploads"


@pytest.fixture(autouse=True)
def test_config(upload_dir, monkeypatch):
    """Isolate every test from real config files, env vars and singletons."""
    monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
    config = AppConfig(
        files=FilesSettings(upload_dir=str(upload_dir)),
        analytics=AnalyticsSettings(db_path=":memory:"),
        ipo=IpoSettings(db_path=":memory:"),
    )
    set_config(config)
    ProspectusStorage.reset_instance()
    PageViewService.reset_instance()
    IpoStockService.reset_instance()

    yield config

    ProspectusStorage.reset_instance()
    PageViewService.reset_instance()
    IpoStockService.reset_instance()
    set_config(None)


@pytest.fixture
def api_client():
    """Provide a TestClient for the main FastAPI app."""
    return TestClient(app)
