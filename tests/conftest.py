"""Shared fixtures for the expense tracker tests."""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services.file_store import JsonFileStore


@pytest.fixture
def data_dir(tmp_path):
    """Directory holding the JSON files of one test."""
    return tmp_path / "data"


@pytest.fixture
def file_store(data_dir):
    """File store rooted in a temporary directory."""
    return JsonFileStore(str(data_dir))


@pytest.fixture
def client(file_store, tmp_path):
    """API client running the full app (lifespan included) on the file store."""
    settings = Settings(data_dir=str(file_store.data_dir), static_dir=str(tmp_path / "no-static"))
    app = create_app(settings, store=file_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def lunch():
    """Sample expense payload with the amount sent as a string."""
    return {
        'date': '2024-01-05',
        'category': 'Food',
        'description': 'Lunch',
        'amount': '12.50'
    }
