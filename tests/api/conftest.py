"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh image store to avoid state contamination.
    """
    from config import get_settings
    from core.image_manager import ImageManager
    from main import app

    image_manager = ImageManager(max_size_mb=100, max_images=50)

    app.state.image_manager = image_manager
    app.state.settings = get_settings()
    app.state.debug = False

    # No context manager: the lifespan handler would replace the store
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client

    image_manager.cleanup()


@pytest.fixture
def pattern_id(client):
    """Store the shapes pattern and return its ID"""
    response = client.post("/api/image/pattern", json={"pattern": "shapes"})
    assert response.status_code == 200
    return response.json()["image_id"]


@pytest.fixture
def texture_id(client):
    """Store the noise pattern and return its ID"""
    response = client.post(
        "/api/image/pattern", json={"pattern": "noise", "width": 320, "height": 240}
    )
    assert response.status_code == 200
    return response.json()["image_id"]
