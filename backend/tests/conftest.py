import random

import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from app.main import app


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def rng():
    return random.Random(42)
