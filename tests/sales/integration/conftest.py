import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sales.api import install


@pytest.fixture()
def client(services):
    app = FastAPI()
    install(app, services)
    return TestClient(app)


@pytest.fixture()
def admin_headers(settings):
    return {"X-Admin-Key": settings.admin_api_key}
