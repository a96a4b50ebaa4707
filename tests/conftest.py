import itertools
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app, get_order_service, get_pet_service
from services import OrderService, PetService


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def clock():
    # Each call is one minute after the previous one.
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def pet_service(db, clock):
    return PetService(db, now=clock)


@pytest.fixture
def order_service(db, pet_service, clock):
    return OrderService(db, pet_service, now=clock)


@pytest.fixture
def client(db, pet_service, order_service):
    app = create_app(database=db)
    app.dependency_overrides[get_pet_service] = lambda: pet_service
    app.dependency_overrides[get_order_service] = lambda: order_service
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_pet(client):
    def _make_pet(**fields):
        payload = {"name": "Rex", "category": "dog", "price": 120, **fields}
        resp = client.post("/pets", json=payload)
        assert resp.status_code == 200, f"Failed to create pet. Body: {resp.text}"
        return resp.json()["insertedId"]

    return _make_pet
