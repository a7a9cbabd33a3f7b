"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ProductStore
from main import create_app


@pytest.fixture
def clock():
    """A clock that moves one second forward on every call."""
    state = {"now": datetime(2024, 1, 1, 12, 0, 0)}

    def tick():
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick


@pytest.fixture
def store(clock):
    client = mongomock.MongoClient()
    return ProductStore(client["catalog_test"]["product_items"], clock=clock)


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as api_client:
        yield api_client


@pytest.fixture
def mango():
    return {
        "name": "Mango",
        "description": "Alphonso mangoes",
        "category": "Fruits",
        "images": ["mango.jpg"],
        "tags": ["Summer", "fruit"],
        "price_by_pincode": {
            "500001": {"price": 50, "currency": "INR", "stock": 10, "available": True},
        },
    }
