from datetime import datetime

import pytest
from bson import ObjectId

from errors import ProjectionError
from projection import project_product, serialize_product


@pytest.fixture
def doc():
    return {
        "_id": ObjectId(),
        "name": "Mango",
        "description": "Alphonso mangoes",
        "category": "Fruits",
        "images": ["mango.jpg"],
        "tags": ["Summer"],
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 2),
        "price_by_pincode": [
            {"pincode": "500001", "price": 50.0, "currency": "INR", "stock": 10, "available": True},
            {"pincode": "400001", "price": 55.0, "currency": "INR", "stock": 0, "available": False},
        ],
    }


def test_without_region_returns_full_product(doc):
    product = project_product(doc)

    assert product["id"] == str(doc["_id"])
    assert "_id" not in product
    assert product["price_by_pincode"] == {
        "500001": {"price": 50.0, "currency": "INR", "stock": 10, "available": True},
        "400001": {"price": 55.0, "currency": "INR", "stock": 0, "available": False},
    }


def test_region_flattens_one_price_record(doc):
    product = project_product(doc, "500001")

    assert product == {
        "id": str(doc["_id"]),
        "name": "Mango",
        "description": "Alphonso mangoes",
        "category": "Fruits",
        "images": ["mango.jpg"],
        "tags": ["Summer"],
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 2),
        "price": 50.0,
        "currency": "INR",
        "stock": 10,
        "available": True,
    }


def test_missing_region_entry_fails_loudly(doc):
    with pytest.raises(ProjectionError, match="Missing expected region entry"):
        project_product(doc, "110001")


def test_serialize_product_without_price_index():
    doc = {"_id": ObjectId(), "name": "Kiwi"}

    assert serialize_product(doc)["price_by_pincode"] == {}
