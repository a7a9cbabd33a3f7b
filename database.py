"""
Database access

ProductStore wraps the MongoDB collection holding products. It is built once
at application startup (see main.create_app) and handed to request handlers;
there is no module-level client.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from config import Settings
from errors import NotFoundError, StoreError
from schemas import PriceRecord, entries_to_index, index_to_entries

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _object_id(product_id: str) -> ObjectId:
    # Ids that cannot be ObjectIds cannot exist in the collection.
    if not ObjectId.is_valid(product_id):
        raise NotFoundError(f"Product not found for id={product_id}")
    return ObjectId(product_id)


@contextmanager
def _store_errors(operation: str):
    try:
        yield
    except PyMongoError as e:
        logger.exception("Store operation '%s' failed", operation)
        raise StoreError(f"Error {operation}", str(e)) from e


class ProductStore:
    def __init__(
        self,
        collection: Collection,
        client: Optional[MongoClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.collection = collection
        self.client = client
        self.clock = clock or _utcnow

    @classmethod
    def connect(cls, settings: Settings) -> "ProductStore":
        client = MongoClient(settings.database_url, serverSelectionTimeoutMS=settings.timeout_ms)
        db = client[settings.database_name]
        logger.info("Connected to MongoDB database '%s' (collection '%s')", settings.database_name, settings.collection)
        return cls(db[settings.collection], client=client)

    def close(self):
        if self.client is not None:
            logger.info("Closing MongoDB connection")
            self.client.close()
            self.client = None

    @property
    def database(self):
        return self.collection.database

    def ping(self) -> bool:
        with _store_errors("pinging database"):
            self.database.command("ping")
        return True

    def collection_names(self) -> List[str]:
        with _store_errors("listing collections"):
            return self.database.list_collection_names()

    # ---- products ----

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        now = self.clock()
        doc = dict(payload)
        doc["price_by_pincode"] = index_to_entries(doc.get("price_by_pincode") or {})
        doc["created_at"] = now
        doc["updated_at"] = now
        with _store_errors("creating product"):
            result = self.collection.insert_one(doc)
            created = self.collection.find_one({"_id": result.inserted_id})
        return created

    def get(self, product_id: str) -> Dict[str, Any]:
        oid = _object_id(product_id)
        with _store_errors("fetching product"):
            doc = self.collection.find_one({"_id": oid})
        if doc is None:
            raise NotFoundError(f"Product not found for id={product_id}")
        return doc

    def find(self, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        with _store_errors("fetching products"):
            return list(self.collection.find(filter_dict or {}).sort("_id", ASCENDING))

    def update(self, product_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        oid = _object_id(product_id)
        fields = dict(changes)
        if fields.get("price_by_pincode") is not None:
            fields["price_by_pincode"] = index_to_entries(fields["price_by_pincode"])
        fields["updated_at"] = self.clock()
        return self._update_one(product_id, {"_id": oid}, {"$set": fields}, "updating product")

    def delete(self, product_id: str) -> None:
        oid = _object_id(product_id)
        with _store_errors("deleting product"):
            result = self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError(f"Product not found for id={product_id}")

    def categories(self) -> List[str]:
        with _store_errors("listing categories"):
            values = self.collection.distinct("category")
        return sorted(v for v in values if v is not None)

    # ---- region price index ----

    def pincodes(self, product_id: str) -> List[str]:
        doc = self.get(product_id)
        return list(entries_to_index(doc.get("price_by_pincode")).keys())

    def set_price(self, product_id: str, pincode: str, record: PriceRecord) -> Dict[str, Any]:
        """
        Insert or replace the price record of one region.

        Every write is a single-document update touching only this pincode's
        entry: it is replaced in place when present, otherwise pushed. If
        another request pushes the same pincode in between, the replace is
        tried again.
        """
        oid = _object_id(product_id)
        entry = {"pincode": pincode, **record.model_dump()}
        for _ in range(2):
            with _store_errors("updating product price"):
                doc = self.collection.find_one_and_update(
                    {"_id": oid, "price_by_pincode.pincode": pincode},
                    {"$set": {"price_by_pincode.$": entry, "updated_at": self.clock()}},
                    return_document=ReturnDocument.AFTER,
                )
                if doc is None:
                    doc = self.collection.find_one_and_update(
                        {"_id": oid, "price_by_pincode.pincode": {"$ne": pincode}},
                        {"$push": {"price_by_pincode": entry}, "$set": {"updated_at": self.clock()}},
                        return_document=ReturnDocument.AFTER,
                    )
            if doc is not None:
                return doc
        raise NotFoundError(f"Product not found for id={product_id}")

    def remove_price(self, product_id: str, pincode: str) -> Dict[str, Any]:
        oid = _object_id(product_id)
        update = {
            "$pull": {"price_by_pincode": {"pincode": pincode}},
            "$set": {"updated_at": self.clock()},
        }
        with _store_errors("removing product price"):
            doc = self.collection.find_one_and_update(
                {"_id": oid, "price_by_pincode.pincode": pincode},
                update,
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            # get() raises for a missing product; otherwise only the entry is absent.
            self.get(product_id)
            raise NotFoundError(f"No price for pincode {pincode} on product {product_id}")
        return doc

    def _update_one(self, product_id, filter_dict, update, operation):
        with _store_errors(operation):
            doc = self.collection.find_one_and_update(
                filter_dict, update, return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise NotFoundError(f"Product not found for id={product_id}")
        return doc
