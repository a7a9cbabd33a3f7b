from typing import Any, Dict, Optional

from errors import ProjectionError
from schemas import entries_to_index

# Region-independent fields kept when narrowing to one region
BASE_FIELDS = ("name", "description", "category", "images", "tags", "created_at", "updated_at")
PRICE_FIELDS = ("price", "currency", "stock", "available")


def serialize_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Stored document -> API shape (string id, pincode mapping)."""
    product = {k: v for k, v in doc.items() if k not in ("_id", "price_by_pincode")}
    product["id"] = str(doc.get("_id"))
    product["price_by_pincode"] = entries_to_index(doc.get("price_by_pincode"))
    return product


def project_product(doc: Dict[str, Any], region: Optional[str] = None) -> Dict[str, Any]:
    """
    Shape a matched product for a response.

    Without a region the full product is returned. With a region, that
    region's price record is flattened into the top level and the price
    index is dropped. The region filter guarantees the entry exists; a
    missing entry raises ProjectionError.
    """
    if region is None:
        return serialize_product(doc)

    entry = None
    for candidate in doc.get("price_by_pincode") or []:
        if candidate.get("pincode") == region:
            entry = candidate
            break
    if entry is None:
        raise ProjectionError(
            f"Missing expected region entry '{region}' for product {doc.get('_id')}"
        )

    shaped = {"id": str(doc.get("_id"))}
    for field in BASE_FIELDS:
        shaped[field] = doc.get(field)
    for field in PRICE_FIELDS:
        shaped[field] = entry.get(field)
    return shaped
