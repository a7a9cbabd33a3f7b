import re
from typing import Any, Dict, Optional

from errors import ValidationError


def region_clause(region: str, in_stock_only: bool = False) -> Dict[str, Any]:
    """Match products with an available entry for `region` (and stock, if asked)."""
    match: Dict[str, Any] = {"pincode": region, "available": True}
    if in_stock_only:
        match["stock"] = {"$gt": 0}
    return {"price_by_pincode": {"$elemMatch": match}}


def build_product_filter(
    category: Optional[str] = None,
    region: Optional[str] = None,
    in_stock_only: bool = False,
) -> Dict[str, Any]:
    """
    Build a Mongo filter from list query parameters.

    category is an exact, case-sensitive match. region matches an entry of
    the price index by key; the key is compared literally, so an unknown or
    malformed pincode simply matches nothing. in_stock_only has no effect
    without a region.
    """
    clauses = []
    if category is not None:
        clauses.append({"category": category})
    if region is not None:
        clauses.append(region_clause(region, in_stock_only))

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_search_filter(text: Optional[str]) -> Dict[str, Any]:
    # Case-insensitive substring on name or any tag; the text is literal.
    if not text:
        raise ValidationError("Search query is required", field="query")
    pattern = {"$regex": re.escape(text), "$options": "i"}
    return {"$or": [{"name": pattern}, {"tags": pattern}]}


def combine(*filters: Dict[str, Any]) -> Dict[str, Any]:
    clauses = [f for f in filters if f]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}
