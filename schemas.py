"""
Database Schemas

MongoDB document shapes for the catalog, as Pydantic models.

Products live in the "product_items" collection. The region price index is
exposed to API callers as a mapping of pincode -> PriceRecord, but stored as
a list of entries ({pincode, price, currency, stock, available}) so that a
region can be matched with $elemMatch instead of a field path built from
the caller's pincode.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class PriceRecord(BaseModel):
    """
    Price and availability of one product in one region.
    stock and available are independent: stock > 0 does not make a record
    available, and an available record may have no stock.
    """
    price: float = Field(..., ge=0, description="Amount in `currency`")
    currency: str = Field("INR", description="Currency code")
    stock: int = Field(0, ge=0, description="Units in stock")
    available: bool = Field(False, description="Whether the product is sold in this region")


class ProductCreate(BaseModel):
    """
    Product payload for inserts
    Collection name: "product_items"
    """
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, description="Product category")
    images: List[str] = Field(default_factory=list, description="Image URLs or paths")
    tags: List[str] = Field(default_factory=list, description="Search tags")
    price_by_pincode: Dict[str, PriceRecord] = Field(
        default_factory=dict,
        description="Pincode -> price record"
    )


class ProductUpdate(BaseModel):
    # Only fields present in the request body are applied.
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    price_by_pincode: Optional[Dict[str, PriceRecord]] = None


class Product(BaseModel):
    """
    A stored product as returned by the API
    Updates may null any caller field, so only the generated ones are required.
    """
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    price_by_pincode: Dict[str, PriceRecord]
    created_at: datetime
    updated_at: datetime


class RegionalProduct(BaseModel):
    """A product narrowed to a single region's price record."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    price: float
    currency: str
    stock: int
    available: bool


def index_to_entries(index: Dict[str, Any]) -> List[Dict[str, Any]]:
    """pincode -> record mapping to the stored entry list."""
    entries = []
    for pincode, record in index.items():
        if isinstance(record, BaseModel):
            record = record.model_dump()
        entries.append({"pincode": pincode, **record})
    return entries


def entries_to_index(entries: Optional[List[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    index = {}
    for entry in entries or []:
        record = dict(entry)
        pincode = record.pop("pincode")
        index[pincode] = record
    return index
