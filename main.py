import os
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Union
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, get_settings
from database import ProductStore
from errors import CatalogError, NotFoundError, ValidationError
from filters import build_product_filter, build_search_filter, combine, region_clause
from projection import project_product, serialize_product
from schemas import PriceRecord, Product, ProductCreate, ProductUpdate, RegionalProduct

logger = logging.getLogger(__name__)

# Region-projected rows when a pincode was given, full products otherwise.
ProductList = Union[List[RegionalProduct], List[Product]]


def get_store(request: Request) -> ProductStore:
    return request.app.state.store


def _region(region: Optional[str], pincode: Optional[str]) -> Optional[str]:
    # `pincode` is the older name of the region parameter; both are accepted.
    return region if region is not None else pincode


def create_app(store: Optional[ProductStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the catalog API.

    A pre-built store (tests pass one backed by mongomock) is used as is and
    left open on shutdown. Otherwise the store is connected from settings at
    startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "store", None) is None:
            cfg = settings or get_settings()
            owned = ProductStore.connect(cfg)
            app.state.store = owned
        logger.info("Product Catalog API started")
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.store = None
            logger.info("Product Catalog API stopped")

    app = FastAPI(title="Product Catalog API", lifespan=lifespan)
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/")
    def read_root():
        return {"message": "Product Catalog API running"}

    @app.get("/test")
    def test_database(store: ProductStore = Depends(get_store)):
        response = {
            "backend": "✅ Running",
            "database": "❌ Not Available",
            "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
            "database_name": None,
            "connection_status": "Not Connected",
            "collections": [],
        }
        if store is None:
            return response

        response["database_name"] = store.database.name
        try:
            store.ping()
            response["connection_status"] = "Connected"
            response["collections"] = store.collection_names()[:10]
            response["database"] = "✅ Connected & Working"
        except CatalogError as e:
            response["database"] = f"⚠️  Connected but Error: {e.message[:50]}"
        return response

    @app.get("/api/products", response_model=ProductList)
    def list_products(
        region: Optional[str] = Query(None, description="Region key (pincode)"),
        pincode: Optional[str] = Query(None, description="Alias of region"),
        category: Optional[str] = Query(None, description="Exact category"),
        in_stock_only: bool = Query(False, alias="inStockOnly"),
        store: ProductStore = Depends(get_store),
    ):
        key = _region(region, pincode)
        products = store.find(build_product_filter(category, key, in_stock_only))
        if key is not None and not products:
            raise NotFoundError("No products available for the selected pincode")
        return [project_product(p, key) for p in products]

    @app.get("/api/products/category", response_model=List[RegionalProduct])
    def list_products_by_category(
        name: Optional[str] = Query(None, description="Category name"),
        region: Optional[str] = Query(None),
        pincode: Optional[str] = Query(None),
        in_stock_only: bool = Query(False, alias="inStockOnly"),
        store: ProductStore = Depends(get_store),
    ):
        key = _region(region, pincode)
        if not name:
            raise ValidationError("Category name is required", field="name")
        if not key:
            raise ValidationError("Pincode is required", field="region")
        products = store.find(build_product_filter(name, key, in_stock_only))
        return [project_product(p, key) for p in products]

    @app.get("/api/products/search", response_model=ProductList)
    def search_products(
        query: Optional[str] = Query(None, description="Text to look for in name or tags"),
        region: Optional[str] = Query(None),
        pincode: Optional[str] = Query(None),
        store: ProductStore = Depends(get_store),
    ):
        key = _region(region, pincode)
        filter_dict = build_search_filter(query)
        if key is not None:
            filter_dict = combine(filter_dict, region_clause(key))
        return [project_product(p, key) for p in store.find(filter_dict)]

    @app.get("/api/categories", response_model=List[str])
    def list_categories(store: ProductStore = Depends(get_store)):
        return store.categories()

    @app.post("/api/products", status_code=201, response_model=Product)
    def create_product(product: ProductCreate, store: ProductStore = Depends(get_store)):
        created = store.create(product.model_dump())
        logger.info("Created product %s", created["_id"])
        return serialize_product(created)

    @app.get("/api/products/{product_id}", response_model=Product)
    def get_product(product_id: str, store: ProductStore = Depends(get_store)):
        return serialize_product(store.get(product_id))

    @app.put("/api/products/{product_id}", response_model=Product)
    def update_product(product_id: str, changes: ProductUpdate, store: ProductStore = Depends(get_store)):
        updated = store.update(product_id, changes.model_dump(exclude_unset=True))
        return serialize_product(updated)

    @app.delete("/api/products/{product_id}")
    def delete_product(product_id: str, store: ProductStore = Depends(get_store)):
        store.delete(product_id)
        logger.info("Deleted product %s", product_id)
        return {"message": "Product deleted", "id": product_id}

    @app.get("/api/products/{product_id}/pincodes", response_model=List[str])
    def list_pincodes(product_id: str, store: ProductStore = Depends(get_store)):
        return store.pincodes(product_id)

    @app.put("/api/products/{product_id}/pincodes/{pincode}", response_model=Product)
    def set_pincode_price(
        product_id: str,
        pincode: str,
        record: PriceRecord,
        store: ProductStore = Depends(get_store),
    ):
        return serialize_product(store.set_price(product_id, pincode, record))

    @app.delete("/api/products/{product_id}/pincodes/{pincode}", response_model=Product)
    def remove_pincode_price(product_id: str, pincode: str, store: ProductStore = Depends(get_store)):
        return serialize_product(store.remove_price(product_id, pincode))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    port = get_settings().port
    uvicorn.run(app, host="0.0.0.0", port=port)
