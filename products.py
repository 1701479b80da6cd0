import logging
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

import database
import images
from auth import require_admin
from errors import NotFoundError
from forms import ListQuery, read_payload
from schemas import ProductCreate, ProductUpdate
from utils import generate_id, now_iso, paginated, success

logger = logging.getLogger(__name__)

COLLECTION = "product"

router = APIRouter(prefix="/products", tags=["products"])


def product_filters(
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    section_id: Optional[str] = None,
    has_offer: Optional[bool] = None,
    is_active: Optional[bool] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
) -> Dict[str, Any]:
    q: Dict[str, Any] = {}
    if search:
        q["name"] = {"$regex": re.escape(search), "$options": "i"}
    if category_id:
        q["category_id"] = category_id
    if section_id:
        q["section_id"] = section_id
    if has_offer is not None:
        q["has_offer"] = has_offer
    if is_active is not None:
        q["is_active"] = is_active
    if min_price is not None or max_price is not None:
        price_filter: Dict[str, Any] = {}
        if min_price is not None:
            price_filter["$gte"] = float(min_price)
        if max_price is not None:
            price_filter["$lte"] = float(max_price)
        q["after_price"] = price_filter
    return q


def get_product(product_id: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"id": product_id})
    if not doc:
        raise NotFoundError("Product not found")
    return doc


def create_product(data: ProductCreate, image_url: Optional[str] = None) -> Dict[str, Any]:
    doc = data.model_dump()
    doc["id"] = generate_id("prod")
    doc["image_url"] = image_url or data.image_url or ""
    doc["created_at"] = now_iso()
    return database.create_document(COLLECTION, doc)


def update_product(product_id: str, data: ProductUpdate, image_url: Optional[str] = None) -> Dict[str, Any]:
    changes = data.model_dump(exclude_unset=True)
    if image_url:
        changes["image_url"] = image_url
    doc = database.update_document(COLLECTION, {"id": product_id}, changes)
    if not doc:
        raise NotFoundError("Product not found")
    return doc


def delete_product(product_id: str) -> None:
    if not database.delete_document(COLLECTION, {"id": product_id}):
        raise NotFoundError("Product not found")


# Public routes

@router.get("")
def list_products(params: ListQuery = Depends(), filters: Dict[str, Any] = Depends(product_filters)):
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Products retrieved successfully")


@router.get("/offers")
def list_offers(params: ListQuery = Depends(), filters: Dict[str, Any] = Depends(product_filters)):
    filters["has_offer"] = True
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Products with offers retrieved successfully")


@router.get("/category/{category_id}")
def list_by_category(category_id: str, params: ListQuery = Depends(),
                     filters: Dict[str, Any] = Depends(product_filters)):
    filters["category_id"] = category_id
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Products retrieved successfully")


@router.get("/{product_id}")
def read_product(product_id: str):
    return success("Product retrieved successfully", get_product(product_id))


# Admin routes

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def add_product(request: Request):
    data, upload = await read_payload(request, ProductCreate)
    image_url = images.upload_image(upload, "products") if upload else None
    product = create_product(data, image_url)
    logger.info("Created product %s", product["id"])
    return success("Product created successfully", product)


@router.put("/{product_id}", dependencies=[Depends(require_admin)])
async def edit_product(product_id: str, request: Request):
    data, upload = await read_payload(request, ProductUpdate)
    image_url = None
    if upload:
        old = get_product(product_id)
        images.delete_image(old.get("image_url"))
        image_url = images.upload_image(upload, "products")
    return success("Product updated successfully", update_product(product_id, data, image_url))


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def remove_product(product_id: str):
    product = get_product(product_id)
    images.delete_image(product.get("image_url"))
    delete_product(product_id)
    return success("Product deleted successfully")
