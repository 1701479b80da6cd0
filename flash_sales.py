"""
Flash sales

A flash sale is a time-boxed price on one product with a bounded stock
counter: current_stock counts units sold and may never pass max_stock.
Stock updates are check-then-set on a single document; concurrent
increments can race.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

import database
from auth import require_admin
from errors import BadRequestError, ConflictError, NotFoundError
from forms import ListQuery
from schemas import FlashSaleCreate, FlashSaleUpdate, StockIncrement
from utils import generate_id, now_iso, paginated, success, to_iso

logger = logging.getLogger(__name__)

COLLECTION = "flashsale"

router = APIRouter(prefix="/flash-sales", tags=["flash-sales"])


def get_flash_sale(sale_id: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"id": sale_id})
    if not doc:
        raise NotFoundError("Flash sale not found")
    return doc


def get_active_for_product(product_id: str) -> Optional[Dict[str, Any]]:
    return database.find_one(COLLECTION, {"product_id": product_id, "is_active": True})


def create_flash_sale(data: FlashSaleCreate) -> Dict[str, Any]:
    if to_iso(data.end_time) <= to_iso(data.start_time):
        raise BadRequestError("End time must be after start time")

    created_at = now_iso()
    existing = database.find_one(COLLECTION, {
        "product_id": data.product_id,
        "is_active": True,
        "end_time": {"$gte": created_at},
    })
    if existing:
        raise ConflictError("Product already has an active flash sale")

    doc = data.model_dump()
    doc.update({
        "id": generate_id("flash"),
        "start_time": to_iso(data.start_time),
        "end_time": to_iso(data.end_time),
        "current_stock": 0,
        "created_at": created_at,
    })
    return database.create_document(COLLECTION, doc)


def update_flash_sale(sale_id: str, data: FlashSaleUpdate) -> Dict[str, Any]:
    sale = get_flash_sale(sale_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = to_iso(changes[field])
    if "start_time" in changes or "end_time" in changes:
        start = changes.get("start_time", sale["start_time"])
        end = changes.get("end_time", sale["end_time"])
        if end <= start:
            raise BadRequestError("End time must be after start time")

    current = changes.get("current_stock")
    maximum = changes.get("max_stock")
    if current is not None and current > (maximum if maximum is not None else sale["max_stock"]):
        raise BadRequestError("Current stock cannot exceed max stock")
    if current is None and maximum is not None and sale["current_stock"] > maximum:
        raise BadRequestError("Max stock cannot be less than current stock")

    return database.update_document(COLLECTION, {"id": sale_id}, changes)


def increment_stock(sale_id: str, quantity: int = 1) -> Dict[str, Any]:
    sale = get_flash_sale(sale_id)
    new_stock = sale["current_stock"] + quantity
    if new_stock > sale["max_stock"]:
        raise BadRequestError("Flash sale stock limit reached")
    return database.update_document(COLLECTION, {"id": sale_id}, {"current_stock": new_stock})


def is_flash_sale_active(sale_id: str) -> bool:
    sale = database.find_one(COLLECTION, {"id": sale_id})
    if not sale or not sale.get("is_active"):
        return False
    return sale["start_time"] <= now_iso() <= sale["end_time"]


def deactivate_expired() -> int:
    res = database.get_collection(COLLECTION).update_many(
        {"is_active": True, "end_time": {"$lt": now_iso()}},
        {"$set": {"is_active": False}},
    )
    logger.info("Deactivated %d expired flash sales", res.modified_count)
    return res.modified_count


# Public routes

@router.get("")
def list_flash_sales(params: ListQuery = Depends(), product_id: Optional[str] = None,
                     is_active: Optional[bool] = None):
    q: Dict[str, Any] = {}
    if product_id:
        q["product_id"] = product_id
    if is_active is not None:
        q["is_active"] = is_active
    items, total = database.get_page(COLLECTION, q, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Flash sales retrieved successfully")


@router.get("/active")
def list_active_flash_sales():
    now = now_iso()
    items = database.get_documents(COLLECTION, {
        "is_active": True,
        "start_time": {"$lte": now},
        "end_time": {"$gte": now},
    })
    return success("Active flash sales retrieved successfully", items)


@router.get("/product/{product_id}")
def read_product_flash_sale(product_id: str):
    sale = get_active_for_product(product_id)
    if not sale:
        return success("No active flash sale for this product", None)
    return success("Flash sale retrieved successfully", sale)


@router.get("/{sale_id}")
def read_flash_sale(sale_id: str):
    return success("Flash sale retrieved successfully", get_flash_sale(sale_id))


@router.get("/{sale_id}/is-active")
def read_flash_sale_status(sale_id: str):
    return success("Flash sale status retrieved successfully", {"is_active": is_flash_sale_active(sale_id)})


# Admin routes

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_flash_sale(payload: FlashSaleCreate):
    sale = create_flash_sale(payload)
    logger.info("Created flash sale %s for product %s", sale["id"], sale["product_id"])
    return success("Flash sale created successfully", sale)


@router.post("/deactivate-expired", dependencies=[Depends(require_admin)])
def sweep_expired():
    count = deactivate_expired()
    return success(f"Deactivated {count} expired flash sales", {"count": count})


@router.put("/{sale_id}", dependencies=[Depends(require_admin)])
def edit_flash_sale(sale_id: str, payload: FlashSaleUpdate):
    return success("Flash sale updated successfully", update_flash_sale(sale_id, payload))


@router.delete("/{sale_id}", dependencies=[Depends(require_admin)])
def remove_flash_sale(sale_id: str):
    if not database.delete_document(COLLECTION, {"id": sale_id}):
        raise NotFoundError("Flash sale not found")
    return success("Flash sale deleted successfully")


@router.post("/{sale_id}/increment-stock", dependencies=[Depends(require_admin)])
def add_stock(sale_id: str, payload: Optional[StockIncrement] = None):
    quantity = payload.quantity if payload else 1
    return success("Flash sale stock incremented successfully", increment_stock(sale_id, quantity))
