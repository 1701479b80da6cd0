import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

import database
from auth import require_admin
from errors import BadRequestError, NotFoundError
from forms import ListQuery
from schemas import OrderCreate, OrderStatus, OrderStatusUpdate
from utils import generate_id, now_iso, paginated, success, to_iso

logger = logging.getLogger(__name__)

COLLECTION = "order"

VALID_STATUSES = [s.value for s in OrderStatus]
STAT_STATUSES = ["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]

router = APIRouter(prefix="/orders", tags=["orders"])


def order_filters(status: Optional[str] = None, user_id: Optional[str] = None,
                  start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> Dict[str, Any]:
    q: Dict[str, Any] = {}
    if status:
        q["status"] = status
    if user_id:
        q["user_id"] = user_id
    if start_date or end_date:
        q["created_at"] = {}
        if start_date:
            q["created_at"]["$gte"] = to_iso(start_date)
        if end_date:
            q["created_at"]["$lte"] = to_iso(end_date)
    return q


def get_order(order_id: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"id": order_id})
    if not doc:
        raise NotFoundError("Order not found")
    return doc


def create_order(data: OrderCreate) -> Dict[str, Any]:
    if not data.items:
        raise BadRequestError("Order must have at least one item")

    created_at = now_iso()
    doc = data.model_dump()
    if data.total_amount is None:
        doc["total_amount"] = round(sum(i.price * i.quantity for i in data.items), 2)
    doc.update({
        "id": generate_id("order"),
        "status": OrderStatus.pending.value,
        "status_history": [{"status": OrderStatus.pending.value, "timestamp": created_at}],
        "created_at": created_at,
    })
    return database.create_document(COLLECTION, doc)


def update_order_status(order_id: str, status: str, note: Optional[str] = None,
                        location: Optional[str] = None) -> Dict[str, Any]:
    if status not in VALID_STATUSES:
        raise BadRequestError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")

    entry: Dict[str, Any] = {"status": status, "timestamp": now_iso()}
    if note:
        entry["note"] = note
    if location:
        entry["location"] = location

    col = database.get_collection(COLLECTION)
    res = col.update_one({"id": order_id}, {"$set": {"status": status}, "$push": {"status_history": entry}})
    if res.matched_count == 0:
        raise NotFoundError("Order not found")
    logger.info("Order %s moved to %s", order_id, status)
    return get_order(order_id)


def order_statistics() -> Dict[str, Any]:
    col = database.get_collection(COLLECTION)
    stats: Dict[str, Any] = {"total_orders": col.count_documents({})}
    for status in STAT_STATUSES:
        stats[f"{status}_orders"] = col.count_documents({"status": status})
    revenue = list(col.aggregate([
        {"$match": {"status": {"$ne": "cancelled"}}},
        {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}},
    ]))
    stats["total_revenue"] = revenue[0]["total"] if revenue else 0
    return stats


# Public routes

@router.post("", status_code=201)
def place_order(payload: OrderCreate):
    order = create_order(payload)
    logger.info("Order %s placed with %d items", order["id"], len(order["items"]))
    return success("Order created successfully", order)


@router.get("/track/{order_id}")
def track_order(order_id: str):
    order = get_order(order_id)
    return success("Order tracking info retrieved successfully", {
        "order_id": order["id"],
        "status": order["status"],
        "status_history": order.get("status_history", []),
        "customer_name": order["name"],
        "total_amount": order["total_amount"],
        "created_at": order["created_at"],
    })


# Admin routes

@router.get("", dependencies=[Depends(require_admin)])
def list_orders(params: ListQuery = Depends(), filters: Dict[str, Any] = Depends(order_filters)):
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Orders retrieved successfully")


@router.get("/stats", dependencies=[Depends(require_admin)])
def read_statistics():
    return success("Order statistics retrieved successfully", order_statistics())


@router.get("/status/{status}", dependencies=[Depends(require_admin)])
def list_by_status(status: str, params: ListQuery = Depends(), filters: Dict[str, Any] = Depends(order_filters)):
    filters["status"] = status
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Orders retrieved successfully")


@router.get("/user/{user_id}", dependencies=[Depends(require_admin)])
def list_by_user(user_id: str, params: ListQuery = Depends(), filters: Dict[str, Any] = Depends(order_filters)):
    filters["user_id"] = user_id
    items, total = database.get_page(COLLECTION, filters, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "User orders retrieved successfully")


@router.get("/{order_id}", dependencies=[Depends(require_admin)])
def read_order(order_id: str):
    return success("Order retrieved successfully", get_order(order_id))


@router.get("/{order_id}/status", dependencies=[Depends(require_admin)])
def read_status_history(order_id: str):
    order = get_order(order_id)
    return success("Order status history retrieved successfully", {
        "id": order["id"],
        "status": order["status"],
        "status_history": order.get("status_history", []),
    })


@router.put("/{order_id}/status", dependencies=[Depends(require_admin)])
def change_status(order_id: str, payload: OrderStatusUpdate):
    order = update_order_status(order_id, payload.status.value, payload.note, payload.location)
    return success("Order status updated successfully", order)
