import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

import database
from auth import require_admin
from errors import BadRequestError, ConflictError, NotFoundError
from forms import ListQuery
from schemas import CouponCheck, CouponCreate, CouponUpdate
from utils import now_iso, paginated, success, to_iso

logger = logging.getLogger(__name__)

COLLECTION = "coupon"

router = APIRouter(prefix="/coupons", tags=["coupons"])


def get_coupon(code: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"code": code.upper()})
    if not doc:
        raise NotFoundError("Coupon not found")
    return doc


def create_coupon(data: CouponCreate) -> Dict[str, Any]:
    if database.find_one(COLLECTION, {"code": data.code}):
        raise ConflictError("Coupon code already exists")
    if to_iso(data.valid_to) <= to_iso(data.valid_from):
        raise BadRequestError("Valid to date must be after valid from date")

    doc = data.model_dump()
    doc["valid_from"] = to_iso(data.valid_from)
    doc["valid_to"] = to_iso(data.valid_to)
    doc["created_at"] = now_iso()
    return database.create_document(COLLECTION, doc)


def update_coupon(code: str, data: CouponUpdate) -> Dict[str, Any]:
    code = code.upper()
    current = get_coupon(code)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    new_code = changes.get("code")
    if new_code and new_code != code:
        if database.find_one(COLLECTION, {"code": new_code}):
            raise ConflictError("Coupon code already exists")

    for field in ("valid_from", "valid_to"):
        if field in changes:
            changes[field] = to_iso(changes[field])
    if "valid_from" in changes or "valid_to" in changes:
        valid_from = changes.get("valid_from") or current["valid_from"]
        valid_to = changes.get("valid_to") or current["valid_to"]
        if valid_to <= valid_from:
            raise BadRequestError("Valid to date must be after valid from date")

    if changes:
        database.get_collection(COLLECTION).update_one({"code": code}, {"$set": changes})
    return get_coupon(new_code or code)


def delete_coupon(code: str) -> None:
    if not database.delete_document(COLLECTION, {"code": code.upper()}):
        raise NotFoundError("Coupon not found")


def check_coupon(code: str) -> Dict[str, Any]:
    """Raises unless the coupon is active and today falls inside its window."""
    coupon = get_coupon(code)
    if not coupon.get("is_active"):
        raise BadRequestError("Coupon is not active")
    now = now_iso()
    if now < coupon["valid_from"]:
        raise BadRequestError("Coupon is not yet valid")
    if now > coupon["valid_to"]:
        raise BadRequestError("Coupon has expired")
    return {"valid": True, "discount_amount": coupon["discount_amount"], "code": coupon["code"]}


# Public routes

@router.get("/active")
def list_active_coupons():
    now = now_iso()
    items = database.get_documents(COLLECTION, {
        "is_active": True,
        "valid_from": {"$lte": now},
        "valid_to": {"$gte": now},
    })
    return success("Active coupons retrieved successfully", items)


@router.post("/validate")
def validate_coupon(payload: CouponCheck):
    return success("Coupon is valid", check_coupon(payload.code))


# Admin routes

@router.get("", dependencies=[Depends(require_admin)])
def list_coupons(params: ListQuery = Depends(), is_active: Optional[bool] = None):
    q: Dict[str, Any] = {}
    if is_active is not None:
        q["is_active"] = is_active
    items, total = database.get_page(COLLECTION, q, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Coupons retrieved successfully")


@router.get("/{code}", dependencies=[Depends(require_admin)])
def read_coupon(code: str):
    return success("Coupon retrieved successfully", get_coupon(code))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_coupon(payload: CouponCreate):
    coupon = create_coupon(payload)
    logger.info("Created coupon %s", coupon["code"])
    return success("Coupon created successfully", coupon)


@router.put("/{code}", dependencies=[Depends(require_admin)])
def edit_coupon(code: str, payload: CouponUpdate):
    return success("Coupon updated successfully", update_coupon(code, payload))


@router.delete("/{code}", dependencies=[Depends(require_admin)])
def remove_coupon(code: str):
    delete_coupon(code)
    return success("Coupon deleted successfully")
