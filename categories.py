import logging
import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

import database
import images
from auth import require_admin
from errors import ConflictError, NotFoundError
from forms import ListQuery, read_payload
from schemas import CategoryCreate, CategoryUpdate
from utils import generate_id, generate_slug, now_iso, paginated, success

logger = logging.getLogger(__name__)

COLLECTION = "category"

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category(category_id: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"id": category_id})
    if not doc:
        raise NotFoundError("Category not found")
    return doc


def get_category_by_slug(slug: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"slug": slug})
    if not doc:
        raise NotFoundError("Category not found")
    return doc


def create_category(data: CategoryCreate, image_url: Optional[str] = None) -> Dict[str, Any]:
    slug = generate_slug(data.name)
    if database.find_one(COLLECTION, {"slug": slug}):
        raise ConflictError("Category with this name already exists")

    doc = data.model_dump()
    doc.update({
        "id": generate_id("cat"),
        "slug": slug,
        "image_url": image_url or data.image_url or "",
        "created_at": now_iso(),
    })
    return database.create_document(COLLECTION, doc)


def update_category(category_id: str, data: CategoryUpdate, image_url: Optional[str] = None) -> Dict[str, Any]:
    current = get_category(category_id)
    changes = data.model_dump(exclude_unset=True)

    # Renaming moves the slug, which must stay unique
    if changes.get("name") and changes["name"] != current["name"]:
        slug = generate_slug(changes["name"])
        if database.find_one(COLLECTION, {"slug": slug, "id": {"$ne": category_id}}):
            raise ConflictError("Category with this name already exists")
        changes["slug"] = slug

    if image_url:
        changes["image_url"] = image_url
    return database.update_document(COLLECTION, {"id": category_id}, changes)


def delete_category(category_id: str) -> None:
    if not database.delete_document(COLLECTION, {"id": category_id}):
        raise NotFoundError("Category not found")


# Public routes

@router.get("")
def list_categories(params: ListQuery = Depends(), search: Optional[str] = None, is_active: Optional[bool] = None):
    q: Dict[str, Any] = {}
    if search:
        q["name"] = {"$regex": re.escape(search), "$options": "i"}
    if is_active is not None:
        q["is_active"] = is_active
    items, total = database.get_page(COLLECTION, q, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Categories retrieved successfully")


@router.get("/active")
def list_active_categories():
    items = database.get_documents(COLLECTION, {"is_active": True})
    return success("Active categories retrieved successfully", items)


@router.get("/slug/{slug}")
def read_category_by_slug(slug: str):
    return success("Category retrieved successfully", get_category_by_slug(slug))


@router.get("/{category_id}")
def read_category(category_id: str):
    return success("Category retrieved successfully", get_category(category_id))


# Admin routes

@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def add_category(request: Request):
    data, upload = await read_payload(request, CategoryCreate)
    image_url = images.upload_image(upload, "categories") if upload else None
    category = create_category(data, image_url)
    logger.info("Created category %s (%s)", category["id"], category["slug"])
    return success("Category created successfully", category)


@router.put("/{category_id}", dependencies=[Depends(require_admin)])
async def edit_category(category_id: str, request: Request):
    data, upload = await read_payload(request, CategoryUpdate)
    image_url = None
    if upload:
        old = get_category(category_id)
        images.delete_image(old.get("image_url"))
        image_url = images.upload_image(upload, "categories")
    return success("Category updated successfully", update_category(category_id, data, image_url))


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def remove_category(category_id: str):
    category = get_category(category_id)
    images.delete_image(category.get("image_url"))
    delete_category(category_id)
    return success("Category deleted successfully")
