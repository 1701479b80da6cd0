import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

import database
import images
from auth import require_admin
from errors import NotFoundError
from forms import ListQuery, read_payload
from schemas import BannerCreate, BannerUpdate
from utils import generate_id, now_iso, paginated, success

logger = logging.getLogger(__name__)

COLLECTION = "banner"

router = APIRouter(prefix="/banners", tags=["banners"])


def get_banner(banner_id: str) -> Dict[str, Any]:
    doc = database.find_one(COLLECTION, {"id": banner_id})
    if not doc:
        raise NotFoundError("Banner not found")
    return doc


@router.get("")
def list_banners(params: ListQuery = Depends(), is_active: Optional[bool] = None):
    q: Dict[str, Any] = {}
    if is_active is not None:
        q["is_active"] = is_active
    items, total = database.get_page(COLLECTION, q, **params.kwargs())
    return paginated(items, params.page, params.limit, total, "Banners retrieved successfully")


@router.get("/active")
def list_active_banners():
    items = database.get_documents(COLLECTION, {"is_active": True})
    return success("Active banners retrieved successfully", items)


@router.get("/{banner_id}")
def read_banner(banner_id: str):
    return success("Banner retrieved successfully", get_banner(banner_id))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def add_banner(request: Request):
    data, upload = await read_payload(request, BannerCreate)
    doc = data.model_dump()
    doc["id"] = generate_id("banner")
    if upload:
        doc["image_url"] = images.upload_image(upload, "banners")
    doc["created_at"] = now_iso()
    banner = database.create_document(COLLECTION, doc)
    return success("Banner created successfully", banner)


@router.put("/{banner_id}", dependencies=[Depends(require_admin)])
async def edit_banner(banner_id: str, request: Request):
    data, upload = await read_payload(request, BannerUpdate)
    current = get_banner(banner_id)
    changes = data.model_dump(exclude_unset=True)
    if upload:
        images.delete_image(current.get("image_url"))
        changes["image_url"] = images.upload_image(upload, "banners")
    banner = database.update_document(COLLECTION, {"id": banner_id}, changes)
    return success("Banner updated successfully", banner)


@router.delete("/{banner_id}", dependencies=[Depends(require_admin)])
def remove_banner(banner_id: str):
    banner = get_banner(banner_id)
    images.delete_image(banner.get("image_url"))
    database.delete_document(COLLECTION, {"id": banner_id})
    logger.info("Deleted banner %s", banner_id)
    return success("Banner deleted successfully")
