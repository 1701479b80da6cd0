"""
Image storage

All images live on Cloudinary; nothing is written to local disk. Uploads
return the public secure URL that gets stored on the record, deletes derive
the public id back from that URL.
"""

import logging
import os
import re
from typing import Optional

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from config import settings
from errors import BadRequestError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
MAX_FILE_SIZE = 5 * 1024 * 1024
PLACEHOLDER_URL = "https://example.com/placeholder.jpg"


def configure_cloudinary() -> bool:
    if not (settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET):
        logger.error("Cloudinary credentials missing: CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET")
        return False
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )
    logger.info("Cloudinary configured for cloud %s", settings.CLOUDINARY_CLOUD_NAME)
    return True


def check_image(filename: Optional[str], content_type: Optional[str], size: int) -> None:
    ext = os.path.splitext(filename or "")[1].lower()
    subtype = (content_type or "").split("/")[-1].lower()
    if ext not in ALLOWED_EXTENSIONS or "." + subtype not in ALLOWED_EXTENSIONS:
        raise BadRequestError("Only image files are allowed (jpeg, jpg, png, gif, webp)")
    if size > MAX_FILE_SIZE:
        raise BadRequestError("Image must be 5MB or smaller")


def upload_image(file: UploadFile, folder: str) -> str:
    content = file.file.read()
    check_image(file.filename, file.content_type, len(content))

    if settings.DISABLE_CLOUDINARY:
        return PLACEHOLDER_URL

    try:
        result = cloudinary.uploader.upload(
            content,
            folder=f"{settings.CLOUDINARY_FOLDER}/{folder}",
            resource_type="auto",
            transformation=[
                {"width": 1000, "height": 1000, "crop": "limit"},
                {"quality": "auto"},
                {"fetch_format": "auto"},
            ],
        )
    except Exception:
        logger.exception("Cloudinary upload failed for %s", file.filename)
        raise BadRequestError("Error uploading image to Cloudinary")
    return result["secure_url"]


def public_id_from_url(image_url: str) -> str:
    """
    .../image/upload/v1712345678/storefront/products/abc.jpg -> storefront/products/abc

    URLs without an /upload/ segment fall back to the last folder plus filename.
    """
    if "/upload/" in image_url:
        segments = image_url.split("/upload/", 1)[1].split("/")
        if re.fullmatch(r"v\d+", segments[0]):
            segments = segments[1:]
    else:
        segments = image_url.rstrip("/").split("/")[-2:]
    segments[-1] = segments[-1].rsplit(".", 1)[0]
    return "/".join(segments)


def delete_image(image_url: Optional[str]) -> None:
    if not image_url or settings.DISABLE_CLOUDINARY:
        return
    public_id = public_id_from_url(image_url)
    try:
        cloudinary.uploader.destroy(public_id)
    except Exception:
        logger.exception("Error deleting image %s from Cloudinary", public_id)
