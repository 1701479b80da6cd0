import math
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def generate_id(prefix: str = "id") -> str:
    """prefix_<epoch millis>_<first uuid4 segment>, e.g. prod_1732377600000_1a2b3c4d"""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def generate_slug(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def to_iso(value: datetime) -> str:
    # Fixed-width UTC strings so Mongo range queries compare lexicographically
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def success(message: str = "Success", data: Any = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message, "data": data}
    if meta:
        body["meta"] = meta
    return body


def paginated(items: List[dict], page: int, limit: int, total: int,
              message: str = "Data retrieved successfully") -> Dict[str, Any]:
    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
    return success(message, items, meta)
