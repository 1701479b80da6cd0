"""Request payload parsing shared by JSON and multipart endpoints."""

from typing import Any, Dict, Iterable, Literal, Optional, Tuple, Type, TypeVar

from fastapi import Query, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from errors import BadRequestError, ValidationError

M = TypeVar("M", bound=BaseModel)

FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


class ListQuery:
    """Standard pagination and sorting query parameters."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        sort_by: str = Query("created_at", alias="sortBy"),
        order: Literal["asc", "desc"] = Query("desc"),
    ):
        self.page = page
        self.limit = limit
        self.sort_by = sort_by
        self.order = order

    def kwargs(self) -> Dict[str, Any]:
        return {"page": self.page, "limit": self.limit, "sort_by": self.sort_by, "order": self.order}


def format_errors(errors: Iterable[Dict[str, Any]]) -> str:
    messages = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        messages.append(f"{'.'.join(loc)}: {err['msg']}" if loc else err["msg"])
    return ", ".join(messages)


def validate(model: Type[M], raw: Dict[str, Any]) -> M:
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(format_errors(e.errors()))


async def read_payload(request: Request, model: Type[M], file_field: str = "image") -> Tuple[M, Optional[UploadFile]]:
    """
    Validate the request body against `model`.

    Multipart and urlencoded forms are flattened to a dict of strings (empty
    values dropped) and the file sent under `file_field`, if any, is returned
    alongside. Pydantic's lax mode takes care of "true"/"12.5" style values.
    """
    content_type = request.headers.get("content-type", "")
    upload = None
    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        raw: Dict[str, Any] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == file_field and value.filename:
                    upload = value
            elif value != "":
                raw[key] = value
    else:
        body = await request.body()
        if not body:
            raw = {}
        else:
            try:
                raw = await request.json()
            except ValueError:
                raise BadRequestError("Invalid JSON body")
            if not isinstance(raw, dict):
                raise BadRequestError("Request body must be a JSON object")
    return validate(model, raw), upload
