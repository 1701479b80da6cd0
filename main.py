import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import auth
import banners
import categories
import coupons
import database
import flash_sales
import images
import orders
import products
from config import settings
from errors import AppError
from forms import format_errors

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.ensure_indexes()
    if not settings.DISABLE_CLOUDINARY:
        images.configure_cloudinary()
    logger.info("Storefront API started (%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(
    title="Storefront E-Commerce API",
    version="1.0.0",
    docs_url="/api-docs",
    openapi_url="/api-docs.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


if settings.is_development:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)


# Error envelope

def _error(status_code: int, message: str, exc: Exception = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if exc is not None and settings.is_development:
        body["error"] = {"name": type(exc).__name__, "message": str(exc)}
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, format_errors(exc.errors()))


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return _error(409, "Duplicate field value entered")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error(404, f"Route not found: {request.url.path}")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal Server Error", exc)


# Routes

api = APIRouter(prefix="/api/v1")


@api.get("")
def api_index():
    return {"success": True, "message": "Storefront E-Commerce API - v1", "documentation": "/api-docs"}


@api.get("/health")
def health():
    response = {
        "success": True,
        "message": "API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "❌ Not Available",
        "collections": [],
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            try:
                response["collections"] = database.db.list_collection_names()[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
        else:
            response["database"] = "⚠️ Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


for module in (auth, products, categories, orders, banners, coupons, flash_sales):
    api.include_router(module.router)

app.include_router(api)


@app.get("/")
def read_root():
    return {
        "success": True,
        "message": "Storefront E-Commerce API",
        "version": app.version,
        "documentation": "/api-docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
