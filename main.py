import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
import orders
import products
import users
from config import settings
from errors import AppError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await database.init_db()
    except Exception:
        logger.exception("Could not connect to MongoDB at startup")
        raise
    logger.info("Image storage backend: %s", settings.IMAGE_STORAGE_BACKEND)
    yield
    database.close_db()


app = FastAPI(title="Food Storefront API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(products.router)
app.include_router(orders.router)

if settings.IMAGE_STORAGE_BACKEND.lower() == "local":
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


def available_routes() -> list[str]:
    routes = []
    for path, operations in app.openapi()["paths"].items():
        for method in sorted(operations):
            routes.append(f"{method.upper()} {path}")
    return routes


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request data"
    return JSONResponse(status_code=400, content=error_body(message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code in (404, 405) and exc.detail in ("Not Found", "Method Not Allowed"):
        return JSONResponse(
            status_code=404,
            content=error_body(
                f"Route not found: {request.method} {request.url.path}",
                availableRoutes=available_routes(),
            ),
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


@app.get("/")
async def root():
    return {
        "message": "Food Storefront API Server",
        "status": "running",
        "version": app.version,
        "database": "connected" if await database.ping() else "disconnected",
        "imageStorage": settings.IMAGE_STORAGE_BACKEND,
        "endpoints": available_routes(),
    }


@app.get("/api/test")
async def test():
    return {
        "success": True,
        "message": "Food Storefront API working",
        "timestamp": database.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "database": "connected" if await database.ping() else "disconnected",
        "cloudinary": "configured" if settings.cloudinary_configured else "not configured",
    }


@app.get("/api/health")
async def health():
    return {
        "status": "healthy",
        "database": "connected" if await database.ping() else "disconnected",
        "imageStorage": settings.IMAGE_STORAGE_BACKEND,
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "timestamp": database.utcnow().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
