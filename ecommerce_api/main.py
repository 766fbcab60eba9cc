from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ecommerce_api import __version__
from ecommerce_api.auth import router as auth_router
from ecommerce_api.cart_details import router as cart_details_router
from ecommerce_api.carts import router as carts_router
from ecommerce_api.core import config, db, storage
from ecommerce_api.core.log import configure_logging
from ecommerce_api.groups import router as groups_router
from ecommerce_api.music_genres import router as music_genres_router
from ecommerce_api.orders import router as orders_router
from ecommerce_api.records import router as records_router
from ecommerce_api.users import router as users_router

configure_logging()
logger = logging.getLogger("ecommerce_api.http")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    logger.info("db_pool_ready")
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(
    title="eCommerceDs API",
    description="Records store backend: catalog, carts, orders.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

# Allow the storefront dev server to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Authorization", "Location"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


app.mount("/img", StaticFiles(directory=str(storage.image_root())), name="img")

app.include_router(auth_router.router, tags=["auth"])
app.include_router(users_router.router, tags=["users"])
app.include_router(music_genres_router.router, tags=["music-genres"])
app.include_router(groups_router.router, tags=["groups"])
app.include_router(records_router.router, tags=["records"])
app.include_router(carts_router.router, tags=["carts"])
app.include_router(cart_details_router.router, tags=["cart-details"])
app.include_router(orders_router.router, tags=["orders"])


@app.get("/health")
async def health() -> dict:
    database_ok = await db.ping()
    return {"status": "ok" if database_ok else "degraded", "database": database_ok}


@app.get("/")
def root() -> dict:
    return {"message": "API working. Visit /api-docs for documentation"}
