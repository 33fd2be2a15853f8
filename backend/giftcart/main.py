import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from giftcart.api.health import router as health_router
from giftcart.api.routes_cart import router as cart_router
from giftcart.api.routes_shop import router as shop_router
from giftcart.cache import TTLCache
from giftcart.config import settings
from giftcart.db import SessionLocal, init_db
from giftcart.logging_setup import configure_logging
from giftcart.services.cart_service import CartService

configure_logging()
log = logging.getLogger("giftcart.main")


def expire_job(cache: TTLCache = None):
    db = SessionLocal()
    try:
        ids = CartService(db, cache=cache).expire_abandoned()
        if ids:
            log.info("marked %d idle carts abandoned", len(ids))
    except Exception:
        log.exception("abandoned cart expiry failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            expire_job,
            "interval",
            seconds=settings.CART_EXPIRY_INTERVAL_SECONDS,
            id="expire_abandoned_carts",
            kwargs={"cache": app.state.cart_cache},
        )
        scheduler.start()

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Gift Registry Cart - Backend", version="0.1.0", lifespan=lifespan)

app.state.cart_cache = TTLCache(
    ttl_seconds=settings.CART_CACHE_SECONDS,
    max_entries=settings.CART_CACHE_MAX_ENTRIES,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(cart_router, tags=["cart"])

app.include_router(shop_router, tags=["shop"])
