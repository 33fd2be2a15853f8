import importlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from giftcart.config import settings

log = logging.getLogger("giftcart.db")

DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# every model module must be imported before create_all so metadata is populated
MODEL_MODULES = [
    "giftcart.models.vendor",
    "giftcart.models.product",
    "giftcart.models.cart",
    "giftcart.models.cart_item",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    With ``reset=True`` all tables are dropped first; tests use this to start
    from an empty store.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("Resetting database tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
