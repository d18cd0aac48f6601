from functools import lru_cache
from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.core_settings import get_settings
from app.domain.models import Base
from .persistence import PersistenceAdapter
from .sql_store import SqlAlchemyPersistence
from .local_store import LocalJsonPersistence

settings = get_settings()
DATABASE_URL = settings.database_url
engine_options = {}
if DATABASE_URL.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every thread gets its own empty database
        engine_options["poolclass"] = StaticPool
engine = create_engine(DATABASE_URL, echo=False, future=True, **engine_options)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def init_models():
    Base.metadata.create_all(engine)

@lru_cache
def get_local_store() -> LocalJsonPersistence:
    return LocalJsonPersistence(settings.LOCAL_STORE_PATH)

def get_persistence() -> Iterator[PersistenceAdapter]:
    """Request-scoped store for the backend chosen by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "local":
        yield get_local_store()
        return
    db = SessionLocal()
    try:
        yield SqlAlchemyPersistence(db)
    finally:
        db.close()

def ping_store() -> None:
    """Readiness probe for the configured backend."""
    if settings.STORE_BACKEND == "local":
        get_local_store().ping()
        return
    with SessionLocal() as db:
        SqlAlchemyPersistence(db).ping()
