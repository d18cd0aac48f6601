import os

# must be set before anything imports app.infrastructure.db
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORE_BACKEND"] = "sql"

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core_settings import Settings
from app.domain.entities import RawInvoice, RawLineItem
from app.domain.models import Base
from app.infrastructure.local_store import LocalJsonPersistence
from app.infrastructure.sql_store import SqlAlchemyPersistence

@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield SqlAlchemyPersistence(db)
    db.close()
    engine.dispose()

@pytest.fixture
def local_store(tmp_path):
    return LocalJsonPersistence(tmp_path / "billing_store.json")

@pytest.fixture(params=["sql_store", "local_store"])
def store(request):
    return request.getfixturevalue(request.param)

@pytest.fixture
def settings():
    return Settings(INVOICE_PREFIX="K", FINANCIAL_YEAR_START_MONTH=4, DEFAULT_LOW_STOCK_THRESHOLD=10)

@pytest.fixture
def clock():
    return lambda: datetime(2024, 6, 15, 10, 30)

@pytest.fixture
def make_raw():
    def _make(items=None, **overrides):
        fields = dict(
            customer_name="Asha Traders",
            customer_address="12 MG Road, Bengaluru",
            customer_mobile="9876543210",
            customer_gst_number="",
            tax_rate_percent="18",
            terms_text="Goods once sold will not be taken back.",
        )
        fields.update(overrides)
        if items is None:
            items = [RawLineItem(description="Router", quantity="2", rate_inclusive_of_tax="118.00")]
        return RawInvoice(items=items, **fields)
    return _make
