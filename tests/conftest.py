import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoiceflow.db")
os.environ.setdefault("CORS_ORIGINS", "*")
os.environ.setdefault("ENFORCE_FORWARD_TRANSITIONS", "false")

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from invoiceflow.config import settings  # noqa: E402
from invoiceflow.db import Base, SessionLocal, engine, init_db  # noqa: E402
from invoiceflow.main import app  # noqa: E402
from invoiceflow.store import KeyValueStore  # noqa: E402

PREFIX = settings.api_prefix


def _reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    init_db()


@pytest.fixture(autouse=True)
def clean_db():
    _reset_db()
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def store():
    with SessionLocal() as db:
        yield KeyValueStore(db)


@pytest.fixture()
def invoice_body() -> dict:
    return {
        "senderName": "Alice",
        "company": "Acme",
        "invoiceNo": "INV-001",
        "date": "2024-01-01",
        "supplier": "Globex",
        "items": [{"description": "Freight", "price": 100, "vat": 0, "total": 0}],
    }
