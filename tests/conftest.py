import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("ACCESS_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, select  # noqa: E402

from coffeeshop import crud  # noqa: E402
from coffeeshop.database import engine  # noqa: E402
from coffeeshop.main import app  # noqa: E402
from coffeeshop.models import MenuItem  # noqa: E402


@pytest.fixture
def fresh_db():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield engine


@pytest.fixture
def session(fresh_db):
    with Session(fresh_db) as session:
        crud.ensure_default_menu(session)
        yield session


@pytest.fixture
def client(fresh_db):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def menu_item(session):
    def lookup(name: str) -> MenuItem:
        return session.exec(select(MenuItem).where(MenuItem.name == name)).one()

    return lookup


def order_line(**overrides) -> dict:
    data = {
        "menu_item_id": 7,
        "item_name": "Latte",
        "quantity": 1,
        "unit_price_cents": 8500,
    }
    data.update(overrides)
    return data
