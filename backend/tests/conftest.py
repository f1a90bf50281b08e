"""Shared fixtures: an in-memory coffee shop with two weeks of rota and six orders.

Rota (2024-01-01 is a Monday):

    week of 01-01   Alice 27h, Bob 20h (incl. an overnight shift), Cara 27h, Dan 8h
    week of 01-08   Alice 8h, Bob 7h, Dan 8h

Orders (all prices per unit):

    O1 01-02 08:15  Latte x2, Muffin x1      Ann   in
    O2 01-02 13:30  Latte x3                 Ben   out
    O3 01-03 18:45  Latte x1, Espresso x4    Ann   in
    O4 01-03 22:10  Tea x1                   -     out
    O5 02-05 09:05  Espresso x2, Muffin x2   Ben   in
    O6 01-04 10:00  Cold Brew x16            Cara  in
"""
from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path

import pytest
from sqlmodel import Session

from app.config import CONFIG_PATH, DATABASE_URL_ENV, load_settings
from application.report_service import ReportRunner
from domain.rota import ShiftTemplate
from infrastructure.database import create_db_engine, init_db
from infrastructure.models import (
    IngredientModel,
    InventoryModel,
    MenuItemModel,
    OrderLineModel,
    RecipeModel,
    RotaModel,
    ShiftModel,
    StaffModel,
)


STAFF = [
    ("S1", "Alice", "Smith", "Barista", 10.0),
    ("S2", "Bob", "Jones", "Barista", 12.0),
    ("S3", "Cara", "Diaz", "Manager", 15.0),
    ("S4", "Dan", "Lee", "Barista", 10.0),
]

SHIFTS = [
    ("SH1", time(7, 0), time(15, 0)),    # 8h
    ("SH2", time(14, 0), time(22, 0)),   # 8h
    ("SH3", time(8, 0), time(17, 30)),   # 9.5h
    ("SH4", time(22, 0), time(2, 0)),    # 4h, ends the next day
    ("SH5", time(10, 0), time(13, 0)),   # 3h
]

ROTA = [
    # week of 2024-01-01
    (date(2024, 1, 1), "SH1", "S1"),
    (date(2024, 1, 2), "SH1", "S1"),
    (date(2024, 1, 3), "SH1", "S1"),
    (date(2024, 1, 4), "SH5", "S1"),
    (date(2024, 1, 1), "SH2", "S2"),
    (date(2024, 1, 2), "SH2", "S2"),
    (date(2024, 1, 3), "SH4", "S2"),
    (date(2024, 1, 1), "SH3", "S3"),
    (date(2024, 1, 2), "SH3", "S3"),
    (date(2024, 1, 4), "SH1", "S3"),
    (date(2024, 1, 1), "SH2", "S4"),
    # week of 2024-01-08
    (date(2024, 1, 8), "SH1", "S1"),
    (date(2024, 1, 8), "SH1", "S4"),
    (date(2024, 1, 8), "SH5", "S2"),
    (date(2024, 1, 9), "SH4", "S2"),
]

ITEMS = [
    ("I1", "Latte", "Coffee", 4.0),
    ("I2", "Espresso", "Coffee", 2.5),
    ("I3", "Muffin", "Bakery", 3.0),
    ("I4", "Tea", "Tea", 2.0),
    ("I5", "Scone", "Bakery", 2.75),
    ("I6", "Cold Brew", "Coffee", 5.0),
]

ORDERS = [
    ("O1", datetime(2024, 1, 2, 8, 15), "I1", 2, "Ann", "in"),
    ("O1", datetime(2024, 1, 2, 8, 15), "I3", 1, "Ann", "in"),
    ("O2", datetime(2024, 1, 2, 13, 30), "I1", 3, "Ben", "out"),
    ("O3", datetime(2024, 1, 3, 18, 45), "I1", 1, "Ann", "in"),
    ("O3", datetime(2024, 1, 3, 18, 45), "I2", 4, "Ann", "in"),
    ("O4", datetime(2024, 1, 3, 22, 10), "I4", 1, None, "out"),
    ("O5", datetime(2024, 2, 5, 9, 5), "I2", 2, "Ben", "in"),
    ("O5", datetime(2024, 2, 5, 9, 5), "I3", 2, "Ben", "in"),
    ("O6", datetime(2024, 1, 4, 10, 0), "I6", 16, "Cara", "in"),
]

INGREDIENTS = [
    ("G1", "Coffee beans", 800.0, "g", 20.0),
    ("G2", "Milk", 1000.0, "ml", 1.5),
    ("G3", "Flour", 1000.0, "g", 2.0),
    ("G4", "Tea leaves", 100.0, "g", 5.0),
    ("G5", "Sugar", 1000.0, "g", 1.0),
]

RECIPES = [
    ("I1", "G1", 18.0),
    ("I1", "G2", 200.0),
    ("I2", "G1", 18.0),
    ("I6", "G1", 30.0),
    ("I3", "G3", 100.0),
    ("I4", "G4", 3.0),
]

INVENTORY = [
    ("V1", "G1", 1.0),
    ("V2", "G2", 2.0),
    ("V3", "G3", 1.0),
    ("V4", "G4", 1.0),
]


def seed_shop(engine) -> None:
    with Session(engine) as session:
        for staff_id, first, last, position, salary in STAFF:
            session.add(
                StaffModel(
                    staff_id=staff_id,
                    first_name=first,
                    last_name=last,
                    position=position,
                    sal_per_hour=salary,
                )
            )
        for shift_id, start, end in SHIFTS:
            session.add(ShiftModel(shift_id=shift_id, start_time=start, end_time=end))
        for index, (rota_date, shift_id, staff_id) in enumerate(ROTA, start=1):
            session.add(
                RotaModel(
                    rota_id=f"R{index:03d}",
                    rota_date=rota_date,
                    shift_id=shift_id,
                    staff_id=staff_id,
                )
            )
        for item_id, name, category, price in ITEMS:
            session.add(MenuItemModel(item_id=item_id, item_name=name, item_cat=category, item_price=price))
        for order_id, created_at, item_id, quantity, customer, in_or_out in ORDERS:
            session.add(
                OrderLineModel(
                    order_id=order_id,
                    created_at=created_at,
                    item_id=item_id,
                    quantity=quantity,
                    cust_name=customer,
                    in_or_out=in_or_out,
                )
            )
        for ing_id, name, weight, meas, price in INGREDIENTS:
            session.add(
                IngredientModel(ing_id=ing_id, ing_name=name, ing_weight=weight, ing_meas=meas, ing_price=price)
            )
        for item_id, ing_id, quantity in RECIPES:
            session.add(RecipeModel(item_id=item_id, ing_id=ing_id, quantity=quantity))
        for inv_id, ing_id, quantity in INVENTORY:
            session.add(InventoryModel(inv_id=inv_id, ing_id=ing_id, quantity=quantity))
        session.commit()


@pytest.fixture(autouse=True)
def _no_database_override(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


@pytest.fixture
def settings():
    return load_settings(CONFIG_PATH)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    seed_shop(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def runner(settings, engine):
    return ReportRunner(settings, engine)


@pytest.fixture
def shop_db_url(tmp_path: Path) -> str:
    """A seeded SQLite file, for code paths that build their own engine."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_db_engine(url)
    init_db(engine)
    seed_shop(engine)
    engine.dispose()
    return url


@pytest.fixture
def rota_entries():
    return list(ROTA)


@pytest.fixture
def shift_templates():
    return {shift_id: ShiftTemplate(shift_id, start, end) for shift_id, start, end in SHIFTS}
