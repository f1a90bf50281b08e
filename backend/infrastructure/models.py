"""SQLModel ORM tables for the coffee-shop schema."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from sqlmodel import SQLModel, Field


# Staffing -------------------------------------------------------------------
class StaffModel(SQLModel, table=True):
    __tablename__ = "staff"

    staff_id: str = Field(primary_key=True)
    first_name: str
    last_name: str
    position: str = Field(default="Barista")
    sal_per_hour: float = Field(default=0.0)


class ShiftModel(SQLModel, table=True):
    __tablename__ = "shift"

    shift_id: str = Field(primary_key=True)
    day_of_week: Optional[str] = Field(default=None)
    start_time: time
    end_time: time  # at or before start_time means the shift ends the next day


class RotaModel(SQLModel, table=True):
    __tablename__ = "rota"

    row_id: Optional[int] = Field(default=None, primary_key=True)
    rota_id: str = Field(index=True)
    rota_date: date = Field(index=True)
    shift_id: str = Field(foreign_key="shift.shift_id", index=True)
    staff_id: str = Field(foreign_key="staff.staff_id", index=True)


# Sales ----------------------------------------------------------------------
class MenuItemModel(SQLModel, table=True):
    __tablename__ = "items"

    item_id: str = Field(primary_key=True)
    sku: Optional[str] = Field(default=None)
    item_name: str
    item_cat: str = Field(default="")
    item_size: Optional[str] = Field(default=None)
    item_price: float


class OrderLineModel(SQLModel, table=True):
    """One ordered line item; several rows share an order_id."""
    __tablename__ = "orders"

    row_id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(index=True)
    created_at: datetime = Field(index=True)
    item_id: str = Field(foreign_key="items.item_id", index=True)
    quantity: int = Field(default=1)
    cust_name: Optional[str] = Field(default=None, index=True)
    in_or_out: Optional[str] = Field(default=None)


# Inventory ------------------------------------------------------------------
class IngredientModel(SQLModel, table=True):
    __tablename__ = "ingredients"

    ing_id: str = Field(primary_key=True)
    ing_name: str
    ing_weight: float  # units per pack, in ing_meas
    ing_meas: str = Field(default="units")
    ing_price: float = Field(default=0.0)  # per pack


class RecipeModel(SQLModel, table=True):
    __tablename__ = "recipe"

    row_id: Optional[int] = Field(default=None, primary_key=True)
    item_id: str = Field(foreign_key="items.item_id", index=True)
    ing_id: str = Field(foreign_key="ingredients.ing_id", index=True)
    quantity: float  # ing_meas units per item sold


class InventoryModel(SQLModel, table=True):
    __tablename__ = "inventory"

    inv_id: str = Field(primary_key=True)
    ing_id: str = Field(foreign_key="ingredients.ing_id", index=True)
    quantity: float  # packs on hand
