"""Inventory reports: ingredient usage from recipes and remaining stock."""
from __future__ import annotations

from typing import Dict, List

from sqlalchemy import func
from sqlmodel import Session, select

from app.config import AppConfig
from application.report_params import ReportParams
from application.sales_reports import order_window_conditions
from domain.report import ReportCategory, ReportDefinition, Row
from infrastructure.models import IngredientModel, InventoryModel, OrderLineModel, RecipeModel

DEFAULT_LOW_STOCK_PERCENT = 20.0


def _quantity_used(session: Session, params: ReportParams) -> Dict[str, float]:
    """ing_id -> units consumed by the items sold in the window."""
    used = func.sum(OrderLineModel.quantity * RecipeModel.quantity)
    stmt = (
        select(RecipeModel.ing_id, used.label("quantity_used"))
        .select_from(OrderLineModel)
        .join(RecipeModel, RecipeModel.item_id == OrderLineModel.item_id)
        .where(*order_window_conditions(params))
        .group_by(RecipeModel.ing_id)
    )
    return {row.ing_id: float(row.quantity_used or 0.0) for row in session.exec(stmt).all()}


def _packs_on_hand(session: Session) -> Dict[str, float]:
    stmt = select(InventoryModel.ing_id, func.sum(InventoryModel.quantity).label("packs")).group_by(
        InventoryModel.ing_id
    )
    return {row.ing_id: float(row.packs or 0.0) for row in session.exec(stmt).all()}


def _ingredients(session: Session) -> List[IngredientModel]:
    return list(session.exec(select(IngredientModel).order_by(IngredientModel.ing_id)).all())


def ingredient_usage(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    used = _quantity_used(session, params)
    rows: List[Row] = []
    for ingredient in _ingredients(session):
        quantity = used.get(ingredient.ing_id, 0.0)
        unit_cost = ingredient.ing_price / ingredient.ing_weight if ingredient.ing_weight else 0.0
        rows.append(
            {
                "ing_id": ingredient.ing_id,
                "ing_name": ingredient.ing_name,
                "ing_meas": ingredient.ing_meas,
                "quantity_used": round(quantity, 2),
                "ingredient_cost": round(quantity * unit_cost, 2),
            }
        )
    return rows


def low_inventory(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    threshold = params.threshold
    if threshold is None:
        threshold = float(settings.inventory.get("low_stock_percent", DEFAULT_LOW_STOCK_PERCENT))

    used = _quantity_used(session, params)
    packs = _packs_on_hand(session)

    flagged = []
    for ingredient in _ingredients(session):
        stock = packs.get(ingredient.ing_id, 0.0) * ingredient.ing_weight
        quantity = used.get(ingredient.ing_id, 0.0)
        remaining = stock - quantity
        remaining_percent = remaining / stock * 100.0 if stock > 0 else 0.0
        if remaining_percent >= threshold:
            continue
        flagged.append(
            (
                remaining_percent,
                {
                    "ing_id": ingredient.ing_id,
                    "ing_name": ingredient.ing_name,
                    "ing_meas": ingredient.ing_meas,
                    "stock": round(stock, 2),
                    "quantity_used": round(quantity, 2),
                    "remaining": round(remaining, 2),
                    "remaining_percent": round(remaining_percent, 2),
                },
            )
        )
    flagged.sort(key=lambda item: (item[0], item[1]["ing_id"]))
    return [row for _, row in flagged]


INVENTORY_REPORTS = [
    ReportDefinition(
        name="ingredient-usage",
        title="Ingredient usage",
        category=ReportCategory.INVENTORY,
        description="Ingredient quantities consumed by the items sold, with their cost.",
        columns=("ing_id", "ing_name", "ing_meas", "quantity_used", "ingredient_cost"),
        handler=ingredient_usage,
    ),
    ReportDefinition(
        name="low-inventory",
        title="Low inventory",
        category=ReportCategory.INVENTORY,
        description="Ingredients whose remaining stock is below the threshold percentage of stock on hand.",
        columns=(
            "ing_id",
            "ing_name",
            "ing_meas",
            "stock",
            "quantity_used",
            "remaining",
            "remaining_percent",
        ),
        handler=low_inventory,
        threshold_range=(0.0, 100.0),
    ),
]
