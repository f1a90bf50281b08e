"""Sales reports over order lines and menu prices."""
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import and_, case, distinct, extract, func, literal
from sqlmodel import Session, select

from app.config import AppConfig
from application.report_params import ReportParams
from domain.report import ReportCategory, ReportDefinition, Row
from domain.rules import buckets_from_config, segments_from_config
from infrastructure.models import MenuItemModel, OrderLineModel

DEFAULT_TOP_N = 5
TOTAL_LABEL = "Total"


def order_window_conditions(params: ReportParams) -> List[Any]:
    lower, upper = params.timestamp_window()
    conditions = []
    if lower:
        conditions.append(OrderLineModel.created_at >= lower)
    if upper:
        conditions.append(OrderLineModel.created_at < upper)
    return conditions


def _line_revenue():
    return OrderLineModel.quantity * MenuItemModel.item_price


def _priced_lines(*columns, params: ReportParams):
    """select(*columns) over order lines joined to their menu item, within the window."""
    return (
        select(*columns)
        .select_from(OrderLineModel)
        .join(MenuItemModel, MenuItemModel.item_id == OrderLineModel.item_id)
        .where(*order_window_conditions(params))
    )


def _money(value: Any) -> float:
    return round(float(value or 0.0), 2)


# Revenue --------------------------------------------------------------------
def sales_summary(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    stmt = _priced_lines(
        func.count(distinct(OrderLineModel.order_id)).label("total_orders"),
        func.coalesce(func.sum(OrderLineModel.quantity), 0).label("items_sold"),
        func.coalesce(func.sum(_line_revenue()), 0.0).label("total_revenue"),
        params=params,
    )
    row = session.exec(stmt).one()
    total_orders = int(row.total_orders or 0)
    revenue = float(row.total_revenue or 0.0)
    return [
        {
            "total_orders": total_orders,
            "items_sold": int(row.items_sold or 0),
            "total_revenue": _money(revenue),
            "average_order_value": _money(revenue / total_orders) if total_orders else 0.0,
        }
    ]


def item_sales(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    revenue = func.sum(_line_revenue()).label("revenue")
    stmt = (
        _priced_lines(
            MenuItemModel.item_id,
            MenuItemModel.item_name,
            MenuItemModel.item_cat,
            func.sum(OrderLineModel.quantity).label("quantity_sold"),
            revenue,
            params=params,
        )
        .group_by(MenuItemModel.item_id, MenuItemModel.item_name, MenuItemModel.item_cat)
        .order_by(revenue.desc(), MenuItemModel.item_id)
    )
    return [
        {
            "item_id": row.item_id,
            "item_name": row.item_name,
            "item_cat": row.item_cat,
            "quantity_sold": int(row.quantity_sold),
            "revenue": _money(row.revenue),
        }
        for row in session.exec(stmt).all()
    ]


def revenue_by_hour(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    hour = extract("hour", OrderLineModel.created_at)
    stmt = (
        _priced_lines(
            hour.label("order_hour"),
            func.count(distinct(OrderLineModel.order_id)).label("order_count"),
            func.sum(OrderLineModel.quantity).label("items_sold"),
            func.sum(_line_revenue()).label("revenue"),
            params=params,
        )
        .group_by(hour)
        .order_by(hour)
    )
    return [
        {
            "order_hour": int(row.order_hour),
            "order_count": int(row.order_count),
            "items_sold": int(row.items_sold),
            "revenue": _money(row.revenue),
        }
        for row in session.exec(stmt).all()
    ]


def revenue_by_month(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    year = extract("year", OrderLineModel.created_at)
    month = extract("month", OrderLineModel.created_at)
    stmt = (
        _priced_lines(
            year.label("order_year"),
            month.label("order_month"),
            func.count(distinct(OrderLineModel.order_id)).label("order_count"),
            func.sum(OrderLineModel.quantity).label("items_sold"),
            func.sum(_line_revenue()).label("revenue"),
            params=params,
        )
        .group_by(year, month)
        .order_by(year, month)
    )
    return [
        {
            "month": f"{int(row.order_year):04d}-{int(row.order_month):02d}",
            "order_count": int(row.order_count),
            "items_sold": int(row.items_sold),
            "revenue": _money(row.revenue),
        }
        for row in session.exec(stmt).all()
    ]


# Items ----------------------------------------------------------------------
def _quantity_per_item():
    """Quantity sold per menu item; items with no sales in the window count as 0."""
    return func.coalesce(func.sum(OrderLineModel.quantity), 0)


def _items_with_quantity(*columns, params: ReportParams):
    return (
        select(MenuItemModel.item_id, MenuItemModel.item_name, *columns)
        .select_from(MenuItemModel)
        .outerjoin(
            OrderLineModel,
            and_(OrderLineModel.item_id == MenuItemModel.item_id, *order_window_conditions(params)),
        )
        .group_by(MenuItemModel.item_id, MenuItemModel.item_name)
    )


def _ranked_items(session: Session, params: ReportParams, settings: AppConfig, *, top: bool) -> List[Row]:
    limit = params.limit or int(settings.sales.get("top_n", DEFAULT_TOP_N))
    quantity = _quantity_per_item()
    ordering = quantity.desc() if top else quantity.asc()
    stmt = (
        _items_with_quantity(quantity.label("quantity_sold"), params=params)
        .order_by(ordering, MenuItemModel.item_id)
        .limit(limit)
    )
    return [
        {"item_id": row.item_id, "item_name": row.item_name, "quantity_sold": int(row.quantity_sold)}
        for row in session.exec(stmt).all()
    ]


def top_items(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    return _ranked_items(session, params, settings, top=True)


def bottom_items(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    return _ranked_items(session, params, settings, top=False)


def item_segmentation(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    segments = segments_from_config(settings.sales.get("segments") or [])
    default = str(settings.sales.get("default_segment", "Keep"))
    quantity = _quantity_per_item()

    if segments:
        whens = [
            (quantity <= segment.bound if segment.inclusive else quantity < segment.bound, segment.label)
            for segment in segments
        ]
        segment_expr = case(*whens, else_=default)
    else:
        segment_expr = literal(default)

    stmt = _items_with_quantity(
        quantity.label("quantity_sold"),
        segment_expr.label("segment"),
        params=params,
    ).order_by(MenuItemModel.item_id)
    return [
        {
            "item_id": row.item_id,
            "item_name": row.item_name,
            "quantity_sold": int(row.quantity_sold),
            "segment": row.segment,
        }
        for row in session.exec(stmt).all()
    ]


# Customers ------------------------------------------------------------------
def orders_by_time_of_day(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    buckets = buckets_from_config(settings.sales.get("time_of_day") or [])
    counts: Dict[str, int] = {}

    # one timestamp per order: the first line placed
    per_order = (
        select(OrderLineModel.order_id, func.min(OrderLineModel.created_at).label("placed_at"))
        .where(*order_window_conditions(params))
        .group_by(OrderLineModel.order_id)
        .subquery()
    )

    if buckets:
        hour = extract("hour", per_order.c.placed_at)
        bucket = case(
            *[
                (and_(hour >= item.start_hour, hour < item.end_hour), item.label)
                for item in buckets
            ],
            else_=None,
        )
        bucketed = select(per_order.c.order_id, bucket.label("time_of_day")).subquery()
        stmt = (
            select(bucketed.c.time_of_day, func.count(bucketed.c.order_id).label("order_count"))
            .where(bucketed.c.time_of_day.is_not(None))
            .group_by(bucketed.c.time_of_day)
        )
        counts = {row.time_of_day: int(row.order_count) for row in session.exec(stmt).all()}

    total = int(session.exec(select(func.count()).select_from(per_order)).one() or 0)

    rows = [{"time_of_day": item.label, "order_count": counts.get(item.label, 0)} for item in buckets]
    rows.append({"time_of_day": TOTAL_LABEL, "order_count": total})
    return rows


def loyal_customers(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    loyalty = settings.sales.get("loyalty") or {}
    min_orders = int(loyalty.get("min_orders", 10))
    min_days = int(loyalty.get("min_order_days", 5))

    order_count = func.count(distinct(OrderLineModel.order_id))
    order_days = func.count(distinct(func.date(OrderLineModel.created_at)))
    stmt = (
        select(
            OrderLineModel.cust_name,
            order_count.label("order_count"),
            order_days.label("order_days"),
        )
        .where(OrderLineModel.cust_name.is_not(None), *order_window_conditions(params))
        .group_by(OrderLineModel.cust_name)
        .having(and_(order_count >= min_orders, order_days >= min_days))
        .order_by(order_count.desc(), OrderLineModel.cust_name)
    )
    return [
        {
            "cust_name": row.cust_name,
            "order_count": int(row.order_count),
            "order_days": int(row.order_days),
        }
        for row in session.exec(stmt).all()
    ]


_ITEM_COLUMNS = ("item_id", "item_name", "quantity_sold")

SALES_REPORTS = [
    ReportDefinition(
        name="sales-summary",
        title="Sales summary",
        category=ReportCategory.SALES,
        description="Distinct orders, items sold, revenue and average order value (AOV).",
        columns=("total_orders", "items_sold", "total_revenue", "average_order_value"),
        handler=sales_summary,
    ),
    ReportDefinition(
        name="item-sales",
        title="Item sales",
        category=ReportCategory.SALES,
        description="Quantity sold and revenue per menu item, highest revenue first.",
        columns=("item_id", "item_name", "item_cat", "quantity_sold", "revenue"),
        handler=item_sales,
    ),
    ReportDefinition(
        name="revenue-by-hour",
        title="Revenue by hour",
        category=ReportCategory.SALES,
        description="Orders, items and revenue per hour of day; shows the busiest hours.",
        columns=("order_hour", "order_count", "items_sold", "revenue"),
        handler=revenue_by_hour,
    ),
    ReportDefinition(
        name="revenue-by-month",
        title="Revenue by month",
        category=ReportCategory.SALES,
        description="Orders, items and revenue per calendar month.",
        columns=("month", "order_count", "items_sold", "revenue"),
        handler=revenue_by_month,
    ),
    ReportDefinition(
        name="top-items",
        title="Top items",
        category=ReportCategory.SALES,
        description="Best selling items by quantity; ties broken by item id.",
        columns=_ITEM_COLUMNS,
        handler=top_items,
        uses_limit=True,
    ),
    ReportDefinition(
        name="bottom-items",
        title="Bottom items",
        category=ReportCategory.SALES,
        description="Least selling items by quantity, unsold items included; ties broken by item id.",
        columns=_ITEM_COLUMNS,
        handler=bottom_items,
        uses_limit=True,
    ),
    ReportDefinition(
        name="item-segmentation",
        title="Item segmentation",
        category=ReportCategory.SALES,
        description="Labels each item from its quantity sold (e.g. Removal, Discount, Keep).",
        columns=("item_id", "item_name", "quantity_sold", "segment"),
        handler=item_segmentation,
    ),
    ReportDefinition(
        name="orders-by-time-of-day",
        title="Orders by time of day",
        category=ReportCategory.SALES,
        description="Distinct orders per time-of-day bucket, followed by the total over all orders.",
        columns=("time_of_day", "order_count"),
        handler=orders_by_time_of_day,
    ),
    ReportDefinition(
        name="loyal-customers",
        title="Loyal customers",
        category=ReportCategory.SALES,
        description="Customers with enough orders on enough distinct days to join the loyalty scheme.",
        columns=("cust_name", "order_count", "order_days"),
        handler=loyal_customers,
    ),
]
