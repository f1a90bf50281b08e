from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from app.config import AppConfig
from application.report_service import ReportRunner
from infrastructure.models import OrderLineModel


def _ids(rows):
    return [row["item_id"] for row in rows]


def test_sales_summary_totals(runner):
    assert runner.run("sales-summary") == [
        {
            "total_orders": 6,
            "items_sold": 32,
            "total_revenue": 130.0,
            "average_order_value": 21.67,
        }
    ]


def test_sales_summary_on_an_empty_window_has_no_average(runner):
    rows = runner.run("sales-summary", {"from": "2030-01-01"})

    assert rows == [{"total_orders": 0, "items_sold": 0, "total_revenue": 0.0, "average_order_value": 0.0}]


def test_item_sales_orders_by_revenue_and_skips_unsold_items(runner):
    rows = runner.run("item-sales")

    assert [(row["item_id"], row["quantity_sold"], row["revenue"]) for row in rows] == [
        ("I6", 16, 80.0),
        ("I1", 6, 24.0),
        ("I2", 6, 15.0),
        ("I3", 3, 9.0),
        ("I4", 1, 2.0),
    ]
    assert rows[0]["item_name"] == "Cold Brew"
    assert rows[0]["item_cat"] == "Coffee"


def test_item_sales_window_includes_the_whole_last_day(runner):
    rows = runner.run("item-sales", {"to": "2024-01-03"})
    latte = next(row for row in rows if row["item_id"] == "I1")

    assert latte["quantity_sold"] == 6
    assert latte["revenue"] == 24.0
    assert "I6" not in _ids(rows)


def test_revenue_by_hour(runner):
    rows = runner.run("revenue-by-hour")

    assert [(row["order_hour"], row["order_count"], row["items_sold"], row["revenue"]) for row in rows] == [
        (8, 1, 3, 11.0),
        (9, 1, 4, 11.0),
        (10, 1, 16, 80.0),
        (13, 1, 3, 12.0),
        (18, 1, 5, 14.0),
        (22, 1, 1, 2.0),
    ]


def test_revenue_by_month(runner):
    rows = runner.run("revenue-by-month")

    assert rows == [
        {"month": "2024-01", "order_count": 5, "items_sold": 28, "revenue": 119.0},
        {"month": "2024-02", "order_count": 1, "items_sold": 4, "revenue": 11.0},
    ]


def test_monthly_revenue_adds_up_to_the_summary(runner):
    months = runner.run("revenue-by-month")
    summary = runner.run("sales-summary")[0]

    assert sum(row["revenue"] for row in months) == pytest.approx(summary["total_revenue"])
    assert sum(row["order_count"] for row in months) == summary["total_orders"]


def test_top_items_breaks_ties_by_item_id(runner):
    assert _ids(runner.run("top-items", {"limit": 2})) == ["I6", "I1"]
    assert _ids(runner.run("top-items", {"limit": 3})) == ["I6", "I1", "I2"]


def test_top_items_defaults_to_configured_top_n(runner):
    rows = runner.run("top-items")

    assert _ids(rows) == ["I6", "I1", "I2", "I3", "I4"]


def test_bottom_items_include_unsold_items(runner):
    rows = runner.run("bottom-items", {"limit": 2})

    assert [(row["item_id"], row["quantity_sold"]) for row in rows] == [("I5", 0), ("I4", 1)]


def test_bottom_items_only_count_sales_inside_the_window(runner):
    rows = runner.run("bottom-items", {"from": "2024-02-01", "limit": 3})

    assert [(row["item_id"], row["quantity_sold"]) for row in rows] == [("I1", 0), ("I4", 0), ("I5", 0)]


def test_item_segmentation_labels_every_item(runner):
    rows = runner.run("item-segmentation")

    assert {row["item_id"]: row["segment"] for row in rows} == {
        "I1": "Discount",
        "I2": "Discount",
        "I3": "Removal",
        "I4": "Removal",
        "I5": "Removal",
        "I6": "Keep",
    }


def test_item_segmentation_boundaries_follow_config(settings, engine):
    raw = dict(settings.raw)
    raw["sales"] = {
        "segments": [{"label": "Removal", "below": 6}, {"label": "Discount", "at_most": 16}],
        "default_segment": "Keep",
    }
    rows = ReportRunner(AppConfig(raw=raw), engine).run("item-segmentation")
    segments = {row["item_id"]: row["segment"] for row in rows}

    # 6 is not below 6, 16 is at most 16
    assert segments["I1"] == "Discount"
    assert segments["I6"] == "Discount"
    assert segments["I3"] == "Removal"


def test_orders_by_time_of_day_appends_a_total(runner):
    rows = runner.run("orders-by-time-of-day")

    assert rows == [
        {"time_of_day": "Morning", "order_count": 3},
        {"time_of_day": "Afternoon", "order_count": 1},
        {"time_of_day": "Evening", "order_count": 1},
        {"time_of_day": "Total", "order_count": 6},
    ]


def test_orders_by_time_of_day_keeps_empty_buckets(runner):
    rows = runner.run("orders-by-time-of-day", {"from": "2024-02-01"})

    assert [row["order_count"] for row in rows] == [1, 0, 0, 1]


def _add_lines(engine, order_id, *timestamps):
    with Session(engine) as session:
        for created_at in timestamps:
            session.add(OrderLineModel(order_id=order_id, created_at=created_at, item_id="I2", quantity=1))
        session.commit()


def test_split_order_counts_once_from_its_first_line(runner, engine):
    _add_lines(engine, "O9", datetime(2024, 3, 1, 11, 59), datetime(2024, 3, 1, 12, 1))

    rows = runner.run("orders-by-time-of-day", {"from": "2024-03-01", "to": "2024-03-01"})

    assert rows == [
        {"time_of_day": "Morning", "order_count": 1},
        {"time_of_day": "Afternoon", "order_count": 0},
        {"time_of_day": "Evening", "order_count": 0},
        {"time_of_day": "Total", "order_count": 1},
    ]


def test_bucket_counts_never_exceed_the_total(runner, engine):
    _add_lines(engine, "O9", datetime(2024, 3, 1, 11, 59), datetime(2024, 3, 1, 12, 1))
    _add_lines(engine, "O10", datetime(2024, 3, 1, 16, 30), datetime(2024, 3, 1, 17, 30))

    rows = runner.run("orders-by-time-of-day")

    assert rows[-1] == {"time_of_day": "Total", "order_count": 8}
    assert sum(row["order_count"] for row in rows[:-1]) <= rows[-1]["order_count"]


@pytest.mark.parametrize(
    "hour, minute, label",
    [
        (6, 59, None),
        (7, 0, "Morning"),
        (11, 59, "Morning"),
        (12, 0, "Afternoon"),
        (16, 59, "Afternoon"),
        (17, 0, "Evening"),
        (20, 59, "Evening"),
        (21, 0, None),
    ],
)
def test_time_of_day_bucket_edges(runner, engine, hour, minute, label):
    _add_lines(engine, "EDGE", datetime(2024, 3, 1, hour, minute))

    rows = runner.run("orders-by-time-of-day", {"from": "2024-03-01", "to": "2024-03-01"})
    counted = {row["time_of_day"]: row["order_count"] for row in rows}

    assert counted["Total"] == 1
    for bucket in ("Morning", "Afternoon", "Evening"):
        assert counted[bucket] == (1 if bucket == label else 0)


def _add_orders(engine, customer, days, per_day, first_day=datetime(2024, 3, 1, 9, 0)):
    with Session(engine) as session:
        for day in range(days):
            for number in range(per_day):
                session.add(
                    OrderLineModel(
                        order_id=f"{customer}-{day}-{number}",
                        created_at=first_day + timedelta(days=day, hours=number),
                        item_id="I4",
                        quantity=1,
                        cust_name=customer,
                        in_or_out="in",
                    )
                )
        session.commit()


def test_loyal_customers_need_enough_orders_and_days(runner, engine):
    _add_orders(engine, "Zoe", days=5, per_day=2)
    _add_orders(engine, "Yan", days=4, per_day=3)
    _add_orders(engine, "Xia", days=9, per_day=1)

    assert runner.run("loyal-customers") == [{"cust_name": "Zoe", "order_count": 10, "order_days": 5}]


def test_loyal_customers_thresholds_from_config(settings, engine):
    _add_orders(engine, "Zoe", days=5, per_day=2)
    _add_orders(engine, "Yan", days=4, per_day=3)
    _add_orders(engine, "Xia", days=9, per_day=1)
    raw = dict(settings.raw)
    raw["sales"] = {"loyalty": {"min_orders": 9, "min_order_days": 4}}

    rows = ReportRunner(AppConfig(raw=raw), engine).run("loyal-customers")

    assert [row["cust_name"] for row in rows] == ["Yan", "Zoe", "Xia"]


def test_loyal_customers_ignore_anonymous_orders(settings, engine):
    raw = dict(settings.raw)
    raw["sales"] = {"loyalty": {"min_orders": 1, "min_order_days": 1}}

    rows = ReportRunner(AppConfig(raw=raw), engine).run("loyal-customers")

    assert rows == [
        {"cust_name": "Ann", "order_count": 2, "order_days": 2},
        {"cust_name": "Ben", "order_count": 2, "order_days": 2},
        {"cust_name": "Cara", "order_count": 1, "order_days": 1},
    ]
