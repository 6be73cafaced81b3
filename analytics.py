"""Sales and revenue aggregation over order records.

Everything here works on the plain dicts returned by the storage layer and
only counts orders whose status is ``delivered``. Amounts are summed as
Decimal and returned as floats rounded to cents.
"""
import csv
import io
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

BAKERY_CATEGORIES = ("bread", "pastries", "cakes", "cookies")
ACTIVE_STATUSES = ("pending", "accepted", "preparing", "ready")
PERIODS = ("daily", "weekly", "monthly", "quarterly", "yearly")


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _amount(order: dict) -> Decimal:
    return Decimal(str(order["total_amount"]))


def _money(value: Decimal) -> float:
    return float(round(value, 2))


def _revenue(orders: Iterable[dict]) -> Decimal:
    return sum((_amount(order) for order in orders), Decimal("0"))


def completed_orders(orders: Iterable[dict]) -> List[dict]:
    return [order for order in orders if order["status"] == "delivered"]


def _between(orders: Iterable[dict], start: datetime, end: Optional[datetime] = None) -> List[dict]:
    selected = []
    for order in orders:
        created = _as_datetime(order["created_at"])
        if created >= start and (end is None or created < end):
            selected.append(order)
    return selected


def period_range(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the period containing ``now``."""
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "daily":
        return day, day + timedelta(days=1)
    if period == "weekly":
        # weeks start on Sunday
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return start, start + timedelta(days=7)
    if period == "quarterly":
        first_month = 3 * ((day.month - 1) // 3) + 1
        start = day.replace(month=first_month, day=1)
        return start, _add_months(start, 3)
    if period == "yearly":
        start = day.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1)
    # monthly is also the fallback
    start = day.replace(day=1)
    return start, _add_months(start, 1)


def _add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    return start.replace(year=start.year + month_index // 12, month=month_index % 12 + 1, day=1)


# ========== DASHBOARD ==========
def dashboard_stats(orders: List[dict], products: List[dict]) -> dict:
    return {
        "total_orders": len(orders),
        "total_revenue": _money(_revenue(completed_orders(orders))),
        "pending_orders": sum(1 for order in orders if order["status"] == "pending"),
        "preparing_orders": sum(1 for order in orders if order["status"] == "preparing"),
        "active_orders": sum(1 for order in orders if order["status"] in ACTIVE_STATUSES),
        "delivered_orders": sum(1 for order in orders if order["status"] == "delivered"),
        "cancelled_orders": sum(1 for order in orders if order["status"] == "cancelled"),
        "total_products": len(products),
        "bakery_products": sum(1 for product in products if product["category"] in BAKERY_CATEGORIES),
        "fastfood_products": sum(1 for product in products if product["category"] == "fastfood"),
    }


# ========== REVENUE ==========
def revenue_summary(orders: List[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    completed = completed_orders(orders)
    total = _revenue(completed)

    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_revenue = _revenue(_between(completed, now - timedelta(days=7)))
    previous_week_revenue = _revenue(
        _between(completed, now - timedelta(days=14), now - timedelta(days=7))
    )
    if previous_week_revenue > 0:
        weekly_growth = (week_revenue - previous_week_revenue) / previous_week_revenue * 100
    else:
        weekly_growth = Decimal("0")

    top_orders = sorted(completed, key=_amount, reverse=True)[:10]

    return {
        "completed_orders": len(completed),
        "total_revenue": _money(total),
        "average_order_value": _money(total / len(completed)) if completed else 0.0,
        "today_revenue": _money(_revenue(_between(completed, today_start, today_start + timedelta(days=1)))),
        "week_revenue": _money(week_revenue),
        "month_revenue": _money(_revenue(_between(completed, now - timedelta(days=30)))),
        "previous_week_revenue": _money(previous_week_revenue),
        "weekly_growth": float(round(weekly_growth, 1)),
        "top_orders": [
            {"id": order["id"], "customer_name": order["customer_name"], "total_amount": _money(_amount(order))}
            for order in top_orders
        ],
    }


# ========== SALES REPORT ==========
def _product_sales(orders: List[dict], products: List[dict]) -> List[dict]:
    by_id = {product["id"]: product for product in products}
    sales: Dict[int, dict] = {}
    for order in orders:
        for item in order.get("items") or []:
            if not isinstance(item, dict):
                continue
            product = by_id.get(item.get("id"))
            if product is None:
                continue
            quantity = item.get("quantity") or 1
            entry = sales.setdefault(product["id"], {
                "product_id": product["id"],
                "name": product["name"],
                "category": product["category"],
                "quantity": 0,
                "revenue": Decimal("0"),
            })
            entry["quantity"] += quantity
            entry["revenue"] += Decimal(str(product["price"])) * quantity

    ranked = sorted(sales.values(), key=lambda entry: entry["revenue"], reverse=True)
    for entry in ranked:
        entry["revenue"] = _money(entry["revenue"])
    return ranked


def _hourly_sales(orders: List[dict]) -> List[dict]:
    hours = [{"hour": f"{hour:02d}:00", "orders": 0, "revenue": Decimal("0")} for hour in range(24)]
    for order in orders:
        bucket = hours[_as_datetime(order["created_at"]).hour]
        bucket["orders"] += 1
        bucket["revenue"] += _amount(order)
    for bucket in hours:
        bucket["revenue"] = _money(bucket["revenue"])
    return hours


def _daily_sales(orders: List[dict], start: datetime, end: datetime) -> List[dict]:
    days = []
    day = start
    while day < end:
        day_orders = _between(orders, day, day + timedelta(days=1))
        days.append({
            "date": day.strftime("%Y-%m-%d"),
            "orders": len(day_orders),
            "revenue": _money(_revenue(day_orders)),
        })
        day += timedelta(days=1)
    return days


def _category_breakdown(product_sales: List[dict]) -> List[dict]:
    categories: Dict[str, dict] = {}
    for entry in product_sales:
        category = categories.setdefault(entry["category"], {"category": entry["category"], "quantity": 0, "revenue": 0.0})
        category["quantity"] += entry["quantity"]
        category["revenue"] = round(category["revenue"] + entry["revenue"], 2)
    return sorted(categories.values(), key=lambda category: category["revenue"], reverse=True)


def sales_report(orders: List[dict], products: List[dict], period: str = "monthly",
                 now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    start, end = period_range(period, now)
    period_orders = _between(completed_orders(orders), start, end)
    total = _revenue(period_orders)

    product_sales = _product_sales(period_orders, products)
    hourly = _hourly_sales(period_orders)

    return {
        "period": period,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "total_orders": len(period_orders),
        "total_revenue": _money(total),
        "average_order_value": _money(total / len(period_orders)) if period_orders else 0.0,
        "product_sales": product_sales,
        "category_breakdown": _category_breakdown(product_sales),
        "hourly_sales": hourly,
        "peak_hour": max(hourly, key=lambda bucket: bucket["revenue"])["hour"],
        "low_hour": min(hourly, key=lambda bucket: bucket["revenue"])["hour"],
        "daily_sales": _daily_sales(period_orders, start, end),
    }


def sales_report_csv(report: dict) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Period", report["period"]])
    writer.writerow(["Total Revenue", f"{report['total_revenue']:.2f}"])
    writer.writerow(["Total Orders", report["total_orders"]])
    writer.writerow(["Average Order Value", f"{report['average_order_value']:.2f}"])
    writer.writerow([])
    writer.writerow(["Product", "Category", "Quantity Sold", "Revenue"])
    for entry in report["product_sales"]:
        writer.writerow([entry["name"], entry["category"], entry["quantity"], f"{entry['revenue']:.2f}"])
    return output.getvalue()
