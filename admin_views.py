from typing import Dict, List, Tuple

BAKERY_CATEGORIES = ("bread", "pastries", "cakes", "cookies")

# What the admin screens offer next; the server accepts any status regardless.
SUGGESTED_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "pending": ("accepted", "cancelled"),
    "accepted": ("preparing",),
    "preparing": ("ready",),
    "ready": ("delivered",),
    "delivered": (),
    "cancelled": (),
}

ACTIVE_STATUSES = ("pending", "accepted", "preparing", "ready")
HISTORY_STATUSES = ("delivered", "cancelled")


def filter_products(products: List[dict], category: str = "all") -> List[dict]:
    if not category or category == "all":
        return list(products)
    if category == "bakery":
        return [product for product in products if product["category"] in BAKERY_CATEGORIES]
    needle = category.lower()
    return [product for product in products if needle in (product.get("category") or "").lower()]


def filter_orders(orders: List[dict], status: str = "all") -> List[dict]:
    if not status or status == "all":
        return list(orders)
    return [order for order in orders if order["status"] == status]


def group_orders(orders: List[dict]) -> Dict[str, List[dict]]:
    return {
        "active": [order for order in orders if order["status"] in ACTIVE_STATUSES],
        "completed": filter_orders(orders, "delivered"),
        "cancelled": filter_orders(orders, "cancelled"),
        "history": [order for order in orders if order["status"] in HISTORY_STATUSES],
    }


def suggested_transitions(status: str) -> Tuple[str, ...]:
    return SUGGESTED_TRANSITIONS.get(status, ())


def category_counts(products: List[dict]) -> Dict[str, int]:
    return {
        "all": len(products),
        "bakery": len(filter_products(products, "bakery")),
        "fastfood": sum(1 for product in products if product["category"] == "fastfood"),
    }
