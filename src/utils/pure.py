from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from math import ceil
from typing import Iterable, List, Literal, Optional, Sequence, Tuple

from db.models import Order, Product

FREE_SHIPPING_THRESHOLD = 50.0
FLAT_SHIPPING = 10.0
TAX_RATE = 0.08
LOW_STOCK_LIMIT = 5

SORT_OPTIONS = {
    "name": "Name",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
    "newest": "Newest First",
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of values (stringified).
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

    if aligns is None:
        aligns = ["c"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def money(amount: float) -> str:
    return f"${amount:.2f}"


# ---------------------------
# Catalog
# ---------------------------


def filter_products(
    products: Iterable[Product], query: str = "", category: str = "all"
) -> List[Product]:
    """
    Case-insensitive substring match on name or description, then an exact
    (case-insensitive) category match unless category is "all".
    """
    needle = (query or "").strip().lower()
    wanted = (category or "all").lower()

    result = []
    for p in products:
        if needle and needle not in p.name.lower() and needle not in p.description.lower():
            continue
        if wanted != "all" and p.category.lower() != wanted:
            continue
        result.append(p)
    return result


def sort_products(products: Iterable[Product], sort_by: str = "name") -> List[Product]:
    """Returns a new list; unknown sort keys keep the incoming order."""
    items = list(products)
    if sort_by == "name":
        items.sort(key=lambda p: (p.name.casefold(), p.name))
    elif sort_by == "price-low":
        items.sort(key=lambda p: p.price)
    elif sort_by == "price-high":
        items.sort(key=lambda p: p.price, reverse=True)
    elif sort_by == "newest":
        items.sort(key=lambda p: p.created_at or _EPOCH, reverse=True)
    return items


def list_categories(products: Iterable[Product]) -> List[str]:
    return ["all"] + sorted({p.category for p in products if p.category})


def filter_admin_products(products: Iterable[Product], query: str) -> List[Product]:
    needle = (query or "").strip().lower()
    return [
        p
        for p in products
        if needle in p.name.lower() or needle in p.category.lower()
    ]


# ---------------------------
# Checkout
# ---------------------------


@dataclass(frozen=True)
class CheckoutSummary:
    subtotal: float
    shipping: float
    tax: float
    total: float


def checkout_summary(subtotal: float) -> CheckoutSummary:
    """Flat shipping below the free-shipping threshold, 8% tax on the subtotal."""
    shipping = 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING
    tax = round(subtotal * TAX_RATE, 2)
    return CheckoutSummary(
        subtotal=round(subtotal, 2),
        shipping=shipping,
        tax=tax,
        total=round(subtotal + shipping + tax, 2),
    )


# ---------------------------
# Admin
# ---------------------------


@dataclass(frozen=True)
class AdminStats:
    total_products: int
    total_orders: int
    total_revenue: float
    low_stock_products: int


def admin_stats(products: Sequence[Product], orders: Sequence[Order]) -> AdminStats:
    return AdminStats(
        total_products=len(products),
        total_orders=len(orders),
        total_revenue=sum(o.total_amount for o in orders),
        low_stock_products=sum(1 for p in products if p.stock <= LOW_STOCK_LIMIT),
    )


def paginate(items: Sequence, page: int, page_size: int = 5) -> Tuple[List, int]:
    """Returns (items on the 1-based page, page count); the page is clamped."""
    page_cnt = max(ceil(len(items) / page_size), 1)
    page = max(1, min(page, page_cnt))
    start = (page - 1) * page_size
    return list(items[start : start + page_size]), page_cnt


def sort_orders_newest(orders: Iterable[Order]) -> List[Order]:
    return sorted(orders, key=lambda o: o.created_at or _EPOCH, reverse=True)


def describe_order(order: Order) -> str:
    """Markdown detail of one order, built only from the order's own fields."""
    placed = order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else "-"
    ship_to = order.shipping_address.one_line() if order.shipping_address else ""
    header = (
        f"### Order #{order.id}\n\n"
        f"Status: **{order.status.label}**  \n"
        f"Placed: {placed}  \n"
        f"Ship To: {ship_to or 'not provided'}  \n"
        f"Payment: {order.payment_method or 'not provided'}\n\n"
    )
    rows = [
        [
            line.product.name or f"Product {line.product.id}",
            line.quantity,
            money(line.product.price),
            money(line.line_total),
        ]
        for line in order.lines
    ]
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "c", "r", "r"]
    )
    return header + table + f"\n\n**Total:** {money(order.total_amount)}"
