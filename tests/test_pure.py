import unittest
from datetime import datetime, timezone

from db.models import Order, OrderLine, OrderStatus, Product, ShippingInfo
from utils.pure import (
    admin_stats,
    checkout_summary,
    describe_order,
    filter_admin_products,
    filter_products,
    generate_markdown_table,
    list_categories,
    paginate,
    sort_orders_newest,
    sort_products,
)


def make_product(pid, name, price, category="Kitchen", stock=10, created=None, description=""):
    return Product(
        id=pid,
        name=name,
        price=price,
        description=description,
        category=category,
        stock=stock,
        created_at=created,
    )


PRODUCTS = [
    make_product("p1", "Mug", 25.0, created=datetime(2024, 1, 1, tzinfo=timezone.utc)),
    make_product(
        "p2",
        "Blender",
        80.0,
        category="Appliances",
        stock=3,
        created=datetime(2024, 3, 1, tzinfo=timezone.utc),
        description="Smoothies in seconds",
    ),
    make_product("p3", "Apron", 12.0, category="kitchen", stock=0),
    make_product(
        "p4", "Toaster", 40.0, category="Appliances", created=datetime(2024, 2, 1, tzinfo=timezone.utc)
    ),
]


class CatalogTestCase(unittest.TestCase):
    def test_sort_by_price_low_is_non_decreasing(self):
        prices = [p.price for p in sort_products(PRODUCTS, "price-low")]
        self.assertEqual(prices, sorted(prices))

    def test_sort_by_price_high(self):
        prices = [p.price for p in sort_products(PRODUCTS, "price-high")]
        self.assertEqual(prices, [80.0, 40.0, 25.0, 12.0])

    def test_sort_by_name_is_lexicographic(self):
        names = [p.name for p in sort_products(PRODUCTS, "name")]
        self.assertEqual(names, ["Apron", "Blender", "Mug", "Toaster"])

    def test_sort_by_name_ignores_case(self):
        mixed = [
            make_product("a", "banana", 1.0),
            make_product("b", "Cherry", 1.0),
            make_product("c", "apple", 1.0),
        ]
        names = [p.name for p in sort_products(mixed, "name")]
        self.assertEqual(names, ["apple", "banana", "Cherry"])

    def test_sort_newest_puts_undated_last(self):
        ids = [p.id for p in sort_products(PRODUCTS, "newest")]
        self.assertEqual(ids, ["p2", "p4", "p1", "p3"])

    def test_sort_does_not_mutate_source(self):
        before = list(PRODUCTS)
        sort_products(PRODUCTS, "price-high")
        self.assertEqual(PRODUCTS, before)

    def test_unknown_sort_keeps_order(self):
        self.assertEqual(sort_products(PRODUCTS, "rating"), PRODUCTS)

    def test_search_matches_name_or_description(self):
        self.assertEqual([p.id for p in filter_products(PRODUCTS, "MUG")], ["p1"])
        self.assertEqual([p.id for p in filter_products(PRODUCTS, "smoothies")], ["p2"])
        self.assertEqual(filter_products(PRODUCTS, "nothing-like-this"), [])

    def test_category_filter_is_case_insensitive(self):
        ids = [p.id for p in filter_products(PRODUCTS, "", "Kitchen")]
        self.assertEqual(ids, ["p1", "p3"])
        self.assertEqual(len(filter_products(PRODUCTS, "", "all")), 4)

    def test_search_and_category_combine(self):
        self.assertEqual(
            [p.id for p in filter_products(PRODUCTS, "toast", "appliances")], ["p4"]
        )

    def test_list_categories(self):
        self.assertEqual(
            list_categories(PRODUCTS), ["all", "Appliances", "Kitchen", "kitchen"]
        )

    def test_admin_filter_by_name_or_category(self):
        self.assertEqual(
            [p.id for p in filter_admin_products(PRODUCTS, "appl")], ["p2", "p4"]
        )
        self.assertEqual(len(filter_admin_products(PRODUCTS, "")), 4)


class CheckoutSummaryTestCase(unittest.TestCase):
    def test_below_free_shipping(self):
        s = checkout_summary(40.0)
        self.assertEqual(s.shipping, 10.0)
        self.assertAlmostEqual(s.tax, 3.20)
        self.assertAlmostEqual(s.total, 53.20)

    def test_above_free_shipping(self):
        s = checkout_summary(60.0)
        self.assertEqual(s.shipping, 0)
        self.assertAlmostEqual(s.tax, 4.80)
        self.assertAlmostEqual(s.total, 64.80)

    def test_threshold_is_inclusive(self):
        self.assertEqual(checkout_summary(50.0).shipping, 0)
        self.assertEqual(checkout_summary(49.99).shipping, 10.0)


class OrdersTestCase(unittest.TestCase):
    def make_order(self, oid, total, created=None, status=OrderStatus.PENDING, **kw):
        return Order(
            id=oid,
            user_id="u1",
            lines=(OrderLine(PRODUCTS[0], 2),),
            total_amount=total,
            status=status,
            created_at=created,
            **kw,
        )

    def test_admin_stats(self):
        orders = [self.make_order("o1", 53.2), self.make_order("o2", 64.8)]
        stats = admin_stats(PRODUCTS, orders)
        self.assertEqual(stats.total_products, 4)
        self.assertEqual(stats.total_orders, 2)
        self.assertAlmostEqual(stats.total_revenue, 118.0)
        self.assertEqual(stats.low_stock_products, 2)

    def test_sort_orders_newest(self):
        orders = [
            self.make_order("old", 1, datetime(2024, 1, 1, tzinfo=timezone.utc)),
            self.make_order("undated", 1),
            self.make_order("new", 1, datetime(2024, 5, 1, tzinfo=timezone.utc)),
        ]
        self.assertEqual([o.id for o in sort_orders_newest(orders)], ["new", "old", "undated"])

    def test_describe_order_uses_persisted_shipping(self):
        order = self.make_order(
            "o1",
            53.2,
            status=OrderStatus.SHIPPED,
            shipping_address=ShippingInfo(
                first_name="Jane", last_name="Doe", address="1 Main St", city="Dhaka"
            ),
            payment_method="card",
        )
        md = describe_order(order)
        self.assertIn("Jane Doe, 1 Main St, Dhaka, Bangladesh", md)
        self.assertIn("Payment: card", md)
        self.assertIn("Status: **Shipped**", md)
        self.assertIn("$53.20", md)

    def test_describe_order_without_shipping(self):
        md = describe_order(self.make_order("o1", 10.0))
        self.assertIn("Ship To: not provided", md)
        self.assertIn("Payment: not provided", md)

    def test_paginate(self):
        items = list(range(12))
        self.assertEqual(paginate(items, 1), ([0, 1, 2, 3, 4], 3))
        self.assertEqual(paginate(items, 3), ([10, 11], 3))
        self.assertEqual(paginate(items, 9), ([10, 11], 3))
        self.assertEqual(paginate([], 1), ([], 1))


class MarkdownTableTestCase(unittest.TestCase):
    def test_table(self):
        md = generate_markdown_table(["A", "B"], [[1, "x|y"]], ["l", "r"])
        self.assertEqual(md.splitlines(), ["| A | B |", "| :--- | ---: |", "| 1 | x\\|y |"])

    def test_first_row_as_header(self):
        md = generate_markdown_table(None, [["k", "v"], ["a", "b"]])
        self.assertTrue(md.startswith("| k | v |"))

    def test_empty(self):
        self.assertEqual(generate_markdown_table(["A"], []), "")

    def test_align_length_mismatch(self):
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])


if __name__ == "__main__":
    unittest.main()
