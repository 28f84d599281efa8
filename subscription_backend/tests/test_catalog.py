import unittest
from datetime import datetime

from subscription_backend.catalog import (
    PeriodOption,
    Product,
    ProductCatalog,
    daily_price,
)


class DailyPriceTests(unittest.TestCase):
    def test_rounds_half_up_per_day(self) -> None:
        self.assertEqual(daily_price(65940, 1), 9420)
        self.assertEqual(daily_price(120080, 2), 8577)
        self.assertEqual(daily_price(50000, 1), 7143)
        self.assertEqual(daily_price(35, 2), 3)

    def test_rejects_unsupported_weeks(self) -> None:
        with self.assertRaises(ValueError):
            daily_price(50000, 3)


class ProductCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = ProductCatalog()

    def test_default_catalog_includes_subscriptions_and_single_menus(self) -> None:
        products = self.catalog.list_products()

        self.assertEqual(len(products), 37)
        self.assertEqual(products[0].id, "product-1")
        self.assertIsNotNone(self.catalog.get_product("early-menu-01"))
        self.assertIsNotNone(self.catalog.get_product("middle-menu-15"))

    def test_price_for_period(self) -> None:
        self.assertEqual(self.catalog.price_for("product-2", 2), 120080)
        self.assertEqual(self.catalog.price_for("early-menu-03", 1), 3500)

    def test_price_for_missing_product_or_period(self) -> None:
        with self.assertRaises(ValueError):
            self.catalog.price_for("product-9", 1)
        with self.assertRaises(ValueError):
            self.catalog.price_for("middle-menu-01", 4)

    def test_add_product_rejects_duplicates_and_bad_periods(self) -> None:
        product = Product(
            id="product-3",
            name="Late stage",
            kind="subscription",
            meal_stage_id="middle",
            period_options=(PeriodOption(weeks=1, price=70000),),
            created_at=datetime(2025, 1, 1),
        )
        catalog = ProductCatalog(products=[])
        catalog.add_product(product)

        self.assertEqual(catalog.list_products(), [product])
        with self.assertRaises(ValueError):
            catalog.add_product(product)
        with self.assertRaises(ValueError):
            catalog.add_product(
                Product(
                    id="product-4",
                    name="Odd period",
                    kind="subscription",
                    meal_stage_id="early",
                    period_options=(PeriodOption(weeks=3, price=1000),),
                    created_at=datetime(2025, 1, 1),
                )
            )

    def test_catalogs_do_not_share_state(self) -> None:
        other = ProductCatalog(products=[])

        self.assertEqual(other.list_products(), [])
        self.assertEqual(len(self.catalog.list_products()), 37)


if __name__ == "__main__":
    unittest.main()
