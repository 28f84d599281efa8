from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from subscription_backend.delivery_schedule import DAYS_PER_WEEK, SUPPORTED_WEEKS
from subscription_backend.meal_plan import EARLY_STAGE, MIDDLE_STAGE, STAGE_MENUS

SUBSCRIPTION_KIND = "subscription"
SINGLE_MENU_KIND = "single"
SINGLE_MENU_PRICES = {
    EARLY_STAGE: 3500,
    MIDDLE_STAGE: 3800,
}


@dataclass(frozen=True)
class PeriodOption:
    weeks: int
    price: int


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    kind: str
    meal_stage_id: str
    period_options: Tuple[PeriodOption, ...]
    created_at: datetime
    description: Optional[str] = None


@dataclass
class ProductCatalog:
    """In-memory product repository, seeded with the default catalog."""

    products: Iterable[Product] = None
    _index: Dict[str, Product] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        seed = default_products() if self.products is None else self.products
        for product in seed:
            self.add_product(product)

    def list_products(self) -> List[Product]:
        return list(self._index.values())

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._index.get(product_id)

    def add_product(self, product: Product) -> None:
        if product.id in self._index:
            raise ValueError(f"Product already exists: {product.id}")
        for option in product.period_options:
            if option.weeks not in SUPPORTED_WEEKS:
                raise ValueError("Period options must be 1, 2, or 4 weeks.")
            if option.price <= 0:
                raise ValueError("Period option price must be greater than zero.")
        self._index[product.id] = product

    def price_for(self, product_id: str, weeks: int) -> int:
        product = self.get_product(product_id)
        if product is None:
            raise ValueError(f"Unknown product: {product_id}")
        for option in product.period_options:
            if option.weeks == weeks:
                return option.price
        raise ValueError(f"Product {product_id} has no {weeks}-week option.")


def daily_price(price: int, weeks: int) -> int:
    if weeks not in SUPPORTED_WEEKS:
        raise ValueError("Subscription length must be 1, 2, or 4 weeks.")
    per_day = Decimal(price) / Decimal(weeks * DAYS_PER_WEEK)
    return int(per_day.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def default_products() -> List[Product]:
    products = [
        Product(
            id="product-1",
            name="Early stage",
            description="Early stage meal plan subscription",
            kind=SUBSCRIPTION_KIND,
            meal_stage_id=EARLY_STAGE,
            period_options=(
                PeriodOption(weeks=1, price=50000),
                PeriodOption(weeks=2, price=95000),
                PeriodOption(weeks=4, price=180000),
            ),
            created_at=datetime(2024, 1, 15),
        ),
        Product(
            id="product-2",
            name="Middle stage",
            description="Middle stage meal plan subscription",
            kind=SUBSCRIPTION_KIND,
            meal_stage_id=MIDDLE_STAGE,
            period_options=(
                PeriodOption(weeks=1, price=65940),
                PeriodOption(weeks=2, price=120080),
                PeriodOption(weeks=4, price=244720),
            ),
            created_at=datetime(2024, 1, 1),
        ),
    ]
    for stage_id, menus in STAGE_MENUS.items():
        products.extend(_single_menu_products(stage_id, menus))
    return products


def _single_menu_products(stage_id: str, menus: Iterable[str]) -> List[Product]:
    # Single menus are sold one week at a time.
    unit_price = SINGLE_MENU_PRICES[stage_id]
    return [
        Product(
            id=f"{stage_id}-menu-{index:02d}",
            name=name,
            description=f"{stage_id.capitalize()} stage single menu",
            kind=SINGLE_MENU_KIND,
            meal_stage_id=stage_id,
            period_options=(PeriodOption(weeks=1, price=unit_price),),
            created_at=datetime(2025, 12, 1),
        )
        for index, name in enumerate(menus, start=1)
    ]
