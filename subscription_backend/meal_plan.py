from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from typing import List, Tuple

EARLY_STAGE = "early"
MIDDLE_STAGE = "middle"
MIN_PLAN_YEAR = 2000
MAX_PLAN_YEAR = 2100


@dataclass(frozen=True)
class MealStage:
    id: str
    label: str
    menus_per_day: int


@dataclass(frozen=True)
class DailyMeal:
    date: date
    menus: Tuple[str, ...]


@dataclass(frozen=True)
class MonthlyMealPlan:
    year: int
    month: int
    stage_id: str
    days: Tuple[DailyMeal, ...]


MEAL_STAGES = {
    EARLY_STAGE: MealStage(id=EARLY_STAGE, label="Early", menus_per_day=2),
    MIDDLE_STAGE: MealStage(id=MIDDLE_STAGE, label="Middle", menus_per_day=3),
}

EARLY_STAGE_MENUS = (
    "Beef and bok choy porridge",
    "Cabbage and carrot porridge",
    "Beef, jujube and apple porridge",
    "Broccoli and potato porridge",
    "Chicken and kabocha porridge",
    "Sweet potato and glutinous rice porridge",
    "Beef and potato porridge",
    "Banana and pear porridge",
    "Sorghum and chicken porridge",
    "Apple and sweet potato porridge",
    "Beef, cabbage and glutinous rice porridge",
    "Potato and carrot porridge",
    "Broccoli and chicken porridge",
    "Sorghum and sweet potato porridge",
    "Beef and chard porridge",
    "Apple milk porridge",
    "Beef and red cabbage porridge",
    "Zucchini and apple porridge",
    "Brown rice and chicken porridge",
    "Sweet potato and broccoli porridge",
)

MIDDLE_STAGE_MENUS = (
    "Beef, mushroom and spinach porridge",
    "Chicken, carrot and onion porridge",
    "Cod and radish porridge",
    "Beef, tofu and zucchini porridge",
    "Salmon and potato porridge",
    "Chicken, corn and cabbage porridge",
    "Beef, sweet potato and broccoli porridge",
    "Tofu and bean sprout porridge",
    "Beef, burdock and carrot porridge",
    "Chicken, pumpkin and pea porridge",
    "Beef, seaweed and rice porridge",
    "Egg yolk and spinach porridge",
    "Beef, shiitake and paprika porridge",
    "Chicken, lotus root and carrot porridge",
    "Pollack and zucchini porridge",
)

STAGE_MENUS = {
    EARLY_STAGE: EARLY_STAGE_MENUS,
    MIDDLE_STAGE: MIDDLE_STAGE_MENUS,
}


def get_meal_stage(stage_id: str) -> MealStage:
    normalized = stage_id.strip().lower()
    try:
        return MEAL_STAGES[normalized]
    except KeyError as exc:
        raise ValueError(f"Unknown meal stage: {stage_id}") from exc


def generate_monthly_meal_plan(stage_id: str, year: int, month: int) -> MonthlyMealPlan:
    """Assign menus to every day of the month, cycling through the stage's menu list."""
    stage = get_meal_stage(stage_id)
    if not MIN_PLAN_YEAR <= year <= MAX_PLAN_YEAR:
        raise ValueError(f"year must be between {MIN_PLAN_YEAR} and {MAX_PLAN_YEAR}.")
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12.")

    menus = STAGE_MENUS[stage.id]
    days_in_month = monthrange(year, month)[1]
    days: List[DailyMeal] = []
    menu_index = 0
    for day in range(1, days_in_month + 1):
        daily_menus = []
        for _ in range(stage.menus_per_day):
            daily_menus.append(menus[menu_index % len(menus)])
            menu_index += 1
        days.append(DailyMeal(date=date(year, month, day), menus=tuple(daily_menus)))

    return MonthlyMealPlan(year=year, month=month, stage_id=stage.id, days=tuple(days))
