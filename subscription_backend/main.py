import logging
import os
import uuid
from datetime import date, datetime

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt
from sqlalchemy import create_engine

from subscription_backend.calendar_window import build_calendar_window
from subscription_backend.catalog import PeriodOption, Product, ProductCatalog, daily_price
from subscription_backend.delivery_schedule import (
    THREE_PER_WEEK,
    DeliveryScheduleEntry,
    generate_delivery_schedule,
    last_delivery_date,
    normalize_frequency,
)
from subscription_backend.meal_plan import (
    EARLY_STAGE,
    MAX_PLAN_YEAR,
    MEAL_STAGES,
    MIN_PLAN_YEAR,
    generate_monthly_meal_plan,
)
from subscription_backend.order_repository import (
    DuplicateOrderError,
    OrderRecord,
    OrderRepository,
    SqlOrderRepository,
)
from subscription_backend.payment_attempts import PaymentAttempt, generate_payment_attempts
from subscription_backend.start_date_eligibility import (
    is_start_date_selectable,
    selectable_start_dates,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

database_url = os.getenv("DATABASE_URL", "sqlite:///./mealsub.db")
connect_args = {}
if database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(database_url, connect_args=connect_args)
order_repository = SqlOrderRepository(engine)
product_catalog = ProductCatalog()


@app.on_event("startup")
def init_db() -> None:
    order_repository.create_all()


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=jsonable_encoder({"detail": exc.errors()}))


def get_order_repository() -> OrderRepository:
    return order_repository


def get_product_catalog() -> ProductCatalog:
    return product_catalog


def get_today() -> date:
    return date.today()


class DeliveryScheduleResponse(BaseModel):
    sequence: int
    delivery_date: date
    production_date: date


class PaymentAttemptResponse(BaseModel):
    days_before: int
    attempt_date: date


class SchedulePreviewPayload(BaseModel):
    start_date: date
    weeks: StrictInt
    frequency: str = THREE_PER_WEEK
    today: date | None = None


class SchedulePreviewResponse(BaseModel):
    start_date: date
    weeks: int
    frequency: str
    start_date_selectable: bool
    deliveries: list[DeliveryScheduleResponse]
    last_delivery_date: date | None = None
    payment_attempts: list[PaymentAttemptResponse]
    calendar_days: list[date]


class StartDatesResponse(BaseModel):
    today: date
    dates: list[date]


class CalendarWindowResponse(BaseModel):
    today: date
    last_delivery_date: date | None = None
    days: list[date]


class PeriodOptionResponse(BaseModel):
    weeks: int
    price: int
    daily_price: int


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    kind: str
    meal_stage_id: str
    period_options: list[PeriodOptionResponse]
    created_at: datetime


class DailyMealResponse(BaseModel):
    date: date
    menus: list[str]


class MonthlyMealPlanResponse(BaseModel):
    year: int
    month: int
    stage_id: str
    days: list[DailyMealResponse]


class OrderPayload(BaseModel):
    id: str | None = None
    product_id: str | None = None
    first_delivery_date: date
    weeks: StrictInt
    frequency: str = THREE_PER_WEEK
    today: date | None = None


class OrderResponse(BaseModel):
    id: str
    product_id: str | None = None
    first_delivery_date: date
    weeks: int
    frequency: str
    status: str
    delivery_count: int
    deliveries: list[DeliveryScheduleResponse]
    payment_attempts: list[PaymentAttemptResponse]
    price: int | None = None
    daily_price: int | None = None
    created_at: datetime | None = None


def _delivery_response(entry: DeliveryScheduleEntry) -> DeliveryScheduleResponse:
    return DeliveryScheduleResponse(
        sequence=entry.sequence,
        delivery_date=entry.delivery_date,
        production_date=entry.production_date,
    )


def _payment_attempt_response(attempt: PaymentAttempt) -> PaymentAttemptResponse:
    return PaymentAttemptResponse(
        days_before=attempt.days_before,
        attempt_date=attempt.attempt_date,
    )


def _period_option_response(option: PeriodOption) -> PeriodOptionResponse:
    return PeriodOptionResponse(
        weeks=option.weeks,
        price=option.price,
        daily_price=daily_price(option.price, option.weeks),
    )


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        kind=product.kind,
        meal_stage_id=product.meal_stage_id,
        period_options=[_period_option_response(option) for option in product.period_options],
        created_at=product.created_at,
    )


def _order_response(order: OrderRecord, catalog: ProductCatalog) -> OrderResponse:
    price = None
    per_day = None
    if order.product_id is not None:
        try:
            price = catalog.price_for(order.product_id, order.weeks)
            per_day = daily_price(price, order.weeks)
        except ValueError:
            logger.warning("No price for order %s (product %s).", order.id, order.product_id)
    return OrderResponse(
        id=order.id,
        product_id=order.product_id,
        first_delivery_date=order.first_delivery_date,
        weeks=order.weeks,
        frequency=order.frequency,
        status=order.status,
        delivery_count=order.delivery_count,
        deliveries=[_delivery_response(entry) for entry in order.deliveries],
        payment_attempts=[
            _payment_attempt_response(attempt) for attempt in order.payment_attempts
        ],
        price=price,
        daily_price=per_day,
        created_at=order.created_at,
    )


def _parse_int(value: str | None, minimum: int, maximum: int, default: int) -> int:
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        return default
    if minimum <= parsed <= maximum:
        return parsed
    return default


def _parse_stage_id(value: str | None) -> str:
    if value is None:
        return EARLY_STAGE
    normalized = value.strip().lower()
    if normalized in MEAL_STAGES:
        return normalized
    return EARLY_STAGE


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/products", response_model=list[ProductResponse])
def list_products(
    catalog: ProductCatalog = Depends(get_product_catalog),
) -> list[ProductResponse]:
    return [_product_response(product) for product in catalog.list_products()]


@app.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    catalog: ProductCatalog = Depends(get_product_catalog),
) -> ProductResponse:
    product = catalog.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return _product_response(product)


@app.get("/meal-plans", response_model=MonthlyMealPlanResponse)
def get_meal_plan(
    year: str | None = Query(None),
    month: str | None = Query(None),
    stage_id: str | None = Query(None),
    today: date = Depends(get_today),
) -> MonthlyMealPlanResponse:
    plan = generate_monthly_meal_plan(
        _parse_stage_id(stage_id),
        _parse_int(year, MIN_PLAN_YEAR, MAX_PLAN_YEAR, today.year),
        _parse_int(month, 1, 12, today.month),
    )
    return MonthlyMealPlanResponse(
        year=plan.year,
        month=plan.month,
        stage_id=plan.stage_id,
        days=[DailyMealResponse(date=day.date, menus=list(day.menus)) for day in plan.days],
    )


@app.get("/start-dates", response_model=StartDatesResponse)
def list_start_dates(
    today: date | None = Query(None),
    clock_today: date = Depends(get_today),
) -> StartDatesResponse:
    resolved_today = today or clock_today
    return StartDatesResponse(today=resolved_today, dates=selectable_start_dates(resolved_today))


@app.get("/calendar-window", response_model=CalendarWindowResponse)
def get_calendar_window(
    today: date | None = Query(None),
    last_delivery_date: date | None = Query(None),
    clock_today: date = Depends(get_today),
) -> CalendarWindowResponse:
    resolved_today = today or clock_today
    return CalendarWindowResponse(
        today=resolved_today,
        last_delivery_date=last_delivery_date,
        days=build_calendar_window(resolved_today, last_delivery_date),
    )


@app.post("/schedules/preview", response_model=SchedulePreviewResponse)
def preview_schedule(
    payload: SchedulePreviewPayload,
    clock_today: date = Depends(get_today),
) -> SchedulePreviewResponse:
    resolved_today = payload.today or clock_today
    try:
        frequency = normalize_frequency(payload.frequency)
        entries = generate_delivery_schedule(payload.start_date, payload.weeks, frequency)
    except ValueError as exc:
        logger.warning("Rejected schedule preview: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    last_date = last_delivery_date(entries)
    attempts = generate_payment_attempts(last_date) if last_date is not None else []
    return SchedulePreviewResponse(
        start_date=payload.start_date,
        weeks=payload.weeks,
        frequency=frequency.value,
        start_date_selectable=is_start_date_selectable(payload.start_date, resolved_today),
        deliveries=[_delivery_response(entry) for entry in entries],
        last_delivery_date=last_date,
        payment_attempts=[_payment_attempt_response(attempt) for attempt in attempts],
        calendar_days=build_calendar_window(resolved_today, last_date),
    )


@app.get("/orders", response_model=list[OrderResponse])
def list_orders(
    repository: OrderRepository = Depends(get_order_repository),
    catalog: ProductCatalog = Depends(get_product_catalog),
) -> list[OrderResponse]:
    return [_order_response(order, catalog) for order in repository.list_orders()]


@app.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    repository: OrderRepository = Depends(get_order_repository),
    catalog: ProductCatalog = Depends(get_product_catalog),
) -> OrderResponse:
    order = repository.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found.")
    return _order_response(order, catalog)


@app.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(
    payload: OrderPayload,
    repository: OrderRepository = Depends(get_order_repository),
    catalog: ProductCatalog = Depends(get_product_catalog),
    clock_today: date = Depends(get_today),
) -> OrderResponse:
    resolved_today = payload.today or clock_today
    if not is_start_date_selectable(payload.first_delivery_date, resolved_today):
        logger.warning(
            "Rejected order with first delivery %s (today %s).",
            payload.first_delivery_date.isoformat(),
            resolved_today.isoformat(),
        )
        raise HTTPException(
            status_code=400,
            detail="First delivery date must be a non-Sunday between 2 and 21 days from today.",
        )
    try:
        frequency = normalize_frequency(payload.frequency)
        entries = generate_delivery_schedule(payload.first_delivery_date, payload.weeks, frequency)
        if payload.product_id is not None:
            catalog.price_for(payload.product_id, payload.weeks)
    except ValueError as exc:
        logger.warning("Rejected order: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    order = OrderRecord(
        id=payload.id or f"order-{uuid.uuid4().hex[:12]}",
        product_id=payload.product_id,
        first_delivery_date=payload.first_delivery_date,
        weeks=payload.weeks,
        frequency=frequency.value,
        deliveries=tuple(entries),
        created_at=datetime.now(),
    )
    try:
        stored = repository.create_order(order)
    except DuplicateOrderError as exc:
        raise HTTPException(status_code=409, detail="Order already exists.") from exc

    logger.info("Created order %s starting %s.", stored.id, stored.first_delivery_date.isoformat())
    return _order_response(stored, catalog)
