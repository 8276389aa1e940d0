"""
Shared fixtures: in-memory SQLite database, fixed clock, recording
notifier and a seeded catalog.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tiffin.db.base import Base
from tiffin.models import (
    Address,
    DeliverySlot,
    MealPackage,
    TokenPackage,
    UpgradePrice,
)
from tiffin.models.base import (
    ContainerType,
    CuisineType,
    DietType,
    MealItemType,
    SlotType,
    UpgradeScope,
    UpgradeType,
)
from tiffin.services import (
    CurryOrderService,
    DeliveryService,
    MealService,
    SubscriptionService,
    UpgradeService,
    WalletService,
)

IST = timezone(timedelta(minutes=330))
TODAY = date(2025, 1, 15)
TOMORROW = TODAY + timedelta(days=1)

USER = "user-1"
OTHER_USER = "user-2"


class FixedClock:
    """Clock pinned to a settable service-local instant."""

    def __init__(self, current: datetime, cutoff_hour: int = 20):
        self.current = current
        self.cutoff_hour = cutoff_hour

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def at(self, hour: int, minute: int = 0) -> "FixedClock":
        self.current = self.current.replace(hour=hour, minute=minute)
        return self

    def advance(self, days: int) -> "FixedClock":
        self.current = self.current + timedelta(days=days)
        return self


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, user_id: str, title: str, message: str) -> None:
        self.sent.append((user_id, title, message))

    @property
    def titles(self):
        return [title for _, title, _ in self.sent]


class FailingNotifier:
    def notify(self, user_id: str, title: str, message: str) -> None:
        raise RuntimeError("notification backend down")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy, not pysqlite, emit BEGIN so savepoints behave
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 15, 10, 0, tzinfo=IST))


@pytest.fixture
def notifier():
    return RecordingNotifier()


def seed_catalog(session):
    slots = {
        SlotType.MORNING: DeliverySlot(
            name="Morning", slot_type=SlotType.MORNING,
            start_time=time(7, 0), end_time=time(9, 0), sort_order=1,
        ),
        SlotType.AFTERNOON: DeliverySlot(
            name="Lunch", slot_type=SlotType.AFTERNOON,
            start_time=time(12, 0), end_time=time(14, 0), sort_order=2,
        ),
        SlotType.EVENING_DINNER: DeliverySlot(
            name="Dinner", slot_type=SlotType.EVENING_DINNER,
            start_time=time(19, 0), end_time=time(21, 0), sort_order=3,
        ),
        SlotType.EVENING_SNACK: DeliverySlot(
            name="Snacks", slot_type=SlotType.EVENING_SNACK,
            start_time=time(16, 0), end_time=time(17, 0), sort_order=4,
        ),
    }
    late_lunch = DeliverySlot(
        name="Late lunch", slot_type=SlotType.AFTERNOON,
        start_time=time(14, 0), end_time=time(15, 0), sort_order=5,
    )
    closed_slot = DeliverySlot(
        name="Closed", slot_type=SlotType.AFTERNOON,
        start_time=time(15, 0), end_time=time(16, 0), sort_order=6, is_active=False,
    )

    basic = MealPackage(
        name="Basic Lunch", diet_type=DietType.VEG, cuisine_type=CuisineType.SOUTH_INDIAN,
        duration_days=30, price=Decimal("2400"),
        includes_lunch=True,
        allows_container_choice=False, default_container=ContainerType.STEEL,
        allowed_containers="",
    )
    premium = MealPackage(
        name="Premium", diet_type=DietType.VEG, cuisine_type=CuisineType.SOUTH_INDIAN,
        duration_days=7, price=Decimal("1500"),
        includes_breakfast=True, includes_lunch=True, includes_dinner=True,
        allows_container_choice=True, default_container=ContainerType.STEEL,
        allowed_containers="steel,eco_friendly",
        allows_veg_to_nonveg=True, allows_south_to_north=True,
    )
    retired = MealPackage(
        name="Retired", diet_type=DietType.VEG, cuisine_type=CuisineType.NORTH_INDIAN,
        duration_days=7, includes_lunch=True, default_container=ContainerType.STEEL,
        is_active=False,
    )

    home = Address(user_id=USER, label="home", line1="12 MG Road", city="Bengaluru", pincode="560001")
    other_home = Address(user_id=OTHER_USER, label="home", line1="4 Park St", city="Kolkata")

    veg_tokens = TokenPackage(
        name="Veg 10", diet_type=DietType.VEG, token_count=10, validity_days=30, price=Decimal("900"),
    )
    nonveg_tokens = TokenPackage(
        name="Non-veg 5", diet_type=DietType.NON_VEG, token_count=5, validity_days=15, price=Decimal("600"),
    )
    retired_tokens = TokenPackage(
        name="Old pack", diet_type=DietType.VEG, token_count=3, validity_days=10, is_active=False,
    )

    prices = [
        UpgradePrice(upgrade_type=UpgradeType.VEG_TO_NONVEG, scope=UpgradeScope.DAY, unit_price=Decimal("100")),
        UpgradePrice(upgrade_type=UpgradeType.VEG_TO_NONVEG, scope=UpgradeScope.WEEK, unit_price=Decimal("500")),
        UpgradePrice(
            upgrade_type=UpgradeType.VEG_TO_NONVEG, scope=UpgradeScope.MEAL,
            meal_type=MealItemType.LUNCH, unit_price=Decimal("40"),
        ),
        UpgradePrice(upgrade_type=UpgradeType.SOUTH_TO_NORTH, scope=UpgradeScope.DAY, unit_price=Decimal("60")),
    ]

    session.add_all(
        [*slots.values(), late_lunch, closed_slot, basic, premium, retired, home, other_home,
         veg_tokens, nonveg_tokens, retired_tokens, *prices]
    )
    session.commit()

    return SimpleNamespace(
        slots=slots,
        late_lunch=late_lunch,
        closed_slot=closed_slot,
        basic=basic,
        premium=premium,
        retired=retired,
        home=home,
        other_home=other_home,
        veg_tokens=veg_tokens,
        nonveg_tokens=nonveg_tokens,
        retired_tokens=retired_tokens,
    )


@pytest.fixture
def catalog(db_session):
    return seed_catalog(db_session)


# --- Shared file database -----------------------------------------------------

@pytest.fixture
def shared_engine(tmp_path):
    """File-backed database that several sessions can hold open at once."""
    engine = create_engine(f"sqlite:///{tmp_path / 'tiffin.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def open_session(shared_engine):
    factory = sessionmaker(bind=shared_engine, autocommit=False, autoflush=False, expire_on_commit=False)
    opened = []

    def _open():
        session = factory()
        opened.append(session)
        return session

    yield _open
    for session in opened:
        session.close()


# --- Services -----------------------------------------------------------------

@pytest.fixture
def subscription_service(db_session, clock, notifier):
    return SubscriptionService(db_session, clock, notifier)


@pytest.fixture
def meal_service(db_session, clock, notifier):
    return MealService(db_session, clock, notifier)


@pytest.fixture
def delivery_service(db_session, clock, notifier):
    return DeliveryService(db_session, clock, notifier)


@pytest.fixture
def wallet_service(db_session, clock, notifier):
    return WalletService(db_session, clock, notifier)


@pytest.fixture
def curry_service(db_session, clock, notifier):
    return CurryOrderService(db_session, clock, notifier)


@pytest.fixture
def upgrade_service(db_session, clock, notifier):
    return UpgradeService(db_session, clock, notifier)


@pytest.fixture
def premium_subscription(catalog, subscription_service):
    """USER on the 3-meal premium plan from today (2025-01-15 .. 2025-01-21)."""
    return subscription_service.create(USER, catalog.premium.id, catalog.home.id, None, TODAY)


@pytest.fixture
def other_subscription(catalog, subscription_service):
    return subscription_service.create(OTHER_USER, catalog.basic.id, catalog.other_home.id, None, TODAY)
