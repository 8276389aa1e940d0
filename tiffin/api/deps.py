"""
FastAPI dependencies.

Each request gets its own session, the service clock and the notifier.
Services are built per request from those three collaborators.

Example usage in a router:
    @router.get("/active")
    def read_active(
        principal: Principal = Depends(deps.get_current_user),
        service: SubscriptionService = Depends(deps.get_subscription_service),
    ):
        ...
"""

from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from tiffin.config.database import get_db_session
from tiffin.core.clock import Clock
from tiffin.core.exceptions import AuthenticationError
from tiffin.core.notifications import LoggingNotifier, Notifier
from tiffin.services import (
    CurryOrderService,
    DeliveryService,
    MealService,
    SubscriptionService,
    UpgradeService,
    WalletService,
)
from tiffin.services.base import default_clock


@dataclass(frozen=True)
class Principal:
    """Caller identity as verified by the upstream identity provider."""

    user_id: str
    phone_number: Optional[str] = None


# --- Database & collaborators -------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_clock() -> Clock:
    return default_clock()


_notifier = LoggingNotifier()


def get_notifier() -> Notifier:
    return _notifier


# --- Authentication -----------------------------------------------------------

def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_phone: Optional[str] = Header(default=None),
) -> Principal:
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError("Missing authenticated user")
    return Principal(user_id=x_user_id.strip(), phone_number=x_user_phone)


# --- Services -----------------------------------------------------------------

def get_subscription_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> SubscriptionService:
    return SubscriptionService(db, clock, notifier)


def get_meal_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> MealService:
    return MealService(db, clock, notifier)


def get_delivery_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> DeliveryService:
    return DeliveryService(db, clock, notifier)


def get_wallet_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> WalletService:
    return WalletService(db, clock, notifier)


def get_curry_order_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> CurryOrderService:
    return CurryOrderService(db, clock, notifier)


def get_upgrade_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
) -> UpgradeService:
    return UpgradeService(db, clock, notifier)
