"""
Subscription lifecycle service.

At most one active subscription per user. The application check below is
only a fast-fail; the partial unique index on subscriptions(user_id)
WHERE status='active' is what actually rejects a concurrent duplicate.
"""

from datetime import date, timedelta
from typing import List, Optional

from tiffin.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NoActiveSubscriptionError,
    NotFoundError,
    ValidationError,
)
from tiffin.models.base import ContainerType, SubscriptionStatus
from tiffin.models.catalog import MealPackage
from tiffin.models.subscription import Subscription
from tiffin.repositories import (
    AddressRepository,
    MealPackageRepository,
    SubscriptionRepository,
)
from tiffin.services.base import BaseService, transient_read


def duplicate_subscription_error() -> ConflictError:
    return ConflictError("An active subscription already exists for this user")


class SubscriptionService(BaseService):
    """
    Create, read and close meal subscriptions.
    """

    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.subscriptions = SubscriptionRepository(db_session)
        self.packages = MealPackageRepository(db_session)
        self.addresses = AddressRepository(db_session)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create(
        self,
        user_id: str,
        package_id: str,
        address_id: str,
        requested_container: Optional[ContainerType],
        start_date: date,
    ) -> Subscription:
        """
        Subscribe a user to a meal package.

        No meal instances are created here; they appear lazily when the
        schedule for a date is first needed.
        """
        with self.transaction(conflict=duplicate_subscription_error()):
            if self.resolve_active(user_id, required=False) is not None:
                raise duplicate_subscription_error()

            package = self.packages.get_active(package_id)
            self.addresses.get_owned(address_id, user_id)
            container = self._resolve_container(package, requested_container)

            today = self.clock.today()
            if start_date < today:
                raise ValidationError(
                    "Start date cannot be in the past",
                    {"start_date": [f"must be on or after {today.isoformat()}"]},
                )

            subscription = self.subscriptions.create(
                Subscription(
                    user_id=user_id,
                    package_id=package.id,
                    address_id=address_id,
                    container_type=container,
                    start_date=start_date,
                    end_date=start_date + timedelta(days=package.duration_days - 1),
                    status=SubscriptionStatus.ACTIVE,
                )
            )
            self._notify(
                user_id,
                "Subscription confirmed",
                f"Your {package.name} plan runs from {start_date.isoformat()} "
                f"to {subscription.end_date.isoformat()}.",
            )

        self._logger.info(
            f"Created subscription {subscription.id}",
            extra={"user_id": user_id, "package_id": package_id},
        )
        return subscription

    def cancel(self, user_id: str, subscription_id: str) -> Subscription:
        with self.transaction():
            subscription = self.subscriptions.get_by_id(subscription_id)
            if subscription.user_id != user_id:
                raise ForbiddenError(resource_type="Subscription", resource_id=subscription_id)
            if not self.subscriptions.transition_status(subscription, SubscriptionStatus.CANCELLED):
                raise ConflictError(
                    "Only an active subscription can be cancelled",
                    {"status": subscription.status.value},
                )
            self._notify(user_id, "Subscription cancelled", "Your meal subscription has been cancelled.")

        self._logger.info(f"Cancelled subscription {subscription_id}", extra={"user_id": user_id})
        return subscription

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_active(self, user_id: str) -> Subscription:
        """
        The user's active subscription.

        A subscription whose end date has passed is moved to completed on
        the way and reported as missing.
        """
        with self.transaction():
            subscription = self.resolve_active(user_id, required=False)
        if subscription is None:
            raise NotFoundError("Subscription", message="No active subscription found")
        return subscription

    @transient_read
    def get_history(self, user_id: str) -> List[Subscription]:
        return self.subscriptions.list_for_user(user_id)

    # -------------------------------------------------------------------------
    # Helpers shared with other services (no transaction of their own)
    # -------------------------------------------------------------------------

    def resolve_active(self, user_id: str, required: bool = True) -> Optional[Subscription]:
        """
        Look up the active subscription inside the caller's transaction.

        Raises NoActiveSubscriptionError when `required` and none exists.
        """
        subscription = self.subscriptions.find_active_for_user(user_id)
        if subscription is not None and subscription.end_date < self.clock.today():
            self.subscriptions.transition_status(subscription, SubscriptionStatus.COMPLETED)
            self._logger.info(f"Subscription {subscription.id} completed on expiry")
            subscription = None

        if subscription is None and required:
            raise NoActiveSubscriptionError(user_id)
        return subscription

    def days_remaining(self, subscription: Subscription) -> int:
        return subscription.remaining_days_on(self.clock.today())

    @staticmethod
    def _resolve_container(package: MealPackage, requested: Optional[ContainerType]) -> ContainerType:
        if not package.allows_container_choice or requested is None:
            return package.default_container

        allowed = package.allowed_container_set() or {package.default_container}
        if requested not in allowed:
            raise ValidationError(
                "Container type not offered for this package",
                {"container_type": [f"must be one of: {', '.join(sorted(c.value for c in allowed))}"]},
            )
        return requested
