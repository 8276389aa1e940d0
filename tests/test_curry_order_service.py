from datetime import timedelta

import pytest
from sqlalchemy import func, select

from tiffin.core.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InsufficientTokensError,
    NotFoundError,
    ValidationError,
)
from tiffin.models import CurryOrder, CurryWallet, DeliveryGroup
from tiffin.models.base import (
    CuisineType,
    CurryOrderStatus,
    DietType,
    MealItemType,
    PauseMealType,
    SlotType,
)

from tests.conftest import OTHER_USER, TODAY, TOMORROW, USER


@pytest.fixture
def wallet(catalog, wallet_service):
    return wallet_service.purchase(USER, catalog.veg_tokens.id)


def place(curry_service, order_date=TOMORROW, **kwargs):
    return curry_service.place_order(USER, DietType.VEG, CuisineType.SOUTH_INDIAN, order_date, **kwargs)


def set_used(db_session, wallet, used):
    wallet.used_tokens = used
    db_session.commit()


class TestPlaceOrder:
    def test_order_debits_one_token(self, db_session, curry_service, wallet, notifier):
        order = place(curry_service)

        db_session.refresh(wallet)
        assert wallet.used_tokens == 1
        assert order.status == CurryOrderStatus.ORDERED
        assert order.wallet_id == wallet.id
        assert "Curry ordered" in notifier.titles

    def test_last_token_then_duplicate_date_conflicts(self, db_session, curry_service, wallet):
        set_used(db_session, wallet, 9)

        place(curry_service, TODAY)
        db_session.refresh(wallet)
        assert (wallet.used_tokens, wallet.remaining_tokens) == (10, 0)

        with pytest.raises(ConflictError):
            place(curry_service, TODAY)

    def test_no_tokens_left(self, db_session, curry_service, wallet):
        set_used(db_session, wallet, 10)

        with pytest.raises(InsufficientTokensError):
            place(curry_service)
        db_session.refresh(wallet)
        assert wallet.used_tokens == 10

    def test_expired_wallet(self, db_session, curry_service, wallet):
        wallet.valid_until = TODAY - timedelta(days=1)
        db_session.commit()
        with pytest.raises(ExpiredError):
            place(curry_service)

    def test_missing_wallet(self, catalog, curry_service):
        with pytest.raises(NotFoundError):
            place(curry_service)

    def test_wallet_of_other_diet_not_used(self, curry_service, wallet):
        with pytest.raises(NotFoundError):
            curry_service.place_order(USER, DietType.NON_VEG, CuisineType.NORTH_INDIAN, TOMORROW)

    @pytest.mark.parametrize("offset", [-1, 8])
    def test_order_date_outside_window(self, curry_service, wallet, offset):
        with pytest.raises(ValidationError):
            place(curry_service, TODAY + timedelta(days=offset))

    def test_default_slot_is_lunch(self, catalog, curry_service, wallet):
        order = place(curry_service)
        assert order.delivery_slot_id == catalog.slots[SlotType.AFTERNOON].id

    def test_requested_slot_used(self, catalog, curry_service, wallet):
        order = place(curry_service, delivery_slot_id=catalog.slots[SlotType.EVENING_DINNER].id)
        assert order.delivery_slot_id == catalog.slots[SlotType.EVENING_DINNER].id

    def test_inactive_slot_leaves_wallet_untouched(self, db_session, catalog, curry_service, wallet):
        with pytest.raises(NotFoundError):
            place(curry_service, delivery_slot_id=catalog.closed_slot.id)
        db_session.refresh(wallet)
        assert wallet.used_tokens == 0

    def test_unique_index_backstops_duplicate_date(self, db_session, curry_service, wallet, monkeypatch):
        place(curry_service)
        monkeypatch.setattr(curry_service.orders, "find_ordered_for_date", lambda user_id, order_date: None)

        with pytest.raises(ConflictError):
            place(curry_service)
        db_session.refresh(wallet)
        assert wallet.used_tokens == 1


class TestGroupWithMeal:
    def test_pairs_with_tomorrows_lunch(self, db_session, curry_service, wallet, premium_subscription):
        order = place(curry_service, group_with_meal=True)

        assert order.delivery_group_id is not None
        group = db_session.get(DeliveryGroup, order.delivery_group_id)
        lunch = [m for m in group.meal_instances]
        assert [m.item_type for m in lunch] == [MealItemType.LUNCH]
        assert order.delivery_slot_id == lunch[0].delivery_slot_id

    def test_joins_existing_group(
        self, catalog, curry_service, meal_service, delivery_service, wallet, premium_subscription
    ):
        meals = {m.item_type: m for m in meal_service.get_schedule(USER) if m.service_date == TOMORROW}
        group = delivery_service.group(
            USER, TOMORROW,
            [meals[MealItemType.BREAKFAST].id, meals[MealItemType.LUNCH].id], [],
            catalog.late_lunch.id,
        )

        order = place(curry_service, group_with_meal=True)
        assert order.delivery_group_id == group.id
        assert order.delivery_slot_id == catalog.late_lunch.id

    def test_without_subscription_stays_ungrouped(self, curry_service, wallet):
        order = place(curry_service, group_with_meal=True)
        assert order.delivery_group_id is None
        assert order.status == CurryOrderStatus.ORDERED

    def test_paused_lunch_stays_ungrouped(self, curry_service, meal_service, wallet, premium_subscription):
        meal_service.pause(USER, TOMORROW, PauseMealType.LUNCH)
        order = place(curry_service, group_with_meal=True)
        assert order.delivery_group_id is None

    def test_beyond_window_not_materialized(self, db_session, curry_service, wallet, premium_subscription):
        order = place(curry_service, TODAY + timedelta(days=3), group_with_meal=True)
        assert order.delivery_group_id is None
        db_session.refresh(wallet)
        assert wallet.used_tokens == 1


class TestCancelOrder:
    def test_cancel_restores_token(self, db_session, curry_service, wallet, notifier):
        order = place(curry_service)
        cancelled = curry_service.cancel_order(USER, order.id)

        assert cancelled.status == CurryOrderStatus.CANCELLED
        db_session.refresh(wallet)
        assert wallet.used_tokens == 0
        assert "Curry order cancelled" in notifier.titles

    def test_cancel_twice_conflicts(self, db_session, curry_service, wallet):
        order = place(curry_service)
        curry_service.cancel_order(USER, order.id)
        with pytest.raises(ConflictError):
            curry_service.cancel_order(USER, order.id)
        db_session.refresh(wallet)
        assert wallet.used_tokens == 0

    def test_cancel_fulfilled_conflicts(self, db_session, curry_service, wallet):
        order = place(curry_service)
        order.status = CurryOrderStatus.FULFILLED
        db_session.commit()

        with pytest.raises(ConflictError):
            curry_service.cancel_order(USER, order.id)

    def test_cancel_past_order_conflicts(self, clock, curry_service, wallet):
        order = place(curry_service, TODAY)
        clock.advance(days=1)
        with pytest.raises(ConflictError):
            curry_service.cancel_order(USER, order.id)

    def test_cancel_other_users_order_forbidden(self, curry_service, wallet):
        order = place(curry_service)
        with pytest.raises(ForbiddenError):
            curry_service.cancel_order(OTHER_USER, order.id)

    def test_cancel_unknown_order(self, curry_service, wallet):
        with pytest.raises(NotFoundError):
            curry_service.cancel_order(USER, "missing")

    def test_reorder_same_date_after_cancel(self, curry_service, wallet):
        order = place(curry_service)
        curry_service.cancel_order(USER, order.id)
        again = place(curry_service)
        assert again.id != order.id

    def test_cancel_dissolves_pair_group(self, db_session, curry_service, wallet, premium_subscription):
        order = place(curry_service, group_with_meal=True)
        assert order.delivery_group_id is not None

        curry_service.cancel_order(USER, order.id)
        assert db_session.execute(select(func.count()).select_from(DeliveryGroup)).scalar_one() == 0

    def test_cancel_keeps_larger_group(
        self, db_session, catalog, curry_service, meal_service, delivery_service, wallet, premium_subscription
    ):
        meals = {m.item_type: m for m in meal_service.get_schedule(USER) if m.service_date == TOMORROW}
        group = delivery_service.group(
            USER, TOMORROW,
            [meals[MealItemType.BREAKFAST].id, meals[MealItemType.LUNCH].id], [],
            catalog.slots[SlotType.AFTERNOON].id,
        )
        order = place(curry_service, group_with_meal=True)
        assert order.delivery_group_id == group.id

        curry_service.cancel_order(USER, order.id)
        remaining = delivery_service.list_groups(USER)
        assert [g.member_count for g in remaining] == [2]


class TestLedgerInvariant:
    def test_used_tokens_stay_within_total(self, db_session, catalog, clock, wallet_service, curry_service):
        wallet_service.purchase(USER, catalog.nonveg_tokens.id)
        placed = []

        def check():
            for w in db_session.execute(select(CurryWallet)).scalars().all():
                db_session.refresh(w)
                assert 0 <= w.used_tokens <= w.total_tokens

        for day in range(7):
            try:
                placed.append(
                    curry_service.place_order(
                        USER, DietType.NON_VEG, CuisineType.NORTH_INDIAN, TODAY + timedelta(days=day)
                    )
                )
            except InsufficientTokensError:
                pass
            check()

        assert len(placed) == 5
        for order in placed[:3]:
            curry_service.cancel_order(USER, order.id)
            check()

        wallet_service.purchase(USER, catalog.nonveg_tokens.id)
        check()
        orders = curry_service.list_orders(USER, CurryOrderStatus.ORDERED)
        assert len(orders) == 2
        assert len(curry_service.list_orders(USER)) == 5
        total = db_session.execute(
            select(CurryWallet.used_tokens).where(CurryWallet.diet_type == DietType.NON_VEG)
        ).scalar_one()
        assert total == 2
        assert db_session.execute(select(func.count()).select_from(CurryOrder)).scalar_one() == 5
