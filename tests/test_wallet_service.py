from datetime import date

import pytest

from tiffin.core.exceptions import NotFoundError
from tiffin.models.base import DietType

from tests.conftest import TODAY, USER


class TestPurchase:
    def test_first_purchase_creates_wallet(self, catalog, wallet_service, notifier):
        wallet = wallet_service.purchase(USER, catalog.veg_tokens.id)

        assert wallet.diet_type == DietType.VEG
        assert (wallet.total_tokens, wallet.used_tokens) == (10, 0)
        assert wallet.remaining_tokens == 10
        assert wallet.valid_until == date(2025, 2, 14)
        assert notifier.titles == ["Curry tokens added"]

    def test_repurchase_extends_from_current_expiry(self, catalog, wallet_service):
        first = wallet_service.purchase(USER, catalog.veg_tokens.id)
        second = wallet_service.purchase(USER, catalog.veg_tokens.id)

        assert second.id == first.id
        assert second.total_tokens == 20
        assert second.valid_until == date(2025, 3, 16)

    def test_repurchase_after_expiry_extends_from_today(self, db_session, catalog, wallet_service):
        wallet = wallet_service.purchase(USER, catalog.veg_tokens.id)
        wallet.valid_until = date(2025, 1, 1)
        db_session.commit()

        renewed = wallet_service.purchase(USER, catalog.veg_tokens.id)
        assert renewed.valid_until == date(2025, 2, 14)
        assert renewed.total_tokens == 20

    def test_wallet_per_diet_type(self, catalog, wallet_service):
        veg = wallet_service.purchase(USER, catalog.veg_tokens.id)
        nonveg = wallet_service.purchase(USER, catalog.nonveg_tokens.id)

        assert veg.id != nonveg.id
        wallets = wallet_service.get_wallets(USER)
        assert {w.diet_type: w.total_tokens for w in wallets} == {DietType.VEG: 10, DietType.NON_VEG: 5}

    def test_inactive_package_not_found(self, catalog, wallet_service):
        with pytest.raises(NotFoundError):
            wallet_service.purchase(USER, catalog.retired_tokens.id)
        assert wallet_service.get_wallets(USER) == []

    def test_expiry_view(self, catalog, wallet_service):
        wallet = wallet_service.purchase(USER, catalog.nonveg_tokens.id)
        assert wallet.expired_on(TODAY) is False
        assert wallet.expired_on(date(2025, 1, 31)) is True
