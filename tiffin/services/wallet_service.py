"""
Curry wallet ledger.

One wallet per (user, diet type). Buying another pack of the same diet
tops up the existing wallet and pushes its expiry forward; it never
opens a second wallet or shortens the validity already paid for.
"""

from datetime import timedelta
from typing import List, Optional

from tiffin.core.exceptions import ConflictError
from tiffin.models.curry import CurryWallet
from tiffin.repositories import CurryWalletRepository, TokenPackageRepository
from tiffin.services.base import BaseService, transient_read


class WalletService(BaseService):
    def __init__(self, db_session, clock=None, notifier=None):
        super().__init__(db_session, clock, notifier)
        self.wallets = CurryWalletRepository(db_session)
        self.token_packages = TokenPackageRepository(db_session)

    def purchase(self, user_id: str, package_id: str) -> CurryWallet:
        """
        Credit a token package to the user's wallet for its diet type.

        When a concurrent first purchase opens the wallet between our read
        and our insert, the purchase is replayed once as a top-up of that
        wallet.

        Raises:
            NotFoundError: package missing or inactive
            OperationError: the replayed top-up failed as well
        """
        try:
            wallet = self._apply_package(
                user_id,
                package_id,
                conflict=ConflictError("Wallet was created by a concurrent purchase"),
            )
        except ConflictError:
            self._logger.info(
                "Wallet opened concurrently; retrying purchase as a top-up",
                extra={"user_id": user_id, "token_package_id": package_id},
            )
            wallet = self._apply_package(user_id, package_id)

        self._logger.info(
            f"Wallet {wallet.id} topped up",
            extra={"user_id": user_id, "token_package_id": package_id},
        )
        return wallet

    @transient_read
    def get_wallets(self, user_id: str) -> List[CurryWallet]:
        return self.wallets.list_for_user(user_id)

    def _apply_package(
        self, user_id: str, package_id: str, conflict: Optional[ConflictError] = None
    ) -> CurryWallet:
        with self.transaction(conflict=conflict):
            package = self.token_packages.get_active(package_id)
            today = self.clock.today()
            validity = timedelta(days=package.validity_days)

            wallet = self.wallets.find_for_user_diet(user_id, package.diet_type, for_update=True)
            if wallet is None:
                wallet = self.wallets.create(
                    CurryWallet(
                        user_id=user_id,
                        diet_type=package.diet_type,
                        total_tokens=package.token_count,
                        used_tokens=0,
                        valid_until=today + validity,
                    )
                )
            else:
                self.wallets.update(
                    wallet,
                    {
                        "total_tokens": wallet.total_tokens + package.token_count,
                        "valid_until": max(wallet.valid_until, today) + validity,
                    },
                )

            self._notify(
                user_id,
                "Curry tokens added",
                f"{package.token_count} {package.diet_type.value} tokens added. "
                f"Valid until {wallet.valid_until.isoformat()}.",
            )
        return wallet
