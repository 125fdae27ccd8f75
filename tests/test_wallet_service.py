import pytest

from coinapi.core.exceptions import InsufficientBalanceError, ValidationError
from coinapi.database.connection import SUPPORTED_DIALECTS, ensure_supported_dialect
from coinapi.models.wallet import CoinWallet
from coinapi.repositories.wallet_repository import _UPSERT_DIALECTS
from coinapi.services.wallet_service import WalletService


@pytest.fixture
def user(factory):
    return factory.user()


@pytest.fixture
def wallet_service(db):
    return WalletService(db)


class TestWalletService:
    """WalletService 테스트"""

    def test_get_wallet_creates_empty_wallet_once(self, db, wallet_service, user):
        first = wallet_service.get_wallet(user.id)
        second = wallet_service.get_wallet(user.id)

        assert first.balance == 0
        assert first.total_earned == 0
        assert first.total_spent == 0
        assert second.user_id == user.id
        assert db.query(CoinWallet).filter(CoinWallet.user_id == user.id).count() == 1

    def test_credit_creates_wallet_lazily(self, wallet_service, user):
        wallet = wallet_service.credit(user.id, 150, earned_delta=150)

        assert wallet.balance == 150
        assert wallet.total_earned == 150
        assert wallet.total_spent == 0

    def test_debit_decrements_and_tracks_spent(self, wallet_service, user):
        wallet_service.credit(user.id, 100)

        wallet = wallet_service.debit(user.id, 40)

        assert wallet.balance == 60
        assert wallet.total_spent == 40

    def test_debit_exact_balance_reaches_zero(self, wallet_service, user):
        wallet_service.credit(user.id, 100)

        assert wallet_service.debit(user.id, 100).balance == 0

    def test_debit_insufficient_balance_leaves_wallet_untouched(self, wallet_service, user):
        wallet_service.credit(user.id, 50)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            wallet_service.debit(user.id, 100)

        assert exc_info.value.error_code == "INSUFFICIENT_BALANCE"
        assert exc_info.value.details == {"required": 100, "available": 50}
        wallet = wallet_service.get_wallet(user.id)
        assert wallet.balance == 50
        assert wallet.total_spent == 0

    def test_debit_on_missing_wallet_fails(self, wallet_service, user):
        with pytest.raises(InsufficientBalanceError):
            wallet_service.debit(user.id, 1)

        assert wallet_service.get_wallet(user.id).balance == 0

    def test_negative_amounts_are_rejected(self, wallet_service, user):
        with pytest.raises(ValidationError):
            wallet_service.credit(user.id, -10)
        with pytest.raises(ValidationError):
            wallet_service.debit(user.id, -10)

        assert wallet_service.get_wallet(user.id).balance == 0

    def test_balance_equals_credits_minus_applied_debits(self, wallet_service, user):
        operations = [
            ("credit", 100),
            ("debit", 30),
            ("debit", 80),  # 거절됨
            ("credit", 25),
            ("debit", 95),
            ("debit", 1),  # 거절됨
            ("credit", 7),
        ]

        expected = 0
        for kind, amount in operations:
            if kind == "credit":
                wallet_service.credit(user.id, amount)
                expected += amount
            else:
                try:
                    wallet_service.debit(user.id, amount)
                    expected -= amount
                except InsufficientBalanceError:
                    pass
            assert wallet_service.get_wallet(user.id).balance >= 0

        assert expected == 7
        assert wallet_service.get_wallet(user.id).balance == expected

    def test_debit_from_stale_snapshot_cannot_overdraw(self, db, other_db, user):
        """두 요청이 같은 잔액(100)을 본 뒤 각각 60을 차감하면 한쪽만 성공"""
        first = WalletService(db)
        second = WalletService(other_db)
        first.credit(user.id, 100)

        assert second.get_wallet(user.id).balance == 100  # 오래된 스냅샷
        first.debit(user.id, 60)

        with pytest.raises(InsufficientBalanceError):
            second.debit(user.id, 60)

        assert first.get_wallet(user.id).balance == 40

    def test_credits_from_two_sessions_are_not_lost(self, db, other_db, user):
        first = WalletService(db)
        second = WalletService(other_db)
        first.get_wallet(user.id)
        second.get_wallet(user.id)

        first.credit(user.id, 30)
        second.credit(user.id, 45)

        assert first.get_wallet(user.id).balance == 75


class TestSupportedDatabases:
    def test_every_supported_database_has_wallet_upsert(self):
        assert set(SUPPORTED_DIALECTS) == set(_UPSERT_DIALECTS)

    def test_supported_databases_pass(self):
        ensure_supported_dialect("postgresql")
        ensure_supported_dialect("sqlite")

    def test_unsupported_database_is_rejected_at_setup(self):
        with pytest.raises(RuntimeError, match="Unsupported database 'mysql'"):
            ensure_supported_dialect("mysql")
