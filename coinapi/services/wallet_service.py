import logging

from sqlalchemy.orm import Session

from coinapi.database.session import atomic
from coinapi.repositories.wallet_repository import WalletRepository
from coinapi.schemas.wallet import WalletResponse

logger = logging.getLogger(__name__)


class WalletService:
    """지갑 조회/증감 서비스

    지갑은 클라이언트 요청으로 직접 변경되지 않습니다. credit/debit은
    정산, 선물 등 서버 내부 흐름과 운영 스크립트에서만 호출됩니다.
    """

    def __init__(self, db: Session):
        self.db = db
        self.wallet_repo = WalletRepository(db)

    def get_wallet(self, user_id: int) -> WalletResponse:
        """지갑 조회 (없으면 잔액 0으로 생성)"""
        with atomic(self.db):
            return self.wallet_repo.get_or_create(user_id)

    def credit(
        self,
        user_id: int,
        amount: int,
        earned_delta: int = 0,
        spent_delta: int = 0,
    ) -> WalletResponse:
        with atomic(self.db):
            wallet = self.wallet_repo.credit(
                user_id, amount, earned_delta=earned_delta, spent_delta=spent_delta
            )
        logger.info(f"Credited {amount} coins to user {user_id} -> {wallet.balance}")
        return wallet

    def debit(self, user_id: int, amount: int) -> WalletResponse:
        """잔액 차감 - 잔액 부족 시 InsufficientBalanceError, 변경 없음"""
        with atomic(self.db):
            wallet = self.wallet_repo.debit(user_id, amount)
        logger.info(f"Debited {amount} coins from user {user_id} -> {wallet.balance}")
        return wallet
