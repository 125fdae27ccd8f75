"""
코인 지갑 리포지토리

모든 잔액 변경은 단일 조건부 UPDATE 문으로 수행됩니다 (읽고-계산하고-쓰기 금지).
- credit: balance = balance + :amount
- debit:  balance = balance - :amount WHERE balance >= :amount

지갑 생성은 INSERT ... ON CONFLICT DO NOTHING 업서트이므로 동시에 처음 접근해도
행이 하나만 생깁니다. 이 리포지토리는 flush/execute만 하고 커밋하지 않습니다.
호출한 서비스의 트랜잭션 안에서 함께 커밋되거나 롤백됩니다.
"""

from typing import Iterable, List

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from coinapi.core.exceptions import InsufficientBalanceError, ValidationError
from coinapi.models.wallet import CoinWallet as CoinWalletModel
from coinapi.repositories.base import BaseRepository
from coinapi.schemas.wallet import WalletResponse

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class WalletRepository(BaseRepository[CoinWalletModel, WalletResponse]):
    def __init__(self, db: Session):
        super().__init__(CoinWalletModel, WalletResponse, db)

    def _ensure_wallet(self, user_id: int) -> None:
        """지갑이 없으면 잔액 0으로 생성 (경쟁 조건 없는 업서트)"""
        # 지원 DB는 엔진 생성 시 확인 (database/connection.py)
        insert = _UPSERT_DIALECTS[self.db.get_bind().dialect.name]
        stmt = (
            insert(CoinWalletModel)
            .values(user_id=user_id, balance=0, total_earned=0, total_spent=0)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        self.db.execute(stmt)

    def _load(self, user_id: int) -> CoinWalletModel:
        return (
            self.db.query(CoinWalletModel)
            .filter(CoinWalletModel.user_id == user_id)
            .populate_existing()
            .one()
        )

    def get_or_create(self, user_id: int) -> WalletResponse:
        self._ensure_wallet(user_id)
        return self._to_schema(self._load(user_id))

    def get_balance(self, user_id: int) -> int:
        wallet = (
            self.db.query(CoinWalletModel.balance)
            .filter(CoinWalletModel.user_id == user_id)
            .scalar()
        )
        return wallet or 0

    def credit(
        self,
        user_id: int,
        amount: int,
        earned_delta: int = 0,
        spent_delta: int = 0,
    ) -> WalletResponse:
        """잔액 증가 - 잔액 때문에 실패하지 않음"""
        if amount < 0 or earned_delta < 0 or spent_delta < 0:
            raise ValidationError(
                "Credit amounts must be non-negative",
                details={"amount": amount, "earned_delta": earned_delta, "spent_delta": spent_delta},
            )

        self._ensure_wallet(user_id)
        self.db.execute(
            update(CoinWalletModel)
            .where(CoinWalletModel.user_id == user_id)
            .values(
                balance=CoinWalletModel.balance + amount,
                total_earned=CoinWalletModel.total_earned + earned_delta,
                total_spent=CoinWalletModel.total_spent + spent_delta,
            )
            .execution_options(synchronize_session=False)
        )
        return self._to_schema(self._load(user_id))

    def debit(self, user_id: int, amount: int) -> WalletResponse:
        """잔액 차감 - 잔액 확인과 차감이 하나의 UPDATE 문에서 일어남

        Raises:
            InsufficientBalanceError: 잔액이 부족하면 아무것도 변경하지 않고 발생
        """
        if amount < 0:
            raise ValidationError("Debit amount must be non-negative", details={"amount": amount})

        self._ensure_wallet(user_id)
        result = self.db.execute(
            update(CoinWalletModel)
            .where(
                CoinWalletModel.user_id == user_id,
                CoinWalletModel.balance >= amount,
            )
            .values(
                balance=CoinWalletModel.balance - amount,
                total_spent=CoinWalletModel.total_spent + amount,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            available = self.get_balance(user_id)
            raise InsufficientBalanceError(
                f"Insufficient balance. Required: {amount}, Available: {available}",
                details={"required": amount, "available": available},
            )

        return self._to_schema(self._load(user_id))

    def lock_wallets(self, user_ids: Iterable[int]) -> List[WalletResponse]:
        """여러 지갑을 user_id 오름차순으로 행 잠금 (교착 상태 방지)"""
        ordered = sorted(set(user_ids))
        for user_id in ordered:
            self._ensure_wallet(user_id)

        wallets = (
            self.db.query(CoinWalletModel)
            .filter(CoinWalletModel.user_id.in_(ordered))
            .order_by(CoinWalletModel.user_id)
            .with_for_update()
            .all()
        )
        return self._to_schemas(wallets)
