"""
코인 지갑 모델

사용자당 정확히 하나의 지갑 행이 존재합니다 (user_id 유니크).
- balance: 현재 보유 코인, DB 제약으로 음수가 될 수 없음
- total_earned: 선물 수익으로 적립된 누적 코인
- total_spent: 구매로 충전된 코인과 선물로 사용한 코인의 누적 합

지갑은 처음 접근할 때 upsert로 생성되며 삭제되지 않습니다.
"""

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from coinapi.models.base import BaseModel, BigIntPK


class CoinWallet(BaseModel):
    __tablename__ = "coin_wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_coin_wallets_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), unique=True, nullable=False
    )
    balance: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_earned: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    total_spent: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
