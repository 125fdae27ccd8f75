import enum
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from coinapi.models.base import BaseModel, BigIntPK, JSONPayload


class PurchaseStatusEnum(enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"  # 종결 상태
    FAILED = "FAILED"  # 종결 상태


class CoinPackage(BaseModel):
    """코인 패키지 - 변경되지 않는 참조 데이터 (price는 최소 통화 단위)"""

    __tablename__ = "coin_packages"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coins: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR", nullable=False)
    # 결제 게이트웨이 쪽 상품 ID
    gateway_product_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def total_coins(self) -> int:
        return self.coins + self.bonus_coins


class CoinPurchase(BaseModel):
    """코인 구매 기록

    체크아웃 세션을 열 때 PENDING으로 생성되고, 웹훅에 의해 정확히 한 번
    COMPLETED 또는 FAILED로 전이합니다. 종결 상태에서는 더 이상 전이하지 않습니다.
    """

    __tablename__ = "coin_purchases"
    __table_args__ = (
        Index("idx_coin_purchases_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False, index=True
    )
    package_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("coin_packages.id"), nullable=False
    )
    coins: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_coins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # coins + bonus_coins + discount_bonus_coins
    total_coins: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    order_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # 체크아웃 생성 시 게이트웨이가 돌려준 세션 ID
    checkout_session_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    # 결제 완료 시 게이트웨이가 부여한 결제 ID
    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )

    status: Mapped[PurchaseStatusEnum] = mapped_column(
        Enum(PurchaseStatusEnum), default=PurchaseStatusEnum.PENDING, nullable=False
    )
    payment_gateway: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_data: Mapped[Optional[dict]] = mapped_column(JSONPayload, nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    discount_code_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("discount_codes.id"), nullable=True
    )
    discount_bonus_coins: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
