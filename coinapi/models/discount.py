import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from coinapi.models.base import BaseModel, BigIntPK


class DiscountTypeEnum(enum.Enum):
    PERCENTAGE = "PERCENTAGE"  # 기본 코인의 N% 보너스
    FIXED = "FIXED"  # 최소 통화 단위 금액만큼의 코인 보너스


class CodeTypeEnum(enum.Enum):
    PROMO = "PROMO"  # 운영자가 발행한 프로모션 코드
    REWARD = "REWARD"  # 구매 완료 후 자동 발급된 리워드 코드


class DiscountCode(BaseModel):
    __tablename__ = "discount_codes"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # 항상 대문자로 저장 (대소문자 구분 없는 조회)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    discount_type: Mapped[DiscountTypeEnum] = mapped_column(
        Enum(DiscountTypeEnum), nullable=False
    )
    discount_value: Mapped[int] = mapped_column(Integer, nullable=False)
    code_type: Mapped[CodeTypeEnum] = mapped_column(
        Enum(CodeTypeEnum), default=CodeTypeEnum.PROMO, nullable=False
    )
    owner_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=True, index=True
    )
    is_one_time_use: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    max_redemptions: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # 단조 증가, max_redemptions를 넘지 않음
    current_redemptions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_purchase_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class DiscountRedemption(BaseModel):
    """할인 코드 사용 기록 - 추가만 가능한 감사 추적 테이블"""

    __tablename__ = "discount_redemptions"
    __table_args__ = (
        Index("idx_discount_redemptions_code_user", "discount_code_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    discount_code_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("discount_codes.id"), nullable=False
    )
    # 구매당 최대 한 번
    purchase_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("coin_purchases.id"), unique=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    bonus_coins_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
